"""
Campus Reservas - Motor do calendário
======================================

Funções puras, sem I/O e sem estado:

- Normalizador de intervalos: qualquer representação de data/hora do backend
  vira um par (início, fim) na hora local do campus, sem fuso.
- Expansor de recorrência: reservas SEMANAIS valem em todo dia com o mesmo dia
  da semana do início; reservas ÚNICAS só na data exata.
- Resolvedor de ocupação: quais reservas ocupam uma célula (dia x faixa de uma
  hora), sempre com intervalos semiabertos [início, fim).
- Geração das grades semanal (segunda a sábado) e mensal (42 dias).
"""

from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, List, NamedTuple, Optional, Tuple

from dateutil import tz

from config import FIRST_SLOT_HOUR, MONTH_GRID_DAYS, SLOT_COUNT, SLOT_MINUTES, TIME_ZONE, WEEK_GRID_DAYS
from logging_config import get_logger
from schemas import CalendarCell, Occurrence, Reservation

logger = get_logger(__name__)

LOCAL_TZ = tz.gettz(TIME_ZONE)

# Formato que o backend usa nos formulários ("11/03/2024, 09:00")
BACKEND_DATETIME_FORMATS = ("%d/%m/%Y, %H:%M", "%d/%m/%Y %H:%M", "%d/%m/%Y")
TIME_FORMATS = ("%H:%M", "%H:%M:%S")


class Interval(NamedTuple):
    start: datetime
    end: datetime


# ==========================================
# NORMALIZADOR DE INTERVALOS
# ==========================================

def _to_local(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(LOCAL_TZ).replace(tzinfo=None)


def parse_instant(value: Any) -> Optional[datetime]:
    """
    Converte um instante do backend para datetime ingênuo (sem tzinfo).

    Aceita datetime, date, ISO 8601 (com "Z" ou offset) e "dd/mm/aaaa, HH:MM".
    Valores com fuso (ISO com "Z" ou offset) são convertidos para a hora local
    do campus (LOCAL_TZ); valores sem fuso já são hora local.

    Returns:
        datetime ou None se ausente/ilegível
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return _to_local(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    for fmt in BACKEND_DATETIME_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return _to_local(datetime.fromisoformat(text))
    except ValueError:
        return None


def parse_time_of_day(value: Any) -> Optional[time]:
    if isinstance(value, time):
        return value.replace(tzinfo=None)
    if not isinstance(value, str) or not value.strip():
        return None
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(value.strip(), fmt).time()
        except ValueError:
            continue
    return None


def combine_date_time(date_value: Any, time_value: Any) -> Optional[datetime]:
    """Junta uma data (qualquer formato aceito por parse_instant) e um "HH:MM"."""
    day = parse_instant(date_value)
    hour = parse_time_of_day(time_value)
    if day is None or hour is None:
        return None
    return datetime.combine(day.date(), hour)


def normalize_interval(start: Any, end: Any) -> Optional[Interval]:
    """
    Intervalo canônico ou None quando a reserva não pode ser exibida
    (limite ausente, ilegível, ou fim <= início).
    """
    start_dt = parse_instant(start)
    end_dt = parse_instant(end)
    if start_dt is None or end_dt is None or end_dt <= start_dt:
        return None
    return Interval(start_dt, end_dt)


def reservation_interval(reservation: Reservation) -> Optional[Interval]:
    return normalize_interval(reservation.date_time_start, reservation.date_time_end)


# ==========================================
# EXPANSOR DE RECORRÊNCIA
# ==========================================

def applies_to(reservation: Reservation, target_date: date) -> bool:
    """
    A reserva vale em `target_date`?

    - SINGLE: mesmo ano, mês e dia do início.
    - WEEKLY: mesmo dia da semana do início (ano/mês ignorados). Janelas que
      passam da meia-noite só contam no dia da semana do início; o fim
      projetado cai no dia seguinte.
    """
    start = reservation.date_time_start
    if start is None:
        return False
    if isinstance(target_date, datetime):
        target_date = target_date.date()

    if reservation.occurrence == Occurrence.WEEKLY:
        return target_date.weekday() == start.weekday()
    return target_date == start.date()


# ==========================================
# RESOLVEDOR DE OCUPAÇÃO
# ==========================================

def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Interseção de [a_start, a_end) com [b_start, b_end). Encostar na borda não conta."""
    return a_start < b_end and a_end > b_start


def projected_interval(reservation: Reservation, interval: Interval, day: date) -> Interval:
    """
    Intervalo comparável com as células de `day`.

    WEEKLY: o início vai para `day` e o fim mantém a distância em dias do
    início (22:00-00:00 termina à meia-noite do dia seguinte).
    SINGLE: intervalo absoluto, sem alteração.
    """
    if reservation.occurrence == Occurrence.WEEKLY:
        day_span = (interval.end.date() - interval.start.date()).days
        return Interval(
            datetime.combine(day, interval.start.time()),
            datetime.combine(day + timedelta(days=day_span), interval.end.time()),
        )
    return interval


def occupants(cell: CalendarCell, reservations: Iterable[Reservation]) -> List[Reservation]:
    """
    Reservas que ocupam a célula, na ordem recebida.

    Reservas com intervalo inválido são ignoradas sem erro. Várias reservas na
    mesma célula é um estado válido (a UI empilha).
    """
    result = []
    for reservation in reservations:
        interval = reservation_interval(reservation)
        if interval is None:
            logger.debug(f"Reserva {reservation.id} sem intervalo válido, fora da grade")
            continue
        if not applies_to(reservation, cell.day_date):
            continue
        start, end = projected_interval(reservation, interval, cell.day_date)
        if overlaps(start, end, cell.start, cell.end):
            result.append(reservation)
    return result


def reservations_for_day(day: date, reservations: Iterable[Reservation]) -> List[Reservation]:
    """Reservas exibíveis em `day` (visão mensal), ordenadas pelo horário de início."""
    matches = [
        r for r in reservations
        if reservation_interval(r) is not None and applies_to(r, day)
    ]
    return sorted(matches, key=lambda r: r.date_time_start.time())


# ==========================================
# GRADES
# ==========================================

def week_start(any_day: date) -> date:
    """Segunda-feira da semana de `any_day`."""
    return any_day - timedelta(days=any_day.weekday())


def week_days(any_day: date, count: int = WEEK_GRID_DAYS) -> List[date]:
    monday = week_start(any_day)
    return [monday + timedelta(days=i) for i in range(count)]


def same_iso_week(a: date, b: date) -> bool:
    return a.isocalendar()[:2] == b.isocalendar()[:2]


def hour_slots() -> List[Tuple[time, time]]:
    """Faixas fixas 07:00-08:00 ... 22:00-23:00."""
    slots = []
    for i in range(SLOT_COUNT):
        start = datetime.combine(date.min, time(FIRST_SLOT_HOUR)) + timedelta(minutes=i * SLOT_MINUTES)
        end = start + timedelta(minutes=SLOT_MINUTES)
        slots.append((start.time(), end.time()))
    return slots


def week_cells(any_day: date) -> List[List[CalendarCell]]:
    """Linhas (uma por faixa) com uma célula por dia da grade semanal."""
    days = week_days(any_day)
    return [
        [CalendarCell(day_date=day, slot_start=slot_start, slot_end=slot_end) for day in days]
        for slot_start, slot_end in hour_slots()
    ]


def month_days(year: int, month: int) -> List[date]:
    """42 dias a partir do domingo que abre a semana do dia 1º."""
    first = date(year, month, 1)
    offset = (first.weekday() + 1) % 7
    start = first - timedelta(days=offset)
    return [start + timedelta(days=i) for i in range(MONTH_GRID_DAYS)]
