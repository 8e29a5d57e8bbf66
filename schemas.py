"""
Campus Reservas - Esquemas (Pydantic)
======================================

Modelos de leitura das reservas vindas do backend, valores derivados do
calendário (célula, estado de navegação) e DTOs de saída da API.

Regras:
- Reservas são imutáveis (frozen); o calendário só as lê.
- Datas inválidas ou ausentes viram None, nunca exceção: quem decide se a
  reserva aparece é o normalizador de intervalos (calendar_logic).
- O detalhe da reserva é uma união discriminada por `kind`
  (esporte | sala de aula | evento).
"""

from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


# ==========================================
# ENUMS
# ==========================================

class TypeReserve(str, Enum):
    SPORT = "SPORT"
    CLASSROOM = "CLASSROOM"
    EVENT = "EVENT"


class Occurrence(str, Enum):
    WEEKLY = "WEEKLY"
    SINGLE = "SINGLE"


class ReserveStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    REFUSED = "REFUSED"


class Role(str, Enum):
    USER = "USER"
    PE_ADMIN = "PE_ADMIN"
    SISTEMA_ADMIN = "SISTEMA_ADMIN"


class ViewMode(str, Enum):
    WEEK = "WEEK"
    MONTH = "MONTH"


ADMIN_ROLES = frozenset({Role.PE_ADMIN, Role.SISTEMA_ADMIN})

# Grafias usadas pelo backend
OCCURRENCE_ALIASES = {
    "WEEKLY": Occurrence.WEEKLY,
    "SEMANALMENTE": Occurrence.WEEKLY,
    "SINGLE": Occurrence.SINGLE,
    "EVENTO_UNICO": Occurrence.SINGLE,
}

STATUS_ALIASES = {
    "PENDING": ReserveStatus.PENDING,
    "PENDENTE": ReserveStatus.PENDING,
    "CONFIRMED": ReserveStatus.CONFIRMED,
    "CONFIRMADA": ReserveStatus.CONFIRMED,
    "ACCEPTED": ReserveStatus.CONFIRMED,
    "ACEITA": ReserveStatus.CONFIRMED,
    "REFUSED": ReserveStatus.REFUSED,
    "RECUSADA": ReserveStatus.REFUSED,
}

TYPE_LABELS = {
    TypeReserve.SPORT: "OFÍCIO",
    TypeReserve.CLASSROOM: "AULA",
    TypeReserve.EVENT: "EVENTO",
}


# ==========================================
# VALIDADORES COMPARTILHADOS
# ==========================================

def _normalize_key(value: Any) -> str:
    return str(value).strip().upper().replace(" ", "_")


def parse_occurrence(value: Any) -> Occurrence:
    """Aceita WEEKLY/SINGLE e as grafias do backend (SEMANALMENTE/EVENTO_UNICO)."""
    if isinstance(value, Occurrence):
        return value
    try:
        return OCCURRENCE_ALIASES[_normalize_key(value)]
    except KeyError:
        raise ValueError(f"Ocorrência desconhecida: {value!r}")


def parse_status(value: Any) -> Optional[ReserveStatus]:
    """Status em qualquer caixa; texto desconhecido vira None."""
    if value is None or isinstance(value, ReserveStatus):
        return value
    return STATUS_ALIASES.get(_normalize_key(value))


def parse_role(value: Any) -> Optional[Role]:
    """Papel do usuário; qualquer valor fora de USER/PE_ADMIN/SISTEMA_ADMIN vira None."""
    if isinstance(value, Role):
        return value
    if value is None:
        return None
    try:
        return Role(_normalize_key(value))
    except ValueError:
        return None


def _optional_int(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _record(value: Any) -> Dict[str, Any]:
    """Sub-registro do payload; qualquer coisa que não seja objeto vira {}."""
    return value if isinstance(value, dict) else {}


# ==========================================
# DETALHE DA RESERVA (UNIÃO DISCRIMINADA)
# ==========================================

class SportDetail(BaseModel):
    """Reserva de quadra (ofício)."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["sport"] = "sport"
    type_practice: str = Field(default="", description="TREINO, AMISTOSO, RECREACAO")
    number_participants: Optional[int] = None
    participants: str = ""
    request_equipment: str = ""


class ClassroomDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["classroom"] = "classroom"
    course: str = ""
    matter: str = ""


class EventDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["event"] = "event"
    name: str = ""
    description: str = ""
    location: str = ""


ReservationDetail = Annotated[
    Union[SportDetail, ClassroomDetail, EventDetail],
    Field(discriminator="kind"),
]

TYPE_BY_KIND = {
    "sport": TypeReserve.SPORT,
    "classroom": TypeReserve.CLASSROOM,
    "event": TypeReserve.EVENT,
}

ROUTE_BY_KIND = {
    "sport": "reserve-sport",
    "classroom": "reserve-classroom",
    "event": "reserve-event",
}


def _detail_from_payload(payload: Dict[str, Any]) -> Optional[Union[SportDetail, ClassroomDetail, EventDetail]]:
    """Escolhe o sub-registro presente (sport/classroom/event) no payload do backend."""
    sport = _record(payload.get("sport"))
    if sport:
        return SportDetail(
            type_practice=_text(sport.get("typePractice") or sport.get("type_Practice")),
            number_participants=_optional_int(
                sport.get("numberParticipants", sport.get("number_People"))
            ),
            participants=_text(sport.get("participants")),
            request_equipment=_text(sport.get("requestEquipment") or sport.get("request_Equipment")),
        )

    classroom = _record(payload.get("classroom"))
    if classroom:
        return ClassroomDetail(
            course=_text(classroom.get("course")),
            matter=_text(classroom.get("matter")),
        )

    event = _record(payload.get("event"))
    if event:
        return EventDetail(
            name=_text(event.get("name")),
            description=_text(event.get("description")),
            location=_text(event.get("location")),
        )

    # Formato antigo: campos de esporte soltos no topo
    if payload.get("type_Practice") is not None:
        return SportDetail(
            type_practice=_text(payload.get("type_Practice")),
            number_participants=_optional_int(payload.get("number_People")),
            participants=_text(payload.get("participants")),
            request_equipment=_text(payload.get("request_Equipment")),
        )

    return None


# ==========================================
# RESERVA
# ==========================================

class Requester(BaseModel):
    """Quem pediu a reserva."""
    model_config = ConfigDict(frozen=True)

    id: str = ""
    name: str = ""
    role: str = ""


class Reservation(BaseModel):
    """
    Reserva como o calendário a enxerga (somente leitura).

    Para reservas WEEKLY só o dia da semana e o horário de
    date_time_start/date_time_end importam; a data absoluta é apenas a
    primeira ocorrência.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    occurrence: Occurrence = Occurrence.SINGLE
    date_time_start: Optional[datetime] = None
    date_time_end: Optional[datetime] = None
    status: Optional[ReserveStatus] = None
    requester: Requester = Field(default_factory=Requester)
    comments: Optional[str] = None
    answered_by: Optional[str] = None
    detail: ReservationDetail

    @field_validator("occurrence", mode="before")
    @classmethod
    def validate_occurrence(cls, v: Any) -> Occurrence:
        if v in (None, ""):
            return Occurrence.SINGLE
        return parse_occurrence(v)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v: Any) -> Optional[ReserveStatus]:
        return parse_status(v)

    @field_validator("date_time_start", "date_time_end", mode="before")
    @classmethod
    def validate_instant(cls, v: Any) -> Optional[datetime]:
        """Converte qualquer representação aceita; o que não der vira None."""
        from calendar_logic import parse_instant
        return parse_instant(v)

    @computed_field
    @property
    def type_reserve(self) -> TypeReserve:
        return TYPE_BY_KIND[self.detail.kind]

    @property
    def type_label(self) -> str:
        return TYPE_LABELS[self.type_reserve]

    @property
    def title(self) -> str:
        """Texto curto mostrado na célula do calendário."""
        if isinstance(self.detail, SportDetail):
            title = self.detail.type_practice
        elif isinstance(self.detail, ClassroomDetail):
            title = self.detail.matter
        else:
            title = self.detail.name
        return (title or self.type_label).lower()

    @property
    def backend_route(self) -> str:
        return ROUTE_BY_KIND[self.detail.kind]

    @property
    def duration_label(self) -> str:
        if not self.date_time_start or not self.date_time_end:
            return ""
        minutes = int((self.date_time_end - self.date_time_start).total_seconds() // 60)
        if minutes <= 0:
            return ""
        hours, rest = divmod(minutes, 60)
        return f"{hours}h {rest}m" if rest else f"{hours}h"

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Reservation":
        """
        Constrói a reserva a partir do JSON do backend.

        Aceita o formato atual (dateTimeStart/dateTimeEnd, user, sport|classroom|event)
        e o formato antigo só de esporte (reserve.date_Start + reserve.hour_Start).

        Raises:
            ValueError: sem id ou sem tipo de reserva identificável.
        """
        from calendar_logic import combine_date_time

        if payload.get("id") in (None, ""):
            raise ValueError("Reserva sem id")
        reservation_id = str(payload["id"])

        detail = _detail_from_payload(payload)
        if detail is None:
            raise ValueError(f"Reserva {reservation_id} sem tipo identificável")

        legacy = payload.get("reserve")
        if isinstance(legacy, dict):
            user = _record(legacy.get("user"))
            return cls(
                id=reservation_id,
                occurrence=legacy.get("ocurrence") or legacy.get("occurrence"),
                date_time_start=combine_date_time(legacy.get("date_Start"), legacy.get("hour_Start")),
                date_time_end=combine_date_time(
                    legacy.get("date_End") or legacy.get("date_Start"), legacy.get("hour_End")
                ),
                status=legacy.get("status") or payload.get("status"),
                requester=Requester(
                    id=_text(user.get("id")),
                    name=_text(user.get("name")),
                    role=_text(user.get("role")),
                ),
                detail=detail,
            )

        user = _record(payload.get("user"))
        return cls(
            id=reservation_id,
            occurrence=payload.get("occurrence") or payload.get("ocurrence"),
            date_time_start=payload.get("dateTimeStart"),
            date_time_end=payload.get("dateTimeEnd"),
            status=payload.get("status"),
            requester=Requester(
                id=_text(user.get("id")),
                name=_text(user.get("name")),
                role=_text(user.get("role")),
            ),
            comments=payload.get("comments"),
            answered_by=payload.get("answeredBy"),
            detail=detail,
        )


# ==========================================
# CALENDÁRIO
# ==========================================

class CalendarCell(BaseModel):
    """Cruzamento (dia, faixa de uma hora) da grade semanal. Derivado, nunca persistido."""
    model_config = ConfigDict(frozen=True)

    day_date: date
    slot_start: time
    slot_end: time

    @property
    def start(self) -> datetime:
        return datetime.combine(self.day_date, self.slot_start)

    @property
    def end(self) -> datetime:
        end = datetime.combine(self.day_date, self.slot_end)
        # Faixa terminando à meia-noite
        if end <= self.start:
            end += timedelta(days=1)
        return end


class NavigationState(BaseModel):
    current_date: date
    view_mode: ViewMode = ViewMode.WEEK


# ==========================================
# AÇÕES (executadas pelo shell de UI)
# ==========================================

class NavigateTo(BaseModel):
    kind: Literal["navigate"] = "navigate"
    route: str


class OpenReservationTypeSelector(BaseModel):
    kind: Literal["select_reservation_type"] = "select_reservation_type"


class OpenReservationDetail(BaseModel):
    kind: Literal["reservation_detail"] = "reservation_detail"
    reservation_id: str
    editable: bool = False


class OpenDayReservations(BaseModel):
    kind: Literal["day_reservations"] = "day_reservations"
    day_date: date
    reservation_ids: List[str] = Field(default_factory=list)


CellAction = Annotated[
    Union[NavigateTo, OpenReservationTypeSelector, OpenReservationDetail, OpenDayReservations],
    Field(discriminator="kind"),
]


# ==========================================
# DTOs DE SAÍDA
# ==========================================

class UserDTO(BaseModel):
    """Usuário autenticado (somente leitura)."""
    user_id: str
    role: Optional[Role] = None
    raw_role: str = ""
    is_admin: bool = False


class CellDTO(BaseModel):
    day_date: date
    slot_start: time
    slot_end: time
    reservations: List[Reservation] = Field(default_factory=list)


class SlotRowDTO(BaseModel):
    slot_start: time
    slot_end: time
    cells: List[CellDTO] = Field(default_factory=list)


class WeekGridDTO(BaseModel):
    """Grade segunda-sábado x 07:00-22:00."""
    week_start: date
    days: List[date]
    rows: List[SlotRowDTO]
    today_disabled: bool = False


class MonthDayDTO(BaseModel):
    day_date: date
    in_month: bool
    is_today: bool = False
    reservations: List[Reservation] = Field(default_factory=list)


class MonthGridDTO(BaseModel):
    year: int
    month: int
    days: List[MonthDayDTO]
    today_disabled: bool = False


class NavigationDTO(BaseModel):
    current_date: date
    view_mode: ViewMode
    visible_start: date
    visible_end: date
    today_disabled: bool
