import streamlit as st
import pandas as pd
from typing import Sequence
from pydantic import ValidationError
from logging_config import get_logger

# Logger para este módulo
logger = get_logger(__name__)

# Importar Serviços e Esquemas
from errors import AuthenticationError, FetchFailure
from schemas import (
    NavigateTo, OpenDayReservations, OpenReservationDetail, OpenReservationTypeSelector,
    CalendarCell, Reservation, SportDetail, ClassroomDetail, ViewMode,
)
from services import (
    AuthService, CalendarViewController, InteractionPolicy,
    ReservationFeed, ReservationService,
)
from session import SessionStore
from calendar_logic import hour_slots, occupants

# --- 1. CONFIGURAÇÃO INICIAL ---
st.set_page_config(page_title="Campus Reservas - Calendário", page_icon="📅", layout="wide")

# --- 2. CONSTANTES ---
MESES_PT = [
    "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro"
]

DIAS_SEMANA = ["Seg", "Ter", "Qua", "Qui", "Sex", "Sáb", "Dom"]
# Cabeçalho da grade mensal (começa no domingo)
DIAS_MES = ["Dom", "Seg", "Ter", "Qua", "Qui", "Sex", "Sáb"]

TIPOS_RESERVA = {
    "sport": "Ofício",
    "classroom": "Aula",
    "event": "Evento",
}

store = SessionStore(st.session_state)


# --- 3. FUNÇÕES AUXILIARES UI ---
def _format_validation_error(e: ValidationError) -> str:
    """Extrai mensagens legíveis de um ValidationError do Pydantic."""
    errors = e.errors()
    messages = []
    for err in errors:
        field = " -> ".join(str(loc) for loc in err['loc'])
        msg = err['msg']
        messages.append(f"• {field}: {msg}")
    return "Erro de validação:\n" + "\n".join(messages)


def _feed() -> ReservationFeed:
    if "feed" not in st.session_state:
        st.session_state.feed = ReservationFeed()
    return st.session_state.feed


def _controller() -> CalendarViewController:
    if "controller" not in st.session_state:
        st.session_state.controller = CalendarViewController()
    return st.session_state.controller


def logout():
    AuthService.logout(store, _feed())
    st.session_state.pop("action", None)
    st.session_state.pop("fetch_key", None)
    st.rerun()


def carregar_reservas(controller: CalendarViewController, forcar: bool = False) -> Sequence[Reservation]:
    """
    Busca as reservas confirmadas ao abrir o calendário e quando a navegação muda.
    Nos demais reruns usa a última lista; em falha mantém a lista e avisa sem bloquear.
    """
    feed = _feed()
    if not forcar and st.session_state.get("fetch_key") == controller.fetch_key:
        return feed.snapshot

    try:
        result = ReservationService.refresh(feed=feed, auth=store.require())
    except AuthenticationError as e:
        logger.warning(f"Sessão expirada: {e}")
        st.error("Sessão expirada. Entre novamente.")
        AuthService.logout(store, feed)
        st.session_state.pop("fetch_key", None)
        st.stop()
    if result.error:
        st.toast(result.error, icon="⚠️")
    else:
        st.session_state.fetch_key = controller.fetch_key
    return result.reservations


# --- 4. EXECUÇÃO DE AÇÕES ---
def executar_acao(action, reservations: Sequence[Reservation]):
    """Mostra na tela o resultado de um clique decidido pela InteractionPolicy."""
    if action is None:
        return

    if isinstance(action, NavigateTo):
        st.info(f"➡️ Abrir solicitação de reserva: `{action.route}`")

    elif isinstance(action, OpenReservationTypeSelector):
        st.markdown("#### Tipo de reserva")
        kind = st.radio(
            "Escolha o tipo",
            list(TIPOS_RESERVA),
            format_func=lambda k: TIPOS_RESERVA[k],
            horizontal=True,
            key="tipo_reserva",
        )
        if st.button("Continuar", key="btn_tipo_reserva", type="primary"):
            st.session_state.action = InteractionPolicy.select_reservation_type(kind)
            st.rerun()

    elif isinstance(action, OpenReservationDetail):
        reservation = ReservationService.find(reservations, action.reservation_id)
        if reservation is None:
            st.warning(f"Reserva {action.reservation_id} não está mais no calendário")
            return
        render_reservation_detail(reservation, action.editable)

    elif isinstance(action, OpenDayReservations):
        st.markdown(f"### 📅 Reservas de {action.day_date.strftime('%d/%m/%Y')}")
        for i, res_id in enumerate(action.reservation_ids):
            reservation = ReservationService.find(reservations, res_id)
            if reservation is not None:
                with st.expander(f"{reservation.type_label} · {reservation.title}", expanded=(i == 0)):
                    render_reservation_detail(reservation, InteractionPolicy.on_occupant_click(reservation, store.current()).editable)


def render_reservation_detail(reservation: Reservation, editable: bool):
    inicio = reservation.date_time_start.strftime("%d/%m/%Y %H:%M") if reservation.date_time_start else "-"
    fim = reservation.date_time_end.strftime("%H:%M") if reservation.date_time_end else "-"
    st.write(f"**{reservation.type_label}** · {reservation.title}")
    st.write(f"🕒 {inicio} - {fim} ({reservation.duration_label}) · {reservation.occurrence.value}")
    st.write(f"👤 {reservation.requester.name or '-'} ({reservation.requester.role or '-'})")

    detail = reservation.detail
    if isinstance(detail, SportDetail):
        st.caption(f"Participantes: {detail.number_participants or '-'} · Material: {detail.request_equipment or '-'}")
    elif isinstance(detail, ClassroomDetail):
        st.caption(f"Curso: {detail.course or '-'} · Matéria: {detail.matter or '-'}")
    else:
        st.caption(f"Local: {detail.location or '-'} · {detail.description}")

    if reservation.comments:
        st.caption(f"💬 {reservation.comments}")
    if editable:
        st.success("✏️ Você pode editar esta reserva")
    else:
        st.caption("Somente leitura")


# --- 5. CALENDÁRIO ---
def render_week_grid(controller: CalendarViewController, reservations: Sequence[Reservation]):
    grid = controller.week_grid(reservations)
    col_names = [f"{DIAS_SEMANA[d.weekday()]} {d.strftime('%d/%m')}" for d in grid.days]

    rows = []
    for row in grid.rows:
        row_data = {"Horário": row.slot_start.strftime("%H:%M")}
        for name, cell in zip(col_names, row.cells):
            row_data[name] = " / ".join(r.title for r in cell.reservations)
        rows.append(row_data)

    df_semanal = pd.DataFrame(rows).set_index("Horário")
    st.dataframe(
        df_semanal.style.map(lambda x: "background-color: #c8e6c9; color: black; font-weight: bold" if x != "" else ""),
        use_container_width=True, height=600
    )

    # Seleção de célula
    col_dia, col_hora, col_btn = st.columns([2, 2, 1])
    dia = col_dia.selectbox("Dia", grid.days, format_func=lambda d: f"{DIAS_SEMANA[d.weekday()]} {d.strftime('%d/%m')}")
    slot = col_hora.selectbox("Horário", hour_slots(), format_func=lambda s: f"{s[0]:%H:%M} - {s[1]:%H:%M}")
    cell = CalendarCell(day_date=dia, slot_start=slot[0], slot_end=slot[1])
    cell_occupants = occupants(cell, reservations)

    if not cell_occupants:
        if col_btn.button("Selecionar", key="btn_celula"):
            auth = store.require()
            action = InteractionPolicy.on_cell_click(cell_occupants, auth.role)
            if action is None:
                st.warning(f"Papel sem permissão para reservar: {auth.raw_role or '-'}")
            st.session_state.action = action
        return

    for reservation in cell_occupants:
        if st.button(f"{reservation.type_label} · {reservation.title}", key=f"occ_{reservation.id}"):
            st.session_state.action = InteractionPolicy.on_occupant_click(reservation, store.current())


def render_month_grid(controller: CalendarViewController, reservations: Sequence[Reservation]):
    """Renderiza a grade mensal (42 dias) com HTML/CSS usando st.components."""
    import streamlit.components.v1 as components

    grid = controller.month_grid(reservations)

    css = """
    <style>
        .calendar-container { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; padding: 10px; }
        .calendar-header, .calendar-grid { display: grid; grid-template-columns: repeat(7, 1fr); gap: 3px; }
        .calendar-header { text-align: center; font-weight: 600; color: #888; font-size: 11px; padding: 8px 0; }
        .day-cell { min-height: 70px; border-radius: 6px; padding: 4px; font-size: 12px; background: #2a2a2a; color: #ddd; border: 1px solid #444; }
        .day-out { opacity: 0.35; }
        .day-today { box-shadow: 0 0 0 2px #3b82f6; font-weight: bold; }
        .event { display: block; margin-top: 2px; padding: 1px 3px; border-radius: 3px; background: #2d6a4f; color: #d8f3dc; font-size: 10px; overflow: hidden; white-space: nowrap; }
    </style>
    """

    header_html = '<div class="calendar-header">' + "".join(f"<span>{d}</span>" for d in DIAS_MES) + '</div>'

    grid_html = '<div class="calendar-grid">'
    for day in grid.days:
        classes = "day-cell"
        if not day.in_month:
            classes += " day-out"
        if day.is_today:
            classes += " day-today"
        events_html = "".join(
            f'<span class="event">{r.date_time_start:%H:%M} {r.title}</span>' for r in day.reservations
        )
        grid_html += f'<div class="{classes}">{day.day_date.day}{events_html}</div>'
    grid_html += '</div>'

    components.html(f'<div class="calendar-container">{css}{header_html}{grid_html}</div>', height=560)

    # Clique num dia
    col_dia, col_btn = st.columns([3, 1])
    dia = col_dia.date_input(
        "Ver dia:",
        value=controller.state.current_date,
        min_value=grid.days[0],
        max_value=grid.days[-1],
        key="month_day",
    )
    if col_btn.button("Abrir", key="btn_dia"):
        day_dto = next((d for d in grid.days if d.day_date == dia), None)
        events = day_dto.reservations if day_dto else []
        st.session_state.action = InteractionPolicy.on_month_day_click(dia, events, store.require().role)


def render_navigation(controller: CalendarViewController):
    nav = controller.navigation()
    c_prev, c_today, c_next, c_label, c_view = st.columns([1, 1, 1, 4, 2])

    if c_prev.button("◀", key="nav_prev"):
        controller.go_to_previous()
        st.rerun()
    if c_today.button("Hoje", key="nav_today", disabled=controller.is_today_disabled()):
        controller.go_to_today()
        st.rerun()
    if c_next.button("▶", key="nav_next"):
        controller.go_to_next()
        st.rerun()

    if nav.view_mode == ViewMode.MONTH:
        c_label.markdown(f"### 📆 {MESES_PT[nav.current_date.month - 1]} {nav.current_date.year}")
    else:
        c_label.markdown(f"### 🗓️ {nav.visible_start.strftime('%d/%m')} - {nav.visible_end.strftime('%d/%m/%Y')}")

    view = c_view.radio(
        "Visão", [ViewMode.WEEK, ViewMode.MONTH],
        index=0 if nav.view_mode == ViewMode.WEEK else 1,
        format_func=lambda v: "Semana" if v == ViewMode.WEEK else "Mês",
        horizontal=True, label_visibility="collapsed",
    )
    if view != nav.view_mode:
        controller.switch_view(view)
        st.rerun()

    if nav.view_mode == ViewMode.MONTH:
        c_mes, c_ano = st.columns(2)
        mes = c_mes.selectbox("Mês", range(1, 13), index=nav.current_date.month - 1, format_func=lambda m: MESES_PT[m - 1])
        ano = c_ano.number_input("Ano", min_value=2000, max_value=2100, value=nav.current_date.year, step=1)
        if (int(ano), mes) != (nav.current_date.year, nav.current_date.month):
            controller.pick_month(int(ano), mes)
            st.rerun()


# --- 6. EXECUÇÃO PRINCIPAL ---

# A. Controle de Login
if store.current() is None:
    st.markdown("## 📅 Campus Reservas - Acesso")
    with st.form("login_form"):
        email = st.text_input("E-mail")
        senha = st.text_input("Senha", type="password")
        if st.form_submit_button("Entrar", type="primary"):
            try:
                AuthService.login(store=store, email=email, password=senha)
                st.rerun()
            except AuthenticationError:
                st.error("Credenciais incorretas")
            except FetchFailure as e:
                logger.error(f"Login indisponível: {e}")
                st.error("Servidor de reservas indisponível. Tente novamente.")
            except ValidationError as e:
                st.error(_format_validation_error(e))
    st.stop()

# B. Sidebar
auth_ctx = store.require()
with st.sidebar:
    st.write(f"👤 **{auth_ctx.user_id or '-'}** ({auth_ctx.raw_role or 'sem papel'})")
    if st.button("Sair"):
        logout()
    atualizar = st.button("🔄 Atualizar reservas")
    st.divider()
    if auth_ctx.is_admin:
        st.info("🛡️ Administrador: clique numa célula vazia para escolher o tipo de reserva")
    else:
        st.info("Clique numa célula vazia para solicitar uma reserva")

# C. Calendário
controller = _controller()
render_navigation(controller)
reservas = carregar_reservas(controller, forcar=atualizar)

if controller.state.view_mode == ViewMode.MONTH:
    render_month_grid(controller, reservas)
else:
    render_week_grid(controller, reservas)

st.divider()
executar_acao(st.session_state.get("action"), reservas)
