from calendar import monthrange
from datetime import date, timedelta
from functools import wraps
from threading import Lock
from typing import Callable, Iterable, List, NamedTuple, Optional, Sequence, Tuple, Union

from backend_client import ReservationApiClient
from calendar_logic import (
    month_days,
    occupants,
    reservations_for_day,
    same_iso_week,
    week_cells,
    week_days,
)
from config import REQUEST_RESERVATION_ROUTE
from errors import FetchFailure
from logging_config import get_logger
from schemas import (
    ADMIN_ROLES,
    CellAction,
    CellDTO,
    MonthDayDTO,
    MonthGridDTO,
    NavigateTo,
    NavigationDTO,
    NavigationState,
    OpenDayReservations,
    OpenReservationDetail,
    OpenReservationTypeSelector,
    Reservation,
    Role,
    SlotRowDTO,
    ViewMode,
    WeekGridDTO,
    parse_role,
)
from session import AuthContext, SessionStore

logger = get_logger(__name__)

FETCH_FAILURE_MESSAGE = "Não foi possível carregar as reservas. Exibindo a última lista disponível."


# ==========================================
# CLIENT LIFECYCLE
# ==========================================

def with_client(func):
    """
    Smart decorator for the backend client lifecycle.

    - If a ReservationApiClient is the first argument or `client=` is given,
      use it as is (FastAPI mode: the client comes from Depends).
    - Otherwise create a client, pass it as first argument and close it
      afterwards (Streamlit mode).
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        if args and isinstance(args[0], ReservationApiClient):
            return func(*args, **kwargs)
        if kwargs.get("client") is not None:
            return func(*args, **kwargs)

        client = ReservationApiClient()
        try:
            return func(client, *args, **kwargs)
        finally:
            client.close()

    return wrapper


# ==========================================
# RESERVATION FEED
# ==========================================

class ReservationFeed:
    """
    Latest reservation snapshot shown by the calendar.

    Each fetch takes a generation number; only the newest generation may
    replace the snapshot, so a slow older response never overwrites a newer one.
    """

    def __init__(self):
        self._lock = Lock()
        self._generation = 0
        self._snapshot: Tuple[Reservation, ...] = ()

    @property
    def snapshot(self) -> Tuple[Reservation, ...]:
        return self._snapshot

    @property
    def latest_generation(self) -> int:
        return self._generation

    def begin_fetch(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def commit(self, generation: int, reservations: Iterable[Reservation]) -> bool:
        """Replaces the snapshot if `generation` is still the latest one."""
        with self._lock:
            if generation != self._generation:
                logger.info(f"Descartando resultado da busca {generation} (atual: {self._generation})")
                return False
            self._snapshot = tuple(reservations)
            return True


class RefreshResult(NamedTuple):
    reservations: Tuple[Reservation, ...]
    committed: bool
    error: Optional[str] = None


class ReservationService:
    """Fetches reservations from the backend into a ReservationFeed."""

    @staticmethod
    @with_client
    def refresh(client: ReservationApiClient, feed: ReservationFeed, auth: AuthContext) -> RefreshResult:
        """
        Loads the confirmed reservations and commits them to the feed.

        When a newer fetch started meanwhile the snapshot is left alone, but
        the result still carries the list this call fetched.
        A FetchFailure never propagates: the feed keeps its previous snapshot and
        the result carries a message for a non-blocking notification.
        AuthenticationError does propagate (the session must be renewed).
        """
        generation = feed.begin_fetch()
        try:
            reservations = client.get_confirmed_reservations(auth)
        except FetchFailure as e:
            logger.warning(f"refresh {generation}: {e}")
            return RefreshResult(feed.snapshot, False, FETCH_FAILURE_MESSAGE)

        if feed.commit(generation, reservations):
            return RefreshResult(feed.snapshot, True)
        # A newer fetch owns the snapshot; this caller still gets what it fetched
        return RefreshResult(tuple(reservations), False)

    @staticmethod
    @with_client
    def get_reservation(client: ReservationApiClient, auth: AuthContext, route: str, reservation_id: str) -> Reservation:
        return client.get_reservation(auth, route, reservation_id)

    @staticmethod
    def find(reservations: Iterable[Reservation], reservation_id: str) -> Optional[Reservation]:
        return next((r for r in reservations if r.id == reservation_id), None)


class AuthService:
    """Login/logout against the backend, keeping the session in a SessionStore."""

    @staticmethod
    @with_client
    def login(client: ReservationApiClient, store: SessionStore, email: str, password: str) -> AuthContext:
        token = client.login(email, password)
        return store.start(token)

    @staticmethod
    def logout(store: SessionStore, feed: Optional[ReservationFeed] = None) -> None:
        store.end()
        if feed is not None:
            # Invalidates in-flight fetches and clears the snapshot
            feed.commit(feed.begin_fetch(), ())


# ==========================================
# CALENDAR VIEW CONTROLLER
# ==========================================

def shift_month(day: date, months: int) -> date:
    """Same day `months` months away, clamped to the length of the target month."""
    years, month_index = divmod(day.month - 1 + months, 12)
    year = day.year + years
    month = month_index + 1
    return date(year, month, min(day.day, monthrange(year, month)[1]))


class CalendarViewController:
    """
    Navigation state of the calendar (anchor date + week/month view).

    Only explicit navigation calls change the state; building grids never does.
    """

    def __init__(self, clock: Callable[[], date] = date.today, state: Optional[NavigationState] = None):
        self._clock = clock
        self.state = state or NavigationState(current_date=clock(), view_mode=ViewMode.WEEK)

    def _set(self, **changes) -> NavigationState:
        self.state = self.state.model_copy(update=changes)
        return self.state

    # --- transitions ---

    def go_to_previous_week(self) -> NavigationState:
        return self._set(current_date=self.state.current_date - timedelta(days=7))

    def go_to_next_week(self) -> NavigationState:
        return self._set(current_date=self.state.current_date + timedelta(days=7))

    def go_to_previous_month(self) -> NavigationState:
        return self._set(current_date=shift_month(self.state.current_date, -1))

    def go_to_next_month(self) -> NavigationState:
        return self._set(current_date=shift_month(self.state.current_date, 1))

    def go_to_previous(self) -> NavigationState:
        if self.state.view_mode == ViewMode.MONTH:
            return self.go_to_previous_month()
        return self.go_to_previous_week()

    def go_to_next(self) -> NavigationState:
        if self.state.view_mode == ViewMode.MONTH:
            return self.go_to_next_month()
        return self.go_to_next_week()

    def pick_month(self, year: int, month: int) -> NavigationState:
        """Month/year picker; keeps the day of month when it exists."""
        day = min(self.state.current_date.day, monthrange(year, month)[1])
        return self._set(current_date=date(year, month, day))

    def go_to_today(self) -> NavigationState:
        """No-op when today is already visible."""
        if self.is_today_disabled():
            return self.state
        return self._set(current_date=self._clock())

    def switch_view(self, view_mode: Union[ViewMode, str]) -> NavigationState:
        return self._set(view_mode=ViewMode(view_mode))

    # --- queries ---

    def is_today_disabled(self) -> bool:
        today = self._clock()
        current = self.state.current_date
        if self.state.view_mode == ViewMode.MONTH:
            return (current.year, current.month) == (today.year, today.month)
        return same_iso_week(current, today)

    @property
    def fetch_key(self) -> Tuple[date, ViewMode]:
        """Changes only on navigation; the UI re-fetches when it changes."""
        return self.state.current_date, self.state.view_mode

    def visible_days(self) -> List[date]:
        current = self.state.current_date
        if self.state.view_mode == ViewMode.MONTH:
            return month_days(current.year, current.month)
        return week_days(current)

    def navigation(self) -> NavigationDTO:
        days = self.visible_days()
        return NavigationDTO(
            current_date=self.state.current_date,
            view_mode=self.state.view_mode,
            visible_start=days[0],
            visible_end=days[-1],
            today_disabled=self.is_today_disabled(),
        )

    def week_grid(self, reservations: Sequence[Reservation]) -> WeekGridDTO:
        """Monday-Saturday x hour slots, each cell with its occupants."""
        rows = []
        for row in week_cells(self.state.current_date):
            rows.append(SlotRowDTO(
                slot_start=row[0].slot_start,
                slot_end=row[0].slot_end,
                cells=[
                    CellDTO(
                        day_date=cell.day_date,
                        slot_start=cell.slot_start,
                        slot_end=cell.slot_end,
                        reservations=occupants(cell, reservations),
                    )
                    for cell in row
                ],
            ))

        days = week_days(self.state.current_date)
        return WeekGridDTO(
            week_start=days[0],
            days=days,
            rows=rows,
            today_disabled=same_iso_week(self.state.current_date, self._clock()),
        )

    def month_grid(self, reservations: Sequence[Reservation]) -> MonthGridDTO:
        current = self.state.current_date
        today = self._clock()
        days = [
            MonthDayDTO(
                day_date=day,
                in_month=day.month == current.month,
                is_today=day == today,
                reservations=reservations_for_day(day, reservations),
            )
            for day in month_days(current.year, current.month)
        ]
        return MonthGridDTO(
            year=current.year,
            month=current.month,
            days=days,
            today_disabled=(current.year, current.month) == (today.year, today.month),
        )


# ==========================================
# INTERACTION POLICY
# ==========================================

RESERVATION_TYPE_ROUTES = {
    "sport": REQUEST_RESERVATION_ROUTE,
    "classroom": f"{REQUEST_RESERVATION_ROUTE}?type=classroom",
    "event": f"{REQUEST_RESERVATION_ROUTE}?type=event",
}


class InteractionPolicy:
    """Decides what a click on the calendar does, by role and ownership."""

    @staticmethod
    def on_cell_click(cell_occupants: Sequence[Reservation], role: Union[Role, str, None]) -> Optional[CellAction]:
        """
        Empty cell: USER requests a reservation, admins pick the reservation type.
        Occupied cell or unknown role: no action (never raises).
        """
        if cell_occupants:
            return None

        parsed = parse_role(role)
        if parsed == Role.USER:
            return NavigateTo(route=REQUEST_RESERVATION_ROUTE)
        if parsed in ADMIN_ROLES:
            return OpenReservationTypeSelector()

        logger.debug(f"Clique ignorado para papel desconhecido: {role!r}")
        return None

    @staticmethod
    def on_occupant_click(reservation: Reservation, auth: Optional[AuthContext]) -> OpenReservationDetail:
        """Details are always readable; editable for admins and for the requester."""
        editable = False
        if auth is not None:
            editable = auth.is_admin or (
                bool(auth.user_id) and auth.user_id == reservation.requester.id
            )
        return OpenReservationDetail(reservation_id=reservation.id, editable=editable)

    @staticmethod
    def on_month_day_click(day: date, events: Sequence[Reservation], role: Union[Role, str, None]) -> Optional[CellAction]:
        """Several reservations open the day list; otherwise the empty-cell rule applies."""
        if len(events) > 1:
            return OpenDayReservations(day_date=day, reservation_ids=[r.id for r in events])
        return InteractionPolicy.on_cell_click([], role)

    @staticmethod
    def select_reservation_type(kind: str) -> Optional[NavigateTo]:
        route = RESERVATION_TYPE_ROUTES.get(kind)
        return NavigateTo(route=route) if route else None
