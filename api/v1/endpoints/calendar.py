"""
Campus Reservas API - Calendar Endpoints
=========================================

HYBRID MONOLITH: Imports from root services.py and schemas.py
"""

from datetime import date, time
from typing import Callable, List, Literal, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query, status

# Import from API deps
from api.deps import get_auth_context, get_clock, get_reservations

# IMPORT FROM ROOT - Single Source of Truth
from calendar_logic import hour_slots, occupants, reservations_for_day
from services import CalendarViewController, InteractionPolicy
from schemas import (
    CalendarCell,
    CellAction,
    MonthGridDTO,
    NavigationDTO,
    NavigationState,
    Reservation,
    ViewMode,
    WeekGridDTO,
)
from session import AuthContext

router = APIRouter()


# ==========================================
# API-SPECIFIC SCHEMAS
# ==========================================

from pydantic import BaseModel, Field


class CellClickRequest(BaseModel):
    """Click on a week grid cell."""
    day_date: date
    hour: int = Field(..., description="Slot start hour (07-22)")


class MonthDayClickRequest(BaseModel):
    day_date: date


class ClickResponse(BaseModel):
    """Occupants of the clicked cell/day and the action the UI should run (None = nothing)."""
    reservations: List[Reservation] = Field(default_factory=list)
    action: Optional[CellAction] = None


def _cell_for(day: date, hour: int) -> CalendarCell:
    for slot_start, slot_end in hour_slots():
        if slot_start == time(hour):
            return CalendarCell(day_date=day, slot_start=slot_start, slot_end=slot_end)
    raise HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=f"No calendar slot starts at {hour:02d}:00"
    )


# ==========================================
# ENDPOINTS
# ==========================================

@router.get(
    "/week",
    response_model=WeekGridDTO,
    summary="Get Week Grid",
    description="Monday-Saturday x hourly slots for the week containing `date` (default: today)."
)
def get_week_grid(
    day: Optional[date] = Query(None, alias="date", description="Any day of the week"),
    reservations: Tuple[Reservation, ...] = Depends(get_reservations),
    clock: Callable[[], date] = Depends(get_clock),
):
    controller = CalendarViewController(clock, NavigationState(current_date=day or clock()))
    return controller.week_grid(reservations)


@router.get(
    "/month",
    response_model=MonthGridDTO,
    summary="Get Month Grid",
    description="42 days starting on the Sunday on or before the 1st of the month."
)
def get_month_grid(
    year: int = Query(..., ge=2000, le=2100, description="Year"),
    month: int = Query(..., ge=1, le=12, description="Month (1-12)"),
    reservations: Tuple[Reservation, ...] = Depends(get_reservations),
    clock: Callable[[], date] = Depends(get_clock),
):
    controller = CalendarViewController(clock, NavigationState(current_date=clock(), view_mode=ViewMode.MONTH))
    controller.pick_month(year, month)
    return controller.month_grid(reservations)


@router.get(
    "/cell",
    response_model=List[Reservation],
    summary="Get Cell Occupants",
    description="Reservations occupying the one-hour slot starting at `hour` on `day`."
)
def get_cell_occupants(
    day: date = Query(..., description="Cell date"),
    hour: int = Query(..., description="Slot start hour (07-22)"),
    reservations: Tuple[Reservation, ...] = Depends(get_reservations),
):
    return occupants(_cell_for(day, hour), reservations)


@router.post(
    "/cell/click",
    response_model=ClickResponse,
    summary="Click Week Cell",
    description="Resolve what clicking an empty or occupied week cell does for the signed-in role."
)
def click_cell(
    data: CellClickRequest,
    auth: AuthContext = Depends(get_auth_context),
    reservations: Tuple[Reservation, ...] = Depends(get_reservations),
):
    cell_occupants = occupants(_cell_for(data.day_date, data.hour), reservations)
    action = InteractionPolicy.on_cell_click(cell_occupants, auth.role)
    return ClickResponse(reservations=cell_occupants, action=action)


@router.post(
    "/month/day/click",
    response_model=ClickResponse,
    summary="Click Month Day",
    description="Several reservations open the day list; otherwise the empty-cell rule applies."
)
def click_month_day(
    data: MonthDayClickRequest,
    auth: AuthContext = Depends(get_auth_context),
    reservations: Tuple[Reservation, ...] = Depends(get_reservations),
):
    events = reservations_for_day(data.day_date, reservations)
    action = InteractionPolicy.on_month_day_click(data.day_date, events, auth.role)
    return ClickResponse(reservations=events, action=action)


@router.get(
    "/navigation",
    response_model=NavigationDTO,
    summary="Navigate",
    description="Apply a navigation move (previous/next/today) to a date and view and return the new state."
)
def navigate(
    day: Optional[date] = Query(None, alias="date", description="Current anchor date (default: today)"),
    view: ViewMode = Query(ViewMode.WEEK, description="WEEK or MONTH"),
    move: Literal["previous", "next", "today", "none"] = Query("none"),
    auth: AuthContext = Depends(get_auth_context),
    clock: Callable[[], date] = Depends(get_clock),
):
    controller = CalendarViewController(clock, NavigationState(current_date=day or clock(), view_mode=view))
    if move == "previous":
        controller.go_to_previous()
    elif move == "next":
        controller.go_to_next()
    elif move == "today":
        controller.go_to_today()
    return controller.navigation()
