"""
Campus Reservas API - Reservation Endpoints
============================================

HYBRID MONOLITH: Imports from root services.py and schemas.py
"""

from typing import List, Literal, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query, status

# Import from API deps
from api.deps import get_auth_context, get_client, get_feed, get_reservations

# IMPORT FROM ROOT - Single Source of Truth
from backend_client import ReservationApiClient
from errors import AuthenticationError, FetchFailure
from services import InteractionPolicy, ReservationFeed, ReservationService
from schemas import ROUTE_BY_KIND, OpenReservationDetail, Reservation
from session import AuthContext

router = APIRouter()


# ==========================================
# API-SPECIFIC SCHEMAS
# ==========================================

from pydantic import BaseModel


class ReservationDetailResponse(BaseModel):
    """Read-only reservation plus whether the signed-in user may edit it."""
    reservation: Reservation
    action: OpenReservationDetail


# ==========================================
# ENDPOINTS
# ==========================================

@router.get(
    "",
    response_model=List[Reservation],
    summary="List Confirmed Reservations",
    description="Confirmed reservations shown by the calendar (last good snapshot on backend failure)."
)
def list_reservations(reservations: Tuple[Reservation, ...] = Depends(get_reservations)):
    return list(reservations)


@router.get(
    "/mine",
    response_model=List[Reservation],
    summary="List My Reservations",
    description="Reservations requested by the signed-in user, in any status."
)
def list_my_reservations(
    auth: AuthContext = Depends(get_auth_context),
    client: ReservationApiClient = Depends(get_client),
):
    try:
        return client.get_user_reservations(auth)
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    except FetchFailure as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.get(
    "/{reservation_id}",
    response_model=ReservationDetailResponse,
    summary="Get Reservation",
    description="Reservation detail with the `editable` flag (admins and the requester)."
)
def get_reservation(
    reservation_id: str,
    kind: Literal["sport", "classroom", "event"] = Query("sport", description="Used when the reservation is not in the calendar snapshot"),
    auth: AuthContext = Depends(get_auth_context),
    client: ReservationApiClient = Depends(get_client),
    feed: ReservationFeed = Depends(get_feed),
):
    reservation = ReservationService.find(feed.snapshot, reservation_id)
    if reservation is None:
        try:
            reservation = ReservationService.get_reservation(client, auth, ROUTE_BY_KIND[kind], reservation_id)
        except AuthenticationError as e:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
        except FetchFailure as e:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return ReservationDetailResponse(
        reservation=reservation,
        action=InteractionPolicy.on_occupant_click(reservation, auth),
    )
