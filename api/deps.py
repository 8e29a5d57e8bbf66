"""
Campus Reservas API - Dependency Injection
===========================================

Provides the backend client, the reservation feed, the clock and the
per-request AuthContext for FastAPI endpoints.
Works with the Hybrid Monolith pattern - imports from root.
"""

from datetime import date
from typing import Callable, Generator, Tuple

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

# Import from ROOT - Single Source of Truth
from backend_client import ReservationApiClient
from errors import AuthenticationError
from logging_config import get_logger
from schemas import Reservation
from services import ReservationFeed, ReservationService
from session import AuthContext

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

# One feed per process: the confirmed list is the same for every user
_feed = ReservationFeed()


def get_client() -> Generator[ReservationApiClient, None, None]:
    """
    Backend client dependency for FastAPI.

    The smart @with_client decorator in services.py will detect this
    injected client and use it instead of creating its own.

    Usage:
        @router.get("/")
        def list_items(client: ReservationApiClient = Depends(get_client)):
            return ReservationService.refresh(client, ...)
    """
    client = ReservationApiClient()
    try:
        yield client
    finally:
        client.close()


def get_feed() -> ReservationFeed:
    return _feed


def get_clock() -> Callable[[], date]:
    return date.today


def get_auth_context(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> AuthContext:
    """Builds the AuthContext from `Authorization: Bearer <token>`."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return AuthContext.from_token(credentials.credentials)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_reservations(
    auth: AuthContext = Depends(get_auth_context),
    client: ReservationApiClient = Depends(get_client),
    feed: ReservationFeed = Depends(get_feed),
) -> Tuple[Reservation, ...]:
    """
    Refreshes the feed and returns the reservations this request fetched.

    A failed fetch still serves the previous snapshot; only when there is
    nothing to serve at all the request fails with 502.
    """
    try:
        result = ReservationService.refresh(client, feed, auth)
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

    if result.error and not result.reservations:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.error)
    return result.reservations
