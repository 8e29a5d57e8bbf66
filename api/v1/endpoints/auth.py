"""
Campus Reservas API - Authentication Endpoints
===============================================

HYBRID MONOLITH: Imports from root services.py and schemas.py
"""

from fastapi import APIRouter, Depends, HTTPException, status

# Import from API deps
from api.deps import get_auth_context, get_client

# IMPORT FROM ROOT - Single Source of Truth
from backend_client import ReservationApiClient
from errors import AuthenticationError, FetchFailure
from services import AuthService
from schemas import UserDTO
from session import AuthContext, SessionStore

router = APIRouter()


# ==========================================
# SCHEMAS (API-specific, not in root schemas.py)
# ==========================================

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Request body for login endpoint."""
    email: str = Field(..., min_length=1, description="E-mail")
    password: str = Field(..., min_length=1, description="Password")


class LoginResponse(BaseModel):
    """Response from successful login."""
    access_token: str
    token_type: str = "bearer"
    user: UserDTO


# ==========================================
# ENDPOINTS
# ==========================================

@router.post(
    "/login",
    response_model=LoginResponse,
    summary="User Login",
    description="Authenticate against the reservation backend and return its access token."
)
def login(credentials: LoginRequest, client: ReservationApiClient = Depends(get_client)):
    """
    The API is stateless: the session lives only for this request, the
    caller keeps the token and sends it back as a Bearer header.
    """
    try:
        context = AuthService.login(client, SessionStore(), credentials.email, credentials.password)
    except AuthenticationError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid e-mail or password"
        )
    except FetchFailure as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return LoginResponse(access_token=context.token, user=context.to_user())


@router.get(
    "/me",
    response_model=UserDTO,
    summary="Current User",
    description="Identity and role read from the bearer token."
)
def me(auth: AuthContext = Depends(get_auth_context)):
    return auth.to_user()
