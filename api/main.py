"""
Campus Reservas API - Main Application
=======================================

HYBRID MONOLITH ARCHITECTURE:
- FastAPI layer in /api/ folder
- Imports services from root services.py (Single Source of Truth)
- Imports schemas from root schemas.py
- Streamlit app (app.py) uses the same services

Run with: python -m uvicorn api.main:app --reload --port 8000
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Import routers
from api.v1.endpoints import auth, calendar, reservations
from config import API_URL, CORS_ORIGINS

# Create FastAPI app
app = FastAPI(
    title="Campus Reservas API",
    version="1.0.0",
    description="""
## Campus Reservas - Calendar API

Weekly/monthly calendar over the reservation backend (sport courts,
classrooms and events).

### Architecture
- **Single Source of Truth**: All calendar logic in root `calendar_logic.py` and `services.py`
- **Shared Schemas**: Root `schemas.py` used by both Streamlit and FastAPI
- **Smart Decorator**: `@with_client` detects if a backend client is injected or needs creation

### Endpoints
- **Auth**: Login against the backend, current user
- **Calendar**: Week/month grids, cell occupants, click actions, navigation
- **Reservations**: Confirmed reservations and details
""",
    docs_url="/docs",
    redoc_url="/redoc",
)


# ==========================================
# MIDDLEWARE
# ==========================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==========================================
# ROUTERS
# ==========================================

app.include_router(auth.router, prefix="/api/v1/auth", tags=["Authentication"])
app.include_router(calendar.router, prefix="/api/v1/calendar", tags=["Calendar"])
app.include_router(reservations.router, prefix="/api/v1/reservations", tags=["Reservations"])


# ==========================================
# HEALTH ENDPOINTS
# ==========================================

@app.get("/", tags=["Health"])
def root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "api": "Campus Reservas API",
        "version": "1.0.0",
        "architecture": "Hybrid Monolith",
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "backend": API_URL,
        "cors_origins": CORS_ORIGINS,
        "services": "Imported from root services.py"
    }
