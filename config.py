"""
Campus Reservas - Configuração
===============================

Lê variáveis de ambiente (arquivo .env opcional na raiz do projeto) e expõe
constantes usadas pelo app Streamlit, pela API FastAPI e pelo motor do
calendário.

Uso:
    from config import API_URL, FIRST_SLOT_HOUR
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(os.path.abspath(os.path.dirname(__file__)))

# ==========================================
# BACKEND DE RESERVAS
# ==========================================

API_URL = os.getenv("API_URL", "http://localhost:4000/")
API_TIMEOUT_SECONDS = float(os.getenv("API_TIMEOUT_SECONDS", "10"))

# Reservas já aceitas (o backend filtra por status)
RESERVES_CONFIRMED_PATH = os.getenv("RESERVES_CONFIRMED_PATH", "reserve-sport/reserves")
RESERVES_USER_PATH = os.getenv("RESERVES_USER_PATH", "reserve/reserves-user")
LOGIN_PATH = os.getenv("LOGIN_PATH", "auth/login")

# ==========================================
# AMBIENTE / LOGGING
# ==========================================

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

# Fuso do campus: instantes com fuso vindos do backend são exibidos nesta hora local
TIME_ZONE = os.getenv("TIME_ZONE", "America/Sao_Paulo")
LOG_DIR = Path(os.getenv("LOG_DIR", str(BASE_DIR / "logs")))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:8501",
    ).split(",")
    if origin.strip()
]

# ==========================================
# CALENDÁRIO
# ==========================================

FIRST_SLOT_HOUR = 7          # primeira linha da grade: 07:00
SLOT_COUNT = 16              # 07:00 ... 22:00
SLOT_MINUTES = 60
WEEK_GRID_DAYS = 6           # segunda a sábado, domingo fica fora da grade semanal
MONTH_GRID_DAYS = 42         # 6 semanas completas

REQUEST_RESERVATION_ROUTE = "/request-reservation"
