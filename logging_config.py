"""
Campus Reservas - Configuração Centralizada de Logging
=======================================================

Um único logger raiz ("campus_reservas") compartilhado pelo app Streamlit,
pela API e pelo motor do calendário:
- Console: DEBUG em desenvolvimento, INFO em produção
- Arquivo rotativo com tudo a partir de INFO
- Arquivo rotativo só com erros

Uso:
    from logging_config import get_logger
    logger = get_logger(__name__)
    logger.info("Grade semanal montada")
"""

import logging
from logging.handlers import RotatingFileHandler

from config import ENVIRONMENT, LOG_DIR

ROOT_LOGGER_NAME = "campus_reservas"

MAX_BYTES = 5 * 1024 * 1024  # 5 MB
BACKUP_COUNT = 3

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _rotating_handler(filename: str, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        LOG_DIR / filename,
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(environment: str = ENVIRONMENT) -> logging.Logger:
    """
    Configura o logger raiz da aplicação (idempotente).

    Args:
        environment: "development" ou "production"

    Returns:
        Logger raiz configurado
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)

    # Já configurado (ex.: rerun do Streamlit)
    if root_logger.handlers:
        return root_logger

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    root_logger.setLevel(logging.DEBUG)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO if environment == "production" else logging.DEBUG)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    root_logger.addHandler(_rotating_handler("campus_reservas.log", logging.INFO, formatter))
    root_logger.addHandler(_rotating_handler("campus_reservas_errors.log", logging.ERROR, formatter))

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Retorna um logger filho do logger raiz.

    Args:
        name: Nome do módulo (usar __name__)
    """
    if not logging.getLogger(ROOT_LOGGER_NAME).handlers:
        setup_logging()
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


_root_logger = setup_logging()
