"""
Campus Reservas - Cliente do backend
=====================================

Única porta de entrada para a API REST de reservas (login, reservas aceitas,
detalhe de uma reserva). Toda chamada autenticada leva o token do
AuthContext recebido como argumento; nada é lido de estado global.
"""

from typing import Any, List, Optional
from urllib.parse import urljoin

import requests

from config import API_TIMEOUT_SECONDS, API_URL, LOGIN_PATH, RESERVES_CONFIRMED_PATH, RESERVES_USER_PATH
from errors import AuthenticationError, FetchFailure
from logging_config import get_logger
from schemas import Reservation
from session import AuthContext

logger = get_logger(__name__)


def _error_message(response: requests.Response) -> str:
    """Mensagem de erro do corpo (campo `message`) ou o texto cru."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason or ""
    if isinstance(body, dict) and body.get("message"):
        message = body["message"]
        return ", ".join(message) if isinstance(message, list) else str(message)
    return str(body)


class ReservationApiClient:
    """Cliente HTTP síncrono (requests) para o backend de reservas."""

    def __init__(
        self,
        base_url: str = API_URL,
        timeout: float = API_TIMEOUT_SECONDS,
        http: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout
        self.http = http if http is not None else requests.Session()

    def close(self) -> None:
        self.http.close()

    def _url(self, path: str) -> str:
        return urljoin(self.base_url, path.lstrip("/"))

    def _request(self, method: str, path: str, auth: Optional[AuthContext] = None, **kwargs) -> Any:
        headers = {"Content-Type": "application/json"}
        if auth is not None:
            headers.update(auth.authorization_header)

        try:
            response = self.http.request(method, self._url(path), headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning(f"{method} {path} falhou: {e}")
            raise FetchFailure(f"Falha ao acessar {path}: {e}") from e

        if response.status_code in (401, 403):
            raise AuthenticationError(_error_message(response) or "Acesso negado")
        if not response.ok:
            message = _error_message(response)
            logger.warning(f"{method} {path} respondeu {response.status_code}: {message}")
            raise FetchFailure(f"{path} respondeu {response.status_code}: {message}")

        try:
            return response.json()
        except ValueError as e:
            raise FetchFailure(f"{path} devolveu um corpo que não é JSON") from e

    def _parse_reservations(self, data: Any, path: str) -> List[Reservation]:
        if not isinstance(data, list):
            raise FetchFailure(f"{path} devolveu {type(data).__name__}, esperado uma lista")

        reservations = []
        for item in data:
            if not isinstance(item, dict):
                logger.warning(f"Registro ignorado em {path}: {item!r}")
                continue
            try:
                reservations.append(Reservation.from_api(item))
            except ValueError as e:
                logger.warning(f"Reserva {item.get('id')} ignorada: {e}")
        return reservations

    # ==========================================
    # ENDPOINTS
    # ==========================================

    def login(self, email: str, password: str) -> str:
        """
        Autentica no backend.

        Returns:
            access_token (JWT)

        Raises:
            AuthenticationError: credenciais recusadas ou resposta sem token.
        """
        data = self._request("POST", LOGIN_PATH, json={"email": email, "password": password})
        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise AuthenticationError("Resposta de login sem access_token")
        return token

    def get_confirmed_reservations(self, auth: AuthContext) -> List[Reservation]:
        """Reservas já aceitas (o backend aplica o filtro de status)."""
        data = self._request("GET", RESERVES_CONFIRMED_PATH, auth=auth)
        reservations = self._parse_reservations(data, RESERVES_CONFIRMED_PATH)
        logger.info(f"get_confirmed_reservations: {len(reservations)} reservas")
        return reservations

    def get_user_reservations(self, auth: AuthContext) -> List[Reservation]:
        """Reservas do próprio usuário, em qualquer status."""
        data = self._request("GET", RESERVES_USER_PATH, auth=auth)
        return self._parse_reservations(data, RESERVES_USER_PATH)

    def get_reservation(self, auth: AuthContext, route: str, reservation_id: str) -> Reservation:
        path = f"{route}/{reservation_id}"
        data = self._request("GET", path, auth=auth)
        if not isinstance(data, dict):
            raise FetchFailure(f"{path} devolveu {type(data).__name__}, esperado um objeto")
        try:
            return Reservation.from_api(data)
        except ValueError as e:
            raise FetchFailure(f"Reserva {reservation_id} ilegível: {e}") from e
