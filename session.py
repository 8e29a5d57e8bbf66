"""
Campus Reservas - Sessão do usuário
====================================

O token de acesso e o papel do usuário circulam explicitamente num
AuthContext. O SessionStore guarda esse contexto num mapeamento qualquer
(st.session_state no Streamlit, dict em testes/scripts): criado no login,
apagado no logout.
"""

from typing import Any, Dict, MutableMapping, Optional

import jwt
from pydantic import BaseModel, ConfigDict

from errors import AuthenticationError
from logging_config import get_logger
from schemas import ADMIN_ROLES, Role, UserDTO, parse_role

logger = get_logger(__name__)


class AuthContext(BaseModel):
    """Token + identidade de quem está usando o calendário."""
    model_config = ConfigDict(frozen=True)

    token: str
    user_id: str = ""
    role: Optional[Role] = None
    raw_role: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def authorization_header(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"}

    def to_user(self) -> UserDTO:
        return UserDTO(user_id=self.user_id, role=self.role, raw_role=self.raw_role, is_admin=self.is_admin)

    @classmethod
    def from_token(cls, token: str) -> "AuthContext":
        """
        Lê as claims `id` e `role` do JWT emitido pelo backend.

        A assinatura não é verificada aqui: quem valida o token é o backend a
        cada requisição; o cliente só precisa saber o papel para decidir a UI.

        Raises:
            AuthenticationError: token vazio ou malformado.
        """
        if not token:
            raise AuthenticationError("Token ausente")
        try:
            claims: Dict[str, Any] = jwt.decode(token, options={"verify_signature": False})
        except jwt.PyJWTError as e:
            raise AuthenticationError(f"Token inválido: {e}") from e

        raw_role = str(claims.get("role") or "")
        role = parse_role(raw_role)
        if role is None:
            logger.warning(f"Papel não reconhecido no token: {raw_role!r}")

        return cls(
            token=token,
            user_id=str(claims.get("id") or claims.get("sub") or ""),
            role=role,
            raw_role=raw_role,
        )


class SessionStore:
    """Guarda o AuthContext corrente num mapeamento mutável."""

    SESSION_KEY = "auth_context"

    def __init__(self, storage: Optional[MutableMapping] = None):
        self._storage = storage if storage is not None else {}

    def start(self, token: str) -> AuthContext:
        context = AuthContext.from_token(token)
        self._storage[self.SESSION_KEY] = context
        logger.info(f"Sessão iniciada para usuário {context.user_id} ({context.raw_role})")
        return context

    def current(self) -> Optional[AuthContext]:
        return self._storage.get(self.SESSION_KEY)

    def require(self) -> AuthContext:
        context = self.current()
        if context is None:
            raise AuthenticationError("Nenhuma sessão ativa")
        return context

    def end(self) -> None:
        if self.SESSION_KEY in self._storage:
            del self._storage[self.SESSION_KEY]
            logger.info("Sessão encerrada")
