# tests/test_session.py

import pytest

from errors import AuthenticationError
from schemas import Role
from session import AuthContext, SessionStore

from helpers import make_token


def test_from_token_reads_id_and_role(token):
    ctx = AuthContext.from_token(token)
    assert ctx.user_id == "u1"
    assert ctx.role == Role.USER
    assert not ctx.is_admin
    assert ctx.authorization_header == {"Authorization": f"Bearer {token}"}


def test_admin_token(admin_token):
    ctx = AuthContext.from_token(admin_token)
    assert ctx.role == Role.SISTEMA_ADMIN
    assert ctx.is_admin
    user = ctx.to_user()
    assert user.user_id == "adm"
    assert user.is_admin


def test_unknown_role_is_kept_raw():
    ctx = AuthContext.from_token(make_token("u5", "COORDENADOR"))
    assert ctx.role is None
    assert ctx.raw_role == "COORDENADOR"
    assert not ctx.is_admin


@pytest.mark.parametrize("bad", ["", "not-a-jwt", "a.b.c"])
def test_undecodable_token_raises(bad):
    with pytest.raises(AuthenticationError):
        AuthContext.from_token(bad)


def test_session_store_lifecycle(token):
    storage = {}
    store = SessionStore(storage)
    assert store.current() is None
    with pytest.raises(AuthenticationError):
        store.require()

    ctx = store.start(token)
    assert storage[SessionStore.SESSION_KEY] is ctx
    assert store.require() is ctx

    store.end()
    assert store.current() is None
    store.end()  # sem sessão: nada acontece
