# tests/conftest.py

import pytest

from helpers import make_token


@pytest.fixture
def token():
    return make_token()


@pytest.fixture
def admin_token():
    return make_token(user_id="adm", role="SISTEMA_ADMIN")
