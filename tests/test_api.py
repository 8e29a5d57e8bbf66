# tests/test_api.py

from datetime import date

import pytest
from fastapi.testclient import TestClient

from api.deps import get_client, get_clock, get_feed
from api.main import app
from backend_client import ReservationApiClient
from services import ReservationFeed

from helpers import FakeHttp, FakeResponse, make_token, sport_payload

TODAY = date(2024, 3, 13)
CONFIRMED = "reserve-sport/reserves"

WEEKLY_MONDAY = sport_payload("w1", "04/03/2024, 09:00", "04/03/2024, 10:00", occurrence="SEMANALMENTE")
SINGLE_TUESDAY = sport_payload("s1", "12/03/2024, 14:00", "12/03/2024, 15:00")


@pytest.fixture
def backend():
    return FakeHttp({CONFIRMED: FakeResponse(200, [WEEKLY_MONDAY, SINGLE_TUESDAY])})


@pytest.fixture
def api(backend):
    feed = ReservationFeed()
    app.dependency_overrides[get_client] = lambda: ReservationApiClient(base_url="http://backend", http=backend)
    app.dependency_overrides[get_feed] = lambda: feed
    app.dependency_overrides[get_clock] = lambda: (lambda: TODAY)
    yield TestClient(app)
    app.dependency_overrides.clear()


def bearer(role="USER", user_id="u1"):
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}


def test_health(api):
    assert api.get("/").json()["status"] == "ok"
    assert api.get("/health").json()["status"] == "healthy"


def test_routes_require_bearer_token(api):
    assert api.get("/api/v1/calendar/week").status_code == 401
    assert api.get("/api/v1/reservations", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_login_returns_token_and_user(api, backend):
    token = make_token("adm", "PE_ADMIN")
    backend.routes["auth/login"] = FakeResponse(201, {"access_token": token})

    response = api.post("/api/v1/auth/login", json={"email": "adm@campus.br", "password": "x"})

    assert response.status_code == 200
    body = response.json()
    assert body["access_token"] == token
    assert body["user"]["role"] == "PE_ADMIN"
    assert body["user"]["is_admin"] is True


def test_login_rejected(api, backend):
    backend.routes["auth/login"] = FakeResponse(401, {"message": "Unauthorized"})
    response = api.post("/api/v1/auth/login", json={"email": "a@b.c", "password": "x"})
    assert response.status_code == 401


def test_me(api):
    body = api.get("/api/v1/auth/me", headers=bearer("SISTEMA_ADMIN", "adm")).json()
    assert body["user_id"] == "adm"
    assert body["is_admin"] is True


def test_week_grid(api):
    response = api.get("/api/v1/calendar/week", params={"date": "2024-03-20"}, headers=bearer())
    assert response.status_code == 200
    grid = response.json()

    assert grid["week_start"] == "2024-03-18"
    assert len(grid["days"]) == 6
    assert grid["today_disabled"] is False
    occupied = [
        (cell["day_date"], cell["slot_start"], [r["id"] for r in cell["reservations"]])
        for row in grid["rows"] for cell in row["cells"] if cell["reservations"]
    ]
    # a reserva única de 12/03 não aparece na semana seguinte
    assert occupied == [("2024-03-18", "09:00:00", ["w1"])]


def test_month_grid(api):
    grid = api.get("/api/v1/calendar/month", params={"year": 2024, "month": 3}, headers=bearer()).json()
    assert len(grid["days"]) == 42
    assert grid["today_disabled"] is True
    tuesday = next(d for d in grid["days"] if d["day_date"] == "2024-03-12")
    assert [r["id"] for r in tuesday["reservations"]] == ["s1"]


def test_cell_occupants(api):
    response = api.get("/api/v1/calendar/cell", params={"day": "2024-03-12", "hour": 14}, headers=bearer())
    assert [r["id"] for r in response.json()] == ["s1"]
    assert api.get("/api/v1/calendar/cell", params={"day": "2024-03-12", "hour": 3}, headers=bearer()).status_code == 422


def test_empty_cell_click_by_role(api):
    body = {"day_date": "2024-03-13", "hour": 10}
    user = api.post("/api/v1/calendar/cell/click", json=body, headers=bearer("USER")).json()
    admin = api.post("/api/v1/calendar/cell/click", json=body, headers=bearer("SISTEMA_ADMIN")).json()
    unknown = api.post("/api/v1/calendar/cell/click", json=body, headers=bearer("VISITANTE")).json()

    assert user["action"] == {"kind": "navigate", "route": "/request-reservation"}
    assert admin["action"] == {"kind": "select_reservation_type"}
    assert unknown["action"] is None


def test_occupied_cell_click_returns_occupants_without_action(api):
    body = {"day_date": "2024-03-11", "hour": 9}
    data = api.post("/api/v1/calendar/cell/click", json=body, headers=bearer()).json()
    assert [r["id"] for r in data["reservations"]] == ["w1"]
    assert data["action"] is None


def test_month_day_click(api, backend):
    extra = sport_payload("s2", "11/03/2024, 18:00", "11/03/2024, 19:00")
    backend.routes[CONFIRMED] = FakeResponse(200, [WEEKLY_MONDAY, SINGLE_TUESDAY, extra])

    data = api.post("/api/v1/calendar/month/day/click", json={"day_date": "2024-03-11"}, headers=bearer()).json()

    assert data["action"]["kind"] == "day_reservations"
    assert data["action"]["reservation_ids"] == ["w1", "s2"]


@pytest.mark.parametrize("params,expected", [
    ({"date": "2024-03-13", "move": "next"}, "2024-03-20"),
    ({"date": "2024-03-13", "move": "previous"}, "2024-03-06"),
    ({"date": "2024-01-31", "view": "MONTH", "move": "next"}, "2024-02-29"),
    ({"date": "2024-05-02", "move": "today"}, "2024-03-13"),
])
def test_navigation(api, params, expected):
    nav = api.get("/api/v1/calendar/navigation", params=params, headers=bearer()).json()
    assert nav["current_date"] == expected


def test_list_reservations_serves_last_snapshot_on_failure(api, backend):
    assert [r["id"] for r in api.get("/api/v1/reservations", headers=bearer()).json()] == ["w1", "s1"]

    backend.routes[CONFIRMED] = FakeResponse(500, {"message": "boom"})
    response = api.get("/api/v1/reservations", headers=bearer())
    assert response.status_code == 200
    assert [r["id"] for r in response.json()] == ["w1", "s1"]


def test_first_load_failure_is_bad_gateway(api, backend):
    backend.routes[CONFIRMED] = FakeResponse(500, {"message": "boom"})
    assert api.get("/api/v1/calendar/week", headers=bearer()).status_code == 502


def test_my_reservations(api, backend):
    backend.routes["reserve/reserves-user"] = FakeResponse(200, [SINGLE_TUESDAY])
    assert [r["id"] for r in api.get("/api/v1/reservations/mine", headers=bearer()).json()] == ["s1"]


def test_reservation_detail_editable_flag(api, backend):
    api.get("/api/v1/reservations", headers=bearer())  # carrega o snapshot

    owner = api.get("/api/v1/reservations/s1", headers=bearer("USER", "u1")).json()
    other = api.get("/api/v1/reservations/s1", headers=bearer("USER", "u2")).json()
    assert owner["reservation"]["id"] == "s1"
    assert owner["action"]["editable"] is True
    assert other["action"]["editable"] is False

    backend.routes["reserve-event/77"] = FakeResponse(200, {
        "id": "77", "dateTimeStart": "15/03/2024, 10:00", "dateTimeEnd": "15/03/2024, 12:00",
        "event": {"name": "Feira", "location": "Ginásio"},
    })
    event = api.get("/api/v1/reservations/77", params={"kind": "event"}, headers=bearer("PE_ADMIN", "adm")).json()
    assert event["reservation"]["type_reserve"] == "EVENT"
    assert event["action"]["editable"] is True

    assert api.get("/api/v1/reservations/404", headers=bearer()).status_code == 502
