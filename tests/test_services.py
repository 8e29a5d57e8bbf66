# tests/test_services.py

import pytest
import requests

import backend_client
from backend_client import ReservationApiClient
from errors import AuthenticationError
from services import FETCH_FAILURE_MESSAGE, AuthService, ReservationFeed, ReservationService
from session import AuthContext, SessionStore

from helpers import FakeHttp, FakeResponse, make_reservation, make_token, sport_payload

CONFIRMED = "reserve-sport/reserves"


@pytest.fixture
def auth():
    return AuthContext.from_token(make_token())


def test_feed_only_latest_generation_commits():
    feed = ReservationFeed()
    old = feed.begin_fetch()
    new = feed.begin_fetch()
    assert feed.latest_generation == new

    assert feed.commit(new, [make_reservation("fresh")])
    # resposta lenta da busca anterior chega depois
    assert not feed.commit(old, [make_reservation("stale")])
    assert [r.id for r in feed.snapshot] == ["fresh"]


def test_feed_snapshot_is_immutable_tuple():
    feed = ReservationFeed()
    source = [make_reservation()]
    feed.commit(feed.begin_fetch(), source)
    source.clear()
    assert isinstance(feed.snapshot, tuple)
    assert len(feed.snapshot) == 1


def test_refresh_commits_backend_result(auth):
    client = ReservationApiClient(http=FakeHttp({CONFIRMED: FakeResponse(200, [sport_payload("a")])}))
    feed = ReservationFeed()
    result = ReservationService.refresh(client, feed, auth)

    assert result.committed
    assert result.error is None
    assert [r.id for r in result.reservations] == ["a"]
    assert feed.snapshot == result.reservations


def test_refresh_overtaken_by_newer_fetch_still_returns_its_list(auth):
    feed = ReservationFeed()

    def answer():
        # outra requisição começa uma busca enquanto esta ainda espera o backend
        feed.begin_fetch()
        return FakeResponse(200, [sport_payload("a")])

    client = ReservationApiClient(http=FakeHttp({CONFIRMED: answer}))
    result = ReservationService.refresh(client, feed, auth)

    assert not result.committed
    assert result.error is None
    assert [r.id for r in result.reservations] == ["a"]
    assert feed.snapshot == ()


def test_refresh_failure_keeps_previous_snapshot(auth):
    responses = iter([
        FakeResponse(200, [sport_payload("a")]),
        FakeResponse(503, text="Service Unavailable"),
    ])
    client = ReservationApiClient(http=FakeHttp({CONFIRMED: lambda: next(responses)}))
    feed = ReservationFeed()

    ReservationService.refresh(client, feed, auth)
    result = ReservationService.refresh(client, feed, auth)

    assert not result.committed
    assert result.error == FETCH_FAILURE_MESSAGE
    assert [r.id for r in result.reservations] == ["a"]
    assert [r.id for r in feed.snapshot] == ["a"]


def test_refresh_network_error_on_first_load_gives_empty_snapshot(auth):
    client = ReservationApiClient(http=FakeHttp({CONFIRMED: requests.ConnectionError("down")}))
    result = ReservationService.refresh(client, ReservationFeed(), auth)
    assert result.reservations == ()
    assert result.error


def test_refresh_propagates_rejected_token(auth):
    client = ReservationApiClient(http=FakeHttp({CONFIRMED: FakeResponse(401, {"message": "Unauthorized"})}))
    with pytest.raises(AuthenticationError):
        ReservationService.refresh(client, ReservationFeed(), auth)


def test_with_client_creates_and_closes_default_client(monkeypatch, auth):
    http = FakeHttp({CONFIRMED: FakeResponse(200, [])})
    monkeypatch.setattr(backend_client.requests, "Session", lambda: http)

    result = ReservationService.refresh(feed=ReservationFeed(), auth=auth)

    assert result.committed
    assert http.calls
    assert http.closed


def test_with_client_keeps_injected_client_open(auth):
    http = FakeHttp({CONFIRMED: FakeResponse(200, [])})
    client = ReservationApiClient(http=http)
    ReservationService.refresh(client, ReservationFeed(), auth)
    assert not http.closed


def test_get_reservation_and_find(auth):
    client = ReservationApiClient(http=FakeHttp({"reserve-sport/9": FakeResponse(200, sport_payload("9"))}))
    assert ReservationService.get_reservation(client, auth, "reserve-sport", "9").id == "9"

    reservations = [make_reservation("a"), make_reservation("b")]
    assert ReservationService.find(reservations, "b") is reservations[1]
    assert ReservationService.find(reservations, "z") is None


def test_login_and_logout():
    token = make_token("u7", "PE_ADMIN")
    client = ReservationApiClient(http=FakeHttp({"auth/login": FakeResponse(201, {"access_token": token})}))
    store = SessionStore({})
    feed = ReservationFeed()
    feed.commit(feed.begin_fetch(), [make_reservation()])

    ctx = AuthService.login(client, store, "adm@campus.br", "segredo")
    assert ctx.user_id == "u7"
    assert store.current() is ctx

    generation = feed.latest_generation
    AuthService.logout(store, feed)
    assert store.current() is None
    assert feed.snapshot == ()
    assert feed.latest_generation > generation
