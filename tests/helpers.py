# tests/helpers.py

from datetime import datetime
from typing import Any, Dict, List, Optional

import jwt

from schemas import ClassroomDetail, EventDetail, Requester, Reservation, SportDetail

DETAILS = {
    "sport": SportDetail(type_practice="TREINO"),
    "classroom": ClassroomDetail(course="Informática", matter="Redes"),
    "event": EventDetail(name="Palestra", location="Auditório"),
}


def make_reservation(
    res_id: str = "r1",
    start: Optional[datetime] = datetime(2024, 3, 11, 9, 0),
    end: Optional[datetime] = datetime(2024, 3, 11, 10, 0),
    occurrence: str = "SINGLE",
    kind: str = "sport",
    user_id: str = "u1",
) -> Reservation:
    return Reservation(
        id=res_id,
        occurrence=occurrence,
        date_time_start=start,
        date_time_end=end,
        status="CONFIRMED",
        requester=Requester(id=user_id, name="Ana", role="USER"),
        detail=DETAILS[kind],
    )


def make_token(user_id: str = "u1", role: str = "USER") -> str:
    return jwt.encode({"id": user_id, "role": role}, "campus-reservas-test-signing-key-0123456789", algorithm="HS256")


def sport_payload(res_id: str = "r1", start: str = "11/03/2024, 09:00", end: str = "11/03/2024, 10:00",
                  occurrence: str = "EVENTO_UNICO") -> Dict[str, Any]:
    return {
        "id": res_id,
        "type_Reserve": "SPORT",
        "status": "CONFIRMADA",
        "occurrence": occurrence,
        "dateTimeStart": start,
        "dateTimeEnd": end,
        "user": {"id": "u1", "name": "Ana", "role": "USER"},
        "sport": {"typePractice": "TREINO", "numberParticipants": "12", "participants": "", "requestEquipment": "bolas"},
    }


class FakeResponse:
    """Stand-in for requests.Response."""

    _NO_BODY = object()

    def __init__(self, status_code: int = 200, body: Any = _NO_BODY, text: str = "", reason: str = ""):
        self.status_code = status_code
        self._body = body
        self.text = text
        self.reason = reason

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if self._body is FakeResponse._NO_BODY:
            raise ValueError("no JSON body")
        return self._body


class FakeHttp:
    """Stand-in for requests.Session: answers by path suffix and records calls."""

    def __init__(self, routes: Optional[Dict[str, Any]] = None):
        self.routes = routes or {}
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def request(self, method, url, headers=None, timeout=None, **kwargs):
        self.calls.append({"method": method, "url": url, "headers": headers, **kwargs})
        for suffix, answer in self.routes.items():
            if url.endswith(suffix):
                if isinstance(answer, Exception):
                    raise answer
                if callable(answer):
                    return answer()
                return answer
        return FakeResponse(404, {"message": "Not Found"})

    def close(self):
        self.closed = True
