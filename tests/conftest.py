import json
from datetime import datetime
from typing import Any

import pytest
from pydantic import BaseModel

from relay.client.client import JsonRpcClient
from relay.transport.base import Transport


class Team(BaseModel):
    name: str
    league: str


class Player(BaseModel):
    first_name: str
    last_name: str
    team: Team
    number: int
    position: str
    birth_date: datetime
    cap_hit: float


STAMKOS = {
    "first_name": "Steven",
    "last_name": "Stamkos",
    "team": {"name": "Tampa Bay Lightning", "league": "NHL"},
    "number": 91,
    "position": "C",
    "birth_date": "1990-02-07T00:00:00+00:00",
    "cap_hit": 7.5,
}

SOBOTKA = {
    "first_name": "Vladimir",
    "last_name": "Sobotka",
    "team": {"name": "St. Louis Blues", "league": "NHL"},
    "number": 17,
    "position": "C",
    "birth_date": "1987-07-02T00:00:00+00:00",
    "cap_hit": 2.725,
}


def result_response(request_id: Any, result: Any) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def error_response(request_id: Any, code: int, message: str) -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "error": {"code": code, "message": message},
    }


class StubTransport(Transport):
    """Transport double that records requests and replays a canned response."""

    def __init__(self, response: Any = None, error: Exception | None = None):
        self.sent: list[str] = []
        self.response = response
        self.error = error
        self.closed = False

    def reply_with(self, payload: Any) -> None:
        """Answer with a JSON-encoded payload."""
        self.response = json.dumps(payload)

    def reply_with_text(self, text: str) -> None:
        self.response = text

    @property
    def sent_payloads(self) -> list[Any]:
        return [json.loads(text) for text in self.sent]

    def send(self, request: str) -> str:
        self.sent.append(request)
        if self.error is not None:
            raise self.error
        return self.response

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def transport() -> StubTransport:
    return StubTransport()


@pytest.fixture
def client(transport: StubTransport) -> JsonRpcClient:
    return JsonRpcClient(transport)
