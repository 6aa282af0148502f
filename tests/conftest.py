"""Shared pytest fixtures and test helpers for hudori-desktop tests."""

from __future__ import annotations

import json
import re
from typing import Any

import pytest
import requests

from hudori_desktop.services.backend_service import BackendService
from hudori_desktop.services.gateway import RequestGateway
from hudori_desktop.services.session import SessionState

API_URL = "https://api.test"


def make_response(
    status: int = 200,
    body: Any = None,
    *,
    cookies: dict[str, str] | None = None,
    url: str = f"{API_URL}/",
) -> requests.Response:
    """Build a fully-read ``requests.Response`` without a socket behind it."""
    response = requests.Response()
    response.status_code = status
    response.url = url
    if isinstance(body, bytes):
        response._content = body
    else:
        response._content = json.dumps({} if body is None else body).encode("utf-8")
    response._content_consumed = True
    for name, value in (cookies or {}).items():
        response.cookies.set(name, value)
    return response


class RecordingSession(requests.Session):
    """``requests.Session`` that records prepared requests instead of sending them."""

    def __init__(self) -> None:
        super().__init__()
        self.sent: list[requests.PreparedRequest] = []
        self.send_kwargs: list[dict[str, Any]] = []
        self.responses: list[requests.Response] = []
        self.error: Exception | None = None

    def queue(self, *responses: requests.Response) -> None:
        self.responses.extend(responses)

    def send(self, request: requests.PreparedRequest, **kwargs: Any) -> requests.Response:  # type: ignore[override]
        self.sent.append(request)
        self.send_kwargs.append(kwargs)
        if self.error is not None:
            raise self.error
        if self.responses:
            return self.responses.pop(0)
        return make_response()

    @property
    def last(self) -> requests.PreparedRequest:
        return self.sent[-1]


def parse_multipart(content_type: str, body: bytes) -> list[tuple[str, str | None, bytes]]:
    """Split a multipart body into ``(name, filename, data)`` triples, in order."""
    boundary = content_type.split("boundary=", 1)[1].encode("ascii")
    chunks = body.split(b"--" + boundary)
    assert chunks[-1] == b"--\r\n"
    parts = []
    for chunk in chunks[1:-1]:
        head, _, data = chunk[2:].partition(b"\r\n\r\n")
        disposition = head.decode("utf-8")
        name = re.search(r'name="([^"]*)"', disposition)
        filename = re.search(r'filename="([^"]*)"', disposition)
        assert name is not None
        parts.append((name.group(1), filename.group(1) if filename else None, data[:-2]))
    return parts


@pytest.fixture
def session_state() -> SessionState:
    return SessionState()


@pytest.fixture
def http() -> RecordingSession:
    return RecordingSession()


@pytest.fixture
def gateway(session_state: SessionState, http: RecordingSession) -> RequestGateway:
    return RequestGateway(session_state, http=http)


@pytest.fixture
def service(session_state: SessionState, gateway: RequestGateway) -> BackendService:
    return BackendService(API_URL, session_state, gateway)
