"""Shared fixtures: settings rooted in a temp dir, a fake SMTP sender and an
in-process HTTP server backed by ``httpx.MockTransport``."""

from typing import Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from websync.config import Settings
from websync.deps import Station, create_station
from websync.services.http_gateway import HttpGateway

SECRET = "test-secret-that-is-at-least-32-bytes-long"


class FakeEmailSender:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[Tuple[str, str, str]] = []

    def send(self, to: str, subject: str, body: str) -> None:
        if self.fail:
            raise OSError("smtp unreachable")
        self.sent.append((to, subject, body))


class MockServer:
    """Routes (method, url) to response factories and records every request."""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: List[httpx.Request] = []

    def add(
        self,
        method: str,
        url: str,
        status: int = 200,
        content: bytes = b"",
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.routes[(method, url)] = lambda request: httpx.Response(status, content=content, headers=headers)

    def add_handler(self, method: str, url: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[(method, url)] = handler

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, str(request.url)))
        if route is None:
            return httpx.Response(404, text="not found")
        return route(request)

    def requests_to(self, url: str) -> List[httpx.Request]:
        return [r for r in self.requests if str(r.url) == url]

    def gateway(self) -> HttpGateway:
        return HttpGateway(transport=httpx.MockTransport(self.handler))


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    # Keep a stray config.toml or .env out of the tests
    monkeypatch.setenv("WEBSYNC_CONFIG_FILE", str(tmp_path / "absent.toml"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def make_settings(tmp_path):
    def _make(**overrides) -> Settings:
        values = {"data_dir": tmp_path, "secret": SECRET, "payload": {"sub": "station"}}
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def server():
    return MockServer()


@pytest.fixture
def email_sender():
    return FakeEmailSender()


@pytest.fixture
def make_station(server, email_sender):
    def _make(settings: Settings) -> Station:
        return create_station(settings, gateway=server.gateway(), email_sender=email_sender)

    return _make
