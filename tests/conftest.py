"""Shared test fixtures."""
import asyncio
import json
from datetime import datetime, timezone

import httpx
import pytest
import pytest_asyncio

from booking_bot.db import init_models, make_engine, make_session_factory
from booking_bot.dto import AccountUser
from booking_bot.services.api import ApiClient, ApiSession
from booking_bot.services.backend import BackendClients

BASE_URL = "http://backend.test"
FIXED_NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeBackend:
    """Routes requests by (method, path) and records everything it receives."""

    def __init__(self):
        self.routes: dict[tuple[str, str], dict] = {}
        self.requests: list[httpx.Request] = []

    def on(
        self,
        method: str,
        path: str,
        *,
        status: int = 200,
        json=None,
        content: bytes | None = None,
        exc=None,
        gate: asyncio.Event | None = None,
    ):
        self.routes[(method.upper(), path)] = {
            "status": status,
            "json": json,
            "content": content,
            "exc": exc,
            "gate": gate,
        }

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": "not found"})
        if route["gate"] is not None:
            await route["gate"].wait()
        if route["exc"] is not None:
            raise route["exc"]
        if route["content"] is not None:
            return httpx.Response(route["status"], content=route["content"])
        return httpx.Response(route["status"], json=route["json"])

    def http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(self.handler))

    def api(self, token: str | None = None) -> ApiClient:
        return ApiClient(self.http(), ApiSession(token=token))

    def clients(self) -> BackendClients:
        return BackendClients(base_url=BASE_URL, transport=httpx.MockTransport(self.handler))

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]


def body_of(request: httpx.Request):
    return json.loads(request.content)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def client_user() -> AccountUser:
    return AccountUser(id="7", name="Alice", email="alice@example.com", role="client")


@pytest.fixture
def provider_user() -> AccountUser:
    return AccountUser(id="42", name="Bob", email="bob@example.com", role="provider", is_available=False)


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_models(engine)
    yield make_session_factory(engine)
    await engine.dispose()
