"""Shared fixtures: a temporary datastore and stubbed upstream APIs"""

import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from mealfit.context import build_context
from mealfit.store import Store


class FakeUpstream:
    """
    httpx.MockTransport handler that answers by (method, path).
    A registered body may be a callable taking the request.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method: str, path: str, body=None, status: int = 200):
        self.routes[(method, path)] = (status, body)

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, json={"message": f"no stub for {key}"})
        status, body = self.routes[key]
        if callable(body):
            body = body(request)
        return httpx.Response(status, json=body)


@pytest.fixture
def store(tmp_path):
    store = Store(tmp_path / "relay.db")
    store.init_schema()
    return store


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def ctx(tmp_path, upstream):
    context = build_context(db_path=tmp_path / "relay.db", transport=httpx.MockTransport(upstream))
    yield context
    asyncio.run(context.aclose())


@pytest.fixture
def client(ctx):
    from main import create_app
    return TestClient(create_app(ctx))
