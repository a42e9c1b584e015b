"""
Global fixtures for all unit tests.

This conftest provides:
- Environment variable isolation (no real Redis or remote API settings)
- An in-memory local store that can be told to fail
- A scriptable remote API served through httpx.MockTransport
- A wired ReconcilingMutation with a fixed clock

These fixtures apply to ALL tests in tests/unit/.
"""

import json
import os
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

# Set test environment BEFORE any imports so Config never sees real values
os.environ["LOCAL_STORE_BACKEND"] = "memory"
os.environ.pop("REDIS_URL", None)

from career_sync.common.error_handling import LocalStoreError
from career_sync.common.namespaces import default_registry
from career_sync.common.remote_api import RemoteApiClient
from career_sync.common.stores import InMemoryLocalStore, reset_local_store
from career_sync.services.invalidation import InvalidationBus
from career_sync.services.mirrored_reader import MirroredReader
from career_sync.services.reconciler import ReconcilingMutation

FIXED_NOW = "2024-06-01T12:00:00+00:00"
API_BASE = "http://api.test"


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """
    Isolate test environment from real configuration.

    Prevents tests from reaching a real Redis or remote API.
    """
    monkeypatch.setenv("LOCAL_STORE_BACKEND", "memory")
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setenv("REMOTE_API_BASE_URL", API_BASE)
    monkeypatch.delenv("REMOTE_API_TOKEN", raising=False)
    yield
    reset_local_store()


class FlakyLocalStore(InMemoryLocalStore):
    """In-memory store whose reads or writes can be switched off."""

    def __init__(self):
        super().__init__()
        self.fail_reads = False
        self.fail_writes = False
        self.set_calls = 0

    def get(self, key):
        if self.fail_reads:
            raise LocalStoreError("storage unavailable", key=key)
        return super().get(key)

    def set(self, key, records):
        self.set_calls += 1
        if self.fail_writes:
            raise LocalStoreError("quota exceeded", key=key)
        super().set(key, records)

    def delete(self, key):
        if self.fail_writes:
            raise LocalStoreError("storage unavailable", key=key)
        return super().delete(key)


class MockApi:
    """
    Scriptable remote API.

    Responses are looked up by (METHOD, path); unmatched requests get the
    default response. A response may be a (status, json) tuple or an
    exception instance to raise (simulating network failures).
    """

    def __init__(self, default: Tuple[int, Any] = (200, {})):
        self.default = default
        self.routes: Dict[Tuple[str, str], Any] = {}
        self.requests: List[httpx.Request] = []

    def on(self, method: str, path: str, response: Any) -> None:
        self.routes[(method.upper(), path)] = response

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes.get((request.method, request.url.path), self.default)
        if callable(response) and not isinstance(response, tuple):
            response = response(request)
        if isinstance(response, Exception):
            raise response
        status, body = response
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def calls(self, method: Optional[str] = None) -> List[Tuple[str, str]]:
        return [
            (r.method, r.url.path)
            for r in self.requests
            if method is None or r.method == method
        ]

    def body(self, index: int = -1) -> Any:
        content = self.requests[index].content
        return json.loads(content) if content else None


@pytest.fixture
def store():
    return FlakyLocalStore()


@pytest.fixture
def mock_api():
    return MockApi()


@pytest.fixture
def remote(mock_api):
    return RemoteApiClient(API_BASE, transport=httpx.MockTransport(mock_api.handler))


@pytest.fixture
def registry():
    return default_registry()


@pytest.fixture
def bus(registry):
    return InvalidationBus(registry, instance_id="tab00001")


@pytest.fixture
def events(bus):
    """Every invalidation event published on the bus, in order."""
    received = []

    async def listener(event):
        received.append(event)

    bus.add_listener(listener)
    return received


@pytest.fixture
def clock() -> Callable[[], str]:
    return lambda: FIXED_NOW


@pytest.fixture
def reconciler(store, remote, bus, clock):
    return ReconcilingMutation(store, remote, bus, clock=clock)


@pytest.fixture
def reader(store, remote):
    return MirroredReader(store, remote)
