"""
Pytest fixtures for sync service tests.
"""

import json
import os

# Set environment variables BEFORE any imports from sync_service so
# SyncServiceSettings and Config never see real deployment values.
os.environ["ENVIRONMENT"] = "development"
os.environ["LOCAL_STORE_BACKEND"] = "memory"
os.environ.pop("REDIS_URL", None)

import httpx
import pytest
from fastapi.testclient import TestClient

from career_sync.common.remote_api import RemoteApiClient
from career_sync.common.stores import InMemoryLocalStore
from career_sync.services.context import build_sync_context
from sync_service.app import create_app
from sync_service.config import SyncServiceSettings

API_BASE = "http://api.test"


class RemoteStub:
    """
    Remote API double: every request gets `status`/`body`, unless a route
    override is registered for (METHOD, path).
    """

    def __init__(self):
        self.status = 200
        self.body = {}
        self.routes = {}
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.routes.get((request.method, request.url.path), (self.status, self.body))
        if status is None:
            raise httpx.ConnectError("remote unreachable")
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def calls(self):
        return [(r.method, r.url.path) for r in self.requests]

    def last_body(self):
        content = self.requests[-1].content
        return json.loads(content) if content else None


@pytest.fixture
def remote_stub():
    return RemoteStub()


@pytest.fixture
def local_store():
    return InMemoryLocalStore()


@pytest.fixture
def settings():
    return SyncServiceSettings(environment="development", redis_url=None, cors_origins="")


@pytest.fixture
def app(settings, local_store, remote_stub):
    def context_factory():
        remote = RemoteApiClient(API_BASE, transport=httpx.MockTransport(remote_stub.handler))
        return build_sync_context(store=local_store, remote=remote, instance_id="svc00001")

    return create_app(settings=settings, context_factory=context_factory)


@pytest.fixture
def client(app):
    """FastAPI test client with startup/shutdown events run."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def context(app, client):
    """The SyncContext built at startup."""
    return app.state.sync_context
