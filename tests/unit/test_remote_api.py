"""
Unit tests for career_sync/common/remote_api.py

The remote API is served by httpx.MockTransport; no network is used.
"""

import httpx
import pytest

from career_sync.common.error_handling import ErrorKind, RemoteApiError, classify_status
from career_sync.common.remote_api import RemoteApiClient


class TestClassifyStatus:
    @pytest.mark.parametrize("status", [None, 500, 502, 503, 408, 429])
    def test_transient(self, status):
        assert classify_status(status) == ErrorKind.TRANSIENT

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 409, 422])
    def test_validation(self, status):
        assert classify_status(status) == ErrorKind.VALIDATION


class TestRemoteApiClient:
    @pytest.mark.asyncio
    async def test_success_returns_parsed_json(self, remote, mock_api):
        mock_api.on("GET", "/api/applications/42/stages", (200, [{"id": 1}]))

        response = await remote.request("GET", "/api/applications/42/stages")

        assert response.status_code == 200
        assert response.data == [{"id": 1}]

    @pytest.mark.asyncio
    async def test_sends_json_body(self, remote, mock_api):
        await remote.patch("/api/applications/42", {"status": "Offer"})

        assert mock_api.calls() == [("PATCH", "/api/applications/42")]
        assert mock_api.body() == {"status": "Offer"}

    @pytest.mark.asyncio
    async def test_empty_body_is_none(self, remote, mock_api):
        mock_api.on("DELETE", "/api/applications/42", (204, None))

        response = await remote.delete("/api/applications/42")

        assert response.status_code == 204
        assert response.is_empty

    @pytest.mark.asyncio
    async def test_server_error_is_transient(self, remote, mock_api):
        mock_api.on("POST", "/api/x", (500, {"message": "boom"}))

        with pytest.raises(RemoteApiError) as exc_info:
            await remote.post("/api/x", {})

        error = exc_info.value
        assert error.kind == ErrorKind.TRANSIENT
        assert error.is_transient
        assert error.status_code == 500
        assert error.method == "POST"
        assert error.path == "/api/x"
        assert "boom" in str(error)

    @pytest.mark.asyncio
    async def test_client_error_is_validation(self, remote, mock_api):
        mock_api.on("PATCH", "/api/x", (422, {"detail": "bad date"}))

        with pytest.raises(RemoteApiError) as exc_info:
            await remote.patch("/api/x", {"dueDate": "never"})

        assert exc_info.value.kind == ErrorKind.VALIDATION
        assert exc_info.value.status_code == 422

    @pytest.mark.asyncio
    async def test_network_error_is_transient(self, remote, mock_api):
        mock_api.on("GET", "/api/x", httpx.ConnectError("connection refused"))

        with pytest.raises(RemoteApiError) as exc_info:
            await remote.get("/api/x")

        assert exc_info.value.kind == ErrorKind.TRANSIENT
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_timeout_is_transient(self, remote, mock_api):
        mock_api.on("GET", "/api/x", httpx.ReadTimeout("slow"))

        with pytest.raises(RemoteApiError) as exc_info:
            await remote.get("/api/x")

        assert exc_info.value.kind == ErrorKind.TRANSIENT

    @pytest.mark.asyncio
    async def test_bearer_token_header(self, mock_api):
        client = RemoteApiClient(
            "http://api.test/",
            token="tok-123",
            transport=httpx.MockTransport(mock_api.handler),
        )

        await client.get("/api/contacts")
        await client.close()

        assert mock_api.requests[0].headers["Authorization"] == "Bearer tok-123"
        assert str(mock_api.requests[0].url) == "http://api.test/api/contacts"

    @pytest.mark.asyncio
    async def test_async_context_manager_closes(self, mock_api):
        async with RemoteApiClient(
            "http://api.test", transport=httpx.MockTransport(mock_api.handler)
        ) as client:
            await client.get("/api/contacts")
        assert client._client is None
