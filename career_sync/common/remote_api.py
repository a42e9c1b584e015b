"""
Remote API Adapter

Thin async HTTP client for the career-data REST API. Every request either
returns the parsed JSON body or raises RemoteApiError classified as
TRANSIENT (worth retrying) or VALIDATION (the server refused it).
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .error_handling import ErrorKind, RemoteApiError, classify_status

logger = logging.getLogger(__name__)


@dataclass
class RemoteResponse:
    """Successful (2xx) response from the remote API."""
    status_code: int
    data: Any = None

    @property
    def is_empty(self) -> bool:
        return self.data is None


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("message") or body.get("error") or body)
    return str(body)


class RemoteApiClient:
    """
    Async client for the career-data REST API.

    Connection Management:
    - One httpx.AsyncClient is created lazily and reused
    - Call close() (or use ``async with``) to release connections

    Error Handling:
    - Network failures and timeouts raise RemoteApiError(kind=TRANSIENT)
    - Non-2xx statuses raise RemoteApiError classified by classify_status
    - Retrying is the caller's decision; this class never retries
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            base_url: API root, e.g. "http://localhost:5000"
            token: Optional bearer token sent on every request
            timeout: Per-request timeout in seconds
            transport: Custom transport (tests pass httpx.MockTransport)
            client: Pre-built client, used as-is
        """
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._transport = transport
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "RemoteApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def request(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
    ) -> RemoteResponse:
        """
        Send one request.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE)
            path: Path relative to base_url, e.g. "/api/applications/7"
            body: JSON body, omitted when None

        Returns:
            RemoteResponse with parsed JSON (None for empty bodies)

        Raises:
            RemoteApiError: On network failure or non-2xx status
        """
        method = method.upper()
        try:
            response = await self._get_client().request(method, path, json=body)
        except httpx.TimeoutException as e:
            logger.warning(f"Remote {method} {path} timed out: {e}")
            raise RemoteApiError(
                f"{method} {path} timed out", ErrorKind.TRANSIENT, method=method, path=path
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"Remote {method} {path} failed: {e}")
            raise RemoteApiError(
                f"{method} {path} failed: {e}", ErrorKind.TRANSIENT, method=method, path=path
            ) from e

        if response.is_success:
            return RemoteResponse(status_code=response.status_code, data=self._parse(response))

        kind = classify_status(response.status_code)
        detail = _error_detail(response)
        raise RemoteApiError(
            f"HTTP {response.status_code} on {method} {path}: {detail}",
            kind,
            status_code=response.status_code,
            method=method,
            path=path,
        )

    @staticmethod
    def _parse(response: httpx.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            logger.debug(f"Non-JSON success body from {response.request.url}")
            return None

    async def get(self, path: str) -> RemoteResponse:
        return await self.request("GET", path)

    async def post(self, path: str, body: Optional[Dict[str, Any]] = None) -> RemoteResponse:
        return await self.request("POST", path, body)

    async def put(self, path: str, body: Optional[Dict[str, Any]] = None) -> RemoteResponse:
        return await self.request("PUT", path, body)

    async def patch(self, path: str, body: Optional[Dict[str, Any]] = None) -> RemoteResponse:
        return await self.request("PATCH", path, body)

    async def delete(self, path: str) -> RemoteResponse:
        return await self.request("DELETE", path)
