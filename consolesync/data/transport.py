"""
HTTP transport for the console API.

Thin async wrapper around httpx that injects the bearer credential on every
call. Retry and error shaping live in the request executor, not here.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import httpx
import jwt
import structlog

logger = structlog.get_logger(__name__)


class TokenStore(Protocol):
    """Source of the bearer credential."""

    def get_token(self) -> Optional[str]: ...

    def is_token_valid(self, token: str) -> bool: ...


class MemoryTokenStore:
    """Token store holding one JWT in memory."""

    def __init__(self, token: Optional[str] = None):
        self._token = token

    def get_token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None

    def is_token_valid(self, token: str) -> bool:
        """Check the ``exp`` claim of a JWT. Undecodable tokens are invalid."""
        try:
            claims = jwt.decode(token, options={"verify_signature": False})
        except jwt.PyJWTError as e:
            logger.debug("Token not decodable", error=str(e))
            return False
        try:
            return float(claims["exp"]) > time.time()
        except (KeyError, TypeError, ValueError):
            return False


class BearerTokenAuth(httpx.Auth):
    """Adds ``Authorization: Bearer`` when the store holds a token."""

    def __init__(self, token_store: Optional[TokenStore]):
        self.token_store = token_store

    def auth_flow(self, request: httpx.Request):
        token = self.token_store.get_token() if self.token_store else None
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        yield request


@dataclass
class TransportResponse:
    """Decoded response body of a successful call."""

    status_code: int
    data: Any


class Transport:
    """
    Async HTTP client bound to the API base URL.

    Non-2xx responses raise ``httpx.HTTPStatusError``; network failures raise
    ``httpx.RequestError``. Both are left for the request executor to shape.
    """

    def __init__(
        self,
        base_url: str,
        token_store: Optional[TokenStore] = None,
        timeout: float = 30.0,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_store = token_store

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            auth=BearerTokenAuth(token_store),
            headers={"Accept": "application/json"},
            follow_redirects=True,
            transport=http_transport,
        )
        # Upload targets are pre-signed URLs on another host; no credentials.
        self.upload_client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout), follow_redirects=True, transport=http_transport
        )

        logger.debug("Transport initialized", base_url=self.base_url)

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()
        await self.upload_client.aclose()

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        content_type = response.headers.get("content-type", "")
        if "json" in content_type:
            return response.json()
        return response.text

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> TransportResponse:
        logger.debug("API request", method=method, path=path, has_body=json is not None)

        response = await self.client.request(method, path, params=params, json=json)
        response.raise_for_status()
        return TransportResponse(status_code=response.status_code, data=self._decode(response))

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> TransportResponse:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> TransportResponse:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> TransportResponse:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> TransportResponse:
        return await self.request("DELETE", path)

    async def put_bytes(self, url: str, content: bytes, content_type: str) -> None:
        """Upload raw bytes to an absolute URL."""
        response = await self.upload_client.put(
            url, content=content, headers={"Content-Type": content_type}
        )
        response.raise_for_status()
