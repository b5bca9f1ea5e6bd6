"""In-memory stand-in for the console API, served through httpx.MockTransport."""

import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from consolesync.data.request_executor import RequestExecutor
from consolesync.data.transport import MemoryTokenStore, Transport

BASE_URL = "https://api.test"

Responder = Callable[[httpx.Request], httpx.Response]


class MockApi:
    """
    Routes requests to canned responses and records every request.

    Several responses queued for one route are served in order; the last one
    repeats. Unrouted requests get a 404.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], List[Responder]] = {}
        self.requests: List[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def respond(
        self,
        method: str,
        path: str,
        status: int = 200,
        json_body: Any = None,
        text: Optional[str] = None,
    ) -> None:
        def responder(request: httpx.Request) -> httpx.Response:
            if text is not None:
                return httpx.Response(status, text=text)
            if json_body is None:
                return httpx.Response(status)
            return httpx.Response(status, json=json_body)

        self.routes.setdefault((method, path), []).append(responder)

    def fail(self, method: str, path: str, exc: Exception) -> None:
        def responder(request: httpx.Request) -> httpx.Response:
            raise exc

        self.routes.setdefault((method, path), []).append(responder)

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def body(self, request: httpx.Request) -> Any:
        return json.loads(request.content)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responders = self.routes.get((request.method, request.url.path))
        if not responders:
            return httpx.Response(404, json={"message": "Not found"})
        responder = responders.pop(0) if len(responders) > 1 else responders[0]
        return responder(request)


def make_transport(api: MockApi, token: Optional[str] = "test-token") -> Transport:
    return Transport(BASE_URL, token_store=MemoryTokenStore(token), http_transport=api.transport)


def make_executor(api: MockApi, retries: int = 0) -> RequestExecutor:
    return RequestExecutor(make_transport(api), retries=retries, retry_delay_ms=0)
