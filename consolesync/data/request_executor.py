"""
Request executor shared by every resource client.

Runs one remote call with the configured retry policy and turns whatever the
transport raises into an ``ApiError``. Nothing above this module ever sees an
httpx exception.
"""

from typing import Any, Awaitable, Callable, Dict, Optional, Union

import httpx
import structlog

from consolesync.core.exceptions import ApiError
from consolesync.data.transport import Transport, TransportResponse
from consolesync.utils.reliability import build_retrying

logger = structlog.get_logger(__name__)

RecordId = Union[str, int]
Operation = Callable[[], Awaitable[TransportResponse]]


def _response_details(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def to_api_error(exc: BaseException) -> ApiError:
    """Extract ``{status, message, details}`` from a transport failure."""
    if isinstance(exc, ApiError):
        return exc

    if isinstance(exc, httpx.HTTPStatusError):
        details = _response_details(exc.response)
        message = str(exc) or "Unknown error"
        if isinstance(details, dict) and isinstance(details.get("message"), str):
            message = details["message"]
        return ApiError(message, status=exc.response.status_code, details=details)

    if isinstance(exc, httpx.RequestError):
        return ApiError(str(exc) or f"Network error ({type(exc).__name__})")

    if isinstance(exc, ValueError):
        return ApiError(f"Malformed response: {exc}")

    return ApiError(str(exc) or "Unknown error")


class RequestExecutor:
    """
    Executes remote calls with bounded, fixed-delay retries.

    Retries do not distinguish transient from permanent failures: any error
    is retried until ``retries`` extra attempts have been spent.
    """

    def __init__(self, transport: Transport, retries: int = 0, retry_delay_ms: int = 300):
        self.transport = transport
        self.retries = retries
        self.retry_delay_ms = retry_delay_ms

    async def execute(self, operation: Operation) -> Any:
        """
        Run ``operation`` and return its ``data``.

        Raises:
            ApiError: When every attempt failed
        """
        attempts = 0
        async for attempt in build_retrying(self.retries, self.retry_delay_ms):
            with attempt:
                attempts += 1
                try:
                    response = await operation()
                except Exception as exc:
                    error = to_api_error(exc)
                    logger.warning(
                        "API call failed",
                        attempt=attempts,
                        max_attempts=self.retries + 1,
                        status=error.status,
                        error=error.message,
                    )
                    if error is exc:
                        raise
                    raise error from exc
        return response.data

    async def list(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.execute(lambda: self.transport.get(path, params=params))

    async def get_by_id(self, path: str, record_id: RecordId) -> Any:
        """Fetch one record; a 404 becomes ``None`` instead of an error."""
        try:
            return await self.execute(lambda: self.transport.get(f"{path}/{record_id}"))
        except ApiError as e:
            if e.is_not_found:
                logger.debug("Record not found", path=path, record_id=record_id)
                return None
            raise

    async def create(self, path: str, payload: Any) -> Any:
        return await self.execute(lambda: self.transport.post(path, json=payload))

    async def update_by_id(self, path: str, record_id: RecordId, payload: Any) -> Any:
        return await self.execute(lambda: self.transport.put(f"{path}/{record_id}", json=payload))

    async def delete_by_id(self, path: str, record_id: RecordId) -> Any:
        return await self.execute(lambda: self.transport.delete(f"{path}/{record_id}"))
