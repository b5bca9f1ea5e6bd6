"""
Reliability patterns for consolesync.

Provides the retry policy shared by every remote call and operation timing.
"""

import asyncio
import logging
import time
from functools import wraps
from typing import Callable

import structlog
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

logger = structlog.get_logger(__name__)


def build_retrying(retries: int = 0, retry_delay_ms: int = 300) -> AsyncRetrying:
    """
    Build a fixed-delay async retry controller.

    ``retries`` counts additional attempts, so an operation runs at most
    ``retries + 1`` times. The last exception is re-raised unchanged.
    """
    return AsyncRetrying(
        stop=stop_after_attempt(retries + 1),
        wait=wait_fixed(retry_delay_ms / 1000.0),
        retry=retry_if_exception_type(Exception),
        before_sleep=before_sleep_log(logging.getLogger(__name__), logging.WARNING),
        reraise=True,
    )


def track_performance(operation_name: str):
    """
    Decorator to track performance metrics for operations.

    Works for plain functions and coroutine functions.

    Args:
        operation_name: Name of the operation for logging
    """

    def decorator(func: Callable) -> Callable:
        def _finished(start_time: float, status: str, **extra):
            log = logger.info if status == "success" else logger.error
            log(
                "Performance tracking completed",
                operation=operation_name,
                duration_seconds=round(time.time() - start_time, 4),
                status=status,
                **extra,
            )

        if asyncio.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                start_time = time.time()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _finished(start_time, "failed", error=str(e))
                    raise
                _finished(start_time, "success")
                return result

            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _finished(start_time, "failed", error=str(e))
                raise
            _finished(start_time, "success")
            return result

        return wrapper

    return decorator
