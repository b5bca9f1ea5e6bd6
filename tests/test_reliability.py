"""
Test suite for reliability helpers.

Validates the retry controller and performance tracking.
"""

import asyncio
from unittest.mock import patch

import pytest

from consolesync.utils.reliability import build_retrying, track_performance


class TestBuildRetrying:
    """Test the fixed-delay retry controller."""

    def _attempts(self, retrying, fail_times):
        calls = []

        async def run():
            async for attempt in retrying:
                with attempt:
                    calls.append(1)
                    if len(calls) <= fail_times:
                        raise RuntimeError("transient")
            return len(calls)

        return asyncio.run(run()), calls

    def test_succeeds_after_retries(self):
        result, _ = self._attempts(build_retrying(retries=2, retry_delay_ms=0), fail_times=2)

        assert result == 3

    def test_reraises_last_error(self):
        with pytest.raises(RuntimeError, match="transient"):
            self._attempts(build_retrying(retries=1, retry_delay_ms=0), fail_times=5)

    def test_zero_retries_runs_once(self):
        calls = []

        async def run():
            async for attempt in build_retrying(retries=0, retry_delay_ms=0):
                with attempt:
                    calls.append(1)
                    raise RuntimeError("permanent")

        with pytest.raises(RuntimeError):
            asyncio.run(run())
        assert len(calls) == 1

    def test_base_exceptions_are_not_retried(self):
        class Halt(BaseException):
            pass

        calls = []

        async def run():
            async for attempt in build_retrying(retries=3, retry_delay_ms=0):
                with attempt:
                    calls.append(1)
                    raise Halt()

        with pytest.raises(Halt):
            asyncio.run(run())
        assert len(calls) == 1


class TestTrackPerformance:
    """Test operation timing for sync and async callables."""

    def test_sync_function(self):
        @track_performance("sync_op")
        def add(a, b):
            return a + b

        with patch("consolesync.utils.reliability.logger") as logger:
            assert add(1, 2) == 3

        assert logger.info.call_args.kwargs["operation"] == "sync_op"
        assert logger.info.call_args.kwargs["status"] == "success"

    def test_async_function_failure(self):
        @track_performance("async_op")
        async def explode():
            raise ValueError("nope")

        with patch("consolesync.utils.reliability.logger") as logger:
            with pytest.raises(ValueError):
                asyncio.run(explode())

        assert logger.error.call_args.kwargs["status"] == "failed"
        assert logger.error.call_args.kwargs["error"] == "nope"

    def test_preserves_coroutine_function(self):
        @track_performance("async_op")
        async def noop():
            return "done"

        assert asyncio.iscoroutinefunction(noop)
        assert asyncio.run(noop()) == "done"
