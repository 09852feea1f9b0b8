"""Tests for the retry helper."""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from briefing.errors import PermanentExternalError, TransientExternalError
from briefing.resilience.retry import backoff_delay, is_transient_error, retry_async


@pytest.fixture
def sleep() -> AsyncMock:
    return AsyncMock()


class TestIsTransientError:
    """Tests for failure classification."""

    def test_typed_errors(self):
        assert is_transient_error(TransientExternalError("boom", 503)) is True
        assert is_transient_error(PermanentExternalError("nope", 403)) is False

    def test_timeouts_are_transient(self):
        assert is_transient_error(httpx.ReadTimeout("slow")) is True
        assert is_transient_error(asyncio.TimeoutError()) is True

    @pytest.mark.parametrize("status,expected", [(429, True), (500, True), (503, True), (400, False), (404, False)])
    def test_http_status_errors(self, status, expected):
        request = httpx.Request("GET", "https://example.com")
        response = httpx.Response(status, request=request)
        exc = httpx.HTTPStatusError("status", request=request, response=response)

        assert is_transient_error(exc) is expected

    def test_unknown_errors_are_permanent(self):
        assert is_transient_error(ValueError("bad")) is False


class TestBackoff:
    def test_doubles(self):
        assert [backoff_delay(n, 1.0) for n in range(3)] == [1.0, 2.0, 4.0]


class TestRetryAsync:
    """Tests for retry_async."""

    @pytest.mark.asyncio
    async def test_returns_first_success(self, sleep):
        operation = AsyncMock(return_value="ok")

        assert await retry_async(operation, sleep=sleep) == "ok"
        assert operation.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_two_transient_failures_then_success(self, sleep):
        """Three invocations, sleeping 1s then 2s."""
        operation = AsyncMock(side_effect=[
            TransientExternalError("503", 503),
            TransientExternalError("503", 503),
            "ok",
        ])

        result = await retry_async(operation, max_retries=2, initial_delay=1.0, sleep=sleep)

        assert result == "ok"
        assert operation.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]
        assert sum(c.args[0] for c in sleep.await_args_list) == 3.0

    @pytest.mark.asyncio
    async def test_permanent_failure_is_not_retried(self, sleep):
        operation = AsyncMock(side_effect=PermanentExternalError("401", 401))

        with pytest.raises(PermanentExternalError):
            await retry_async(operation, max_retries=2, sleep=sleep)

        assert operation.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_last_transient_failure_propagates(self, sleep):
        errors = [TransientExternalError(f"attempt {i}", 500) for i in range(3)]
        operation = AsyncMock(side_effect=errors)

        with pytest.raises(TransientExternalError) as exc_info:
            await retry_async(operation, max_retries=2, sleep=sleep)

        assert exc_info.value is errors[-1]
        assert operation.await_count == 3

    @pytest.mark.asyncio
    async def test_zero_retries_runs_once(self, sleep):
        operation = AsyncMock(side_effect=TransientExternalError("503", 503))

        with pytest.raises(TransientExternalError):
            await retry_async(operation, max_retries=0, sleep=sleep)

        assert operation.await_count == 1

    @pytest.mark.asyncio
    async def test_custom_classifier(self, sleep):
        operation = AsyncMock(side_effect=[KeyError("flaky"), "ok"])

        result = await retry_async(
            operation,
            classify=lambda e: isinstance(e, KeyError),
            sleep=sleep,
        )

        assert result == "ok"
        assert operation.await_count == 2

    @pytest.mark.asyncio
    async def test_cancellation_during_sleep_propagates(self):
        operation = AsyncMock(side_effect=TransientExternalError("503", 503))
        cancelling_sleep = AsyncMock(side_effect=asyncio.CancelledError())

        with pytest.raises(asyncio.CancelledError):
            await retry_async(operation, sleep=cancelling_sleep)

        assert operation.await_count == 1
