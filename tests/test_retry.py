"""Tests for the retry executor."""

import asyncio
import logging
import time

import pytest

from delaykit import Backoff, RetryExhaustedError, RetryPolicy, async_retry, retry, run_with_retry


def failing(errors):
    """Async operation that raises each error in turn, then returns 'ok'."""
    calls = []

    async def operation():
        calls.append(len(calls) + 1)
        if len(calls) <= len(errors):
            raise errors[len(calls) - 1]
        return "ok"

    operation.calls = calls
    return operation


class TestRetrySuccess:
    """Test paths that eventually succeed."""

    @pytest.mark.asyncio
    async def test_first_attempt(self, sleeps):
        """Immediate success returns without sleeping."""
        op = failing([])

        assert await retry(op, retries=3, delay=50) == "ok"
        assert op.calls == [1]
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_success_on_third_attempt(self, sleeps):
        """Succeeding on attempt 3 makes 3 calls and 2 sleeps."""
        attempts = 0

        async def operation():
            nonlocal attempts
            attempts += 1
            if attempts >= 3:
                return "success"
            raise RuntimeError("retry")

        assert await retry(operation, retries=3, delay=50) == "success"
        assert attempts == 3
        assert sleeps == [50, 50]

    @pytest.mark.asyncio
    async def test_sync_operation(self, sleeps):
        """Plain callables are supported."""
        results = iter([ValueError("no"), 7])

        def operation():
            value = next(results)
            if isinstance(value, Exception):
                raise value
            return value

        assert await retry(operation, retries=1, delay=10) == 7
        assert sleeps == [10]

    @pytest.mark.asyncio
    async def test_real_sleep(self):
        """Without patching, the pause is actually waited."""
        op = failing([ValueError("once")])
        started = time.monotonic()

        assert await retry(op, retries=1, delay=30) == "ok"
        assert time.monotonic() - started >= 0.025


class TestRetryExhaustion:
    """Test paths that run out of attempts."""

    @pytest.mark.asyncio
    async def test_permanent_failure(self, sleeps):
        """retries=2 makes 3 attempts and reports the last error."""
        last = RuntimeError("permanent")
        op = failing([RuntimeError("permanent"), RuntimeError("permanent"), last])

        with pytest.raises(RetryExhaustedError) as exc_info:
            await retry(op, retries=2)

        error = exc_info.value
        assert error.attempts == 3
        assert str(error.cause) == "permanent"
        assert error.cause is last
        assert error.__cause__ is last
        assert error.final_delay == 2000
        assert str(error) == "Retry failed after 3 attempts"
        assert len(op.calls) == 3
        assert sleeps == [2000, 2000]

    @pytest.mark.asyncio
    async def test_zero_retries(self, sleeps):
        """retries=0 means one attempt and no sleep."""
        op = failing([ValueError("once")])

        with pytest.raises(RetryExhaustedError) as exc_info:
            await retry(op, retries=0, delay=100)

        assert exc_info.value.attempts == 1
        assert exc_info.value.final_delay == 100
        assert op.calls == [1]
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_fixed_backoff(self, sleeps):
        """Fixed backoff sleeps d between attempts and reports d."""
        op = failing([ValueError("x")] * 5)

        with pytest.raises(RetryExhaustedError) as exc_info:
            await retry(op, retries=4, delay=25, backoff="fixed")

        assert exc_info.value.attempts == 5
        assert exc_info.value.final_delay == 25
        assert sleeps == [25, 25, 25, 25]

    @pytest.mark.asyncio
    async def test_exponential_backoff(self, sleeps):
        """Exponential backoff doubles before each sleep."""
        op = failing([ValueError("x")] * 3)

        with pytest.raises(RetryExhaustedError) as exc_info:
            await retry(op, retries=2, delay=100, backoff=Backoff.EXPONENTIAL)

        assert sleeps == [200, 400]
        assert exc_info.value.final_delay == 400
        assert exc_info.value.attempts == 3

    @pytest.mark.asyncio
    async def test_exponential_longer_run(self, sleeps):
        """Sleeps follow d*2 .. d*2^r."""
        op = failing([ValueError("x")] * 5)

        with pytest.raises(RetryExhaustedError) as exc_info:
            await retry(op, retries=4, delay=10, backoff="exponential")

        assert sleeps == [20, 40, 80, 160]
        assert exc_info.value.final_delay == 160

    @pytest.mark.asyncio
    async def test_logs_attempts(self, sleeps, caplog):
        """Each retry logs a warning and exhaustion logs an error."""
        op = failing([ValueError("x")] * 3)

        with caplog.at_level(logging.WARNING, logger="delaykit"):
            with pytest.raises(RetryExhaustedError):
                await retry(op, retries=2, delay=1)

        messages = [r.getMessage() for r in caplog.records]
        assert messages.count("retry_attempt") == 2
        assert messages.count("retry_exhausted") == 1


class TestRetryFiltering:
    """Test which failures are retried."""

    @pytest.mark.asyncio
    async def test_unlisted_exception_propagates(self, sleeps):
        """Exceptions outside `exceptions` are raised immediately."""
        op = failing([TypeError("bad")])

        with pytest.raises(TypeError, match="bad"):
            await retry(op, retries=3, delay=10, exceptions=(ValueError,))

        assert op.calls == [1]
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, sleeps):
        """CancelledError is never retried."""
        op = failing([asyncio.CancelledError()])

        with pytest.raises(asyncio.CancelledError):
            await retry(op, retries=3, delay=10, exceptions=(BaseException,))

        assert op.calls == [1]


class TestRetryPolicy:
    """Test policy validation and the policy-based entry point."""

    @pytest.mark.asyncio
    async def test_run_with_policy(self, sleeps):
        """run_with_retry takes a ready policy."""
        policy = RetryPolicy(retries=1, delay=5, backoff="exponential")
        op = failing([ValueError("x")])

        assert await run_with_retry(op, policy) == "ok"
        assert sleeps == [10]

    def test_defaults(self):
        """Defaults are 3 retries, 2000ms, fixed."""
        policy = RetryPolicy()

        assert policy.retries == 3
        assert policy.delay == 2000
        assert policy.backoff is Backoff.FIXED

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"retries": -1},
            {"retries": 1.5},
            {"delay": -10},
            {"delay": float("nan")},
            {"delay": float("inf")},
            {"backoff": "linear"},
        ],
    )
    def test_invalid(self, kwargs):
        """Invalid values raise ValueError."""
        with pytest.raises(ValueError):
            RetryPolicy(**kwargs)

    @pytest.mark.asyncio
    async def test_retry_validates(self):
        """retry() rejects a bad backoff before calling the operation."""
        op = failing([])

        with pytest.raises(ValueError):
            await retry(op, backoff="linear")
        assert op.calls == []

    @pytest.mark.asyncio
    async def test_retry_rejects_nan_delay(self):
        """A NaN delay fails fast instead of sleeping forever."""
        op = failing([ValueError("x")])

        with pytest.raises(ValueError, match="finite"):
            await asyncio.wait_for(retry(op, retries=1, delay=float("nan")), 1)
        assert op.calls == []


class TestAsyncRetryDecorator:
    """Test the decorator form."""

    @pytest.mark.asyncio
    async def test_passes_arguments(self, sleeps):
        """Arguments reach every attempt."""
        seen = []

        @async_retry(retries=2, delay=15)
        async def add(a, b=0):
            seen.append((a, b))
            if len(seen) < 2:
                raise ConnectionError("flaky")
            return a + b

        assert await add(2, b=3) == 5
        assert seen == [(2, 3), (2, 3)]
        assert sleeps == [15]
        assert add.__name__ == "add"

    @pytest.mark.asyncio
    async def test_exhausts(self, sleeps):
        """The decorated function raises RetryExhaustedError."""

        @async_retry(retries=1, delay=10, backoff="exponential")
        async def always_fails():
            raise OSError("down")

        with pytest.raises(RetryExhaustedError) as exc_info:
            await always_fails()

        assert exc_info.value.attempts == 2
        assert exc_info.value.final_delay == 20

    def test_invalid_at_decoration(self):
        """Bad parameters fail when decorating."""
        with pytest.raises(ValueError):
            async_retry(retries=-2)
