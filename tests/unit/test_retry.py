"""Unit tests for conflict retries."""

import pytest
from unittest.mock import AsyncMock

from bootimage.utils.errors import ConflictError, StoreError
from bootimage.utils.retry import DEFAULT_RETRY, RetryPolicy, retry_on_conflict


class TestRetryPolicy:
    def test_default_policy(self):
        assert DEFAULT_RETRY == RetryPolicy(steps=5, duration=0.01, factor=1.0, jitter=0.1)

    def test_delays(self):
        delays = list(RetryPolicy(steps=4, duration=0.5, factor=2.0, jitter=0.0).delays())
        assert delays == [0.5, 1.0, 2.0]

    def test_jitter_is_bounded(self):
        for delay in RetryPolicy(steps=20, duration=1.0, factor=1.0, jitter=0.1).delays():
            assert 1.0 <= delay <= 1.1


class TestRetryOnConflict:
    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        fn = AsyncMock(return_value="ok")
        sleep = AsyncMock()

        assert await retry_on_conflict(DEFAULT_RETRY, fn, sleep=sleep) == "ok"
        fn.assert_awaited_once()
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retries_conflicts(self):
        fn = AsyncMock(side_effect=[ConflictError("c1"), ConflictError("c2"), "ok"])
        sleep = AsyncMock()

        assert await retry_on_conflict(DEFAULT_RETRY, fn, sleep=sleep) == "ok"
        assert fn.await_count == 3
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_surfaces_last_conflict(self):
        errors = [ConflictError(f"c{i}") for i in range(5)]
        fn = AsyncMock(side_effect=errors)

        with pytest.raises(ConflictError) as exc:
            await retry_on_conflict(DEFAULT_RETRY, fn, sleep=AsyncMock())

        assert exc.value is errors[-1]
        assert fn.await_count == 5

    @pytest.mark.asyncio
    async def test_other_errors_are_not_retried(self):
        fn = AsyncMock(side_effect=StoreError("forbidden", status=403))

        with pytest.raises(StoreError):
            await retry_on_conflict(DEFAULT_RETRY, fn, sleep=AsyncMock())

        fn.assert_awaited_once()
