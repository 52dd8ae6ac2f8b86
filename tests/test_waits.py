"""Tests for condition polling."""

import pytest

from shopqa.pages.waits import poll_until


@pytest.mark.asyncio
class TestPollUntil:
    """Tests for poll_until()."""

    async def test_immediately_true(self):
        calls = []

        async def predicate():
            calls.append(1)
            return True

        assert await poll_until(predicate, timeout_ms=100, interval_ms=10) is True
        assert len(calls) == 1

    async def test_becomes_true(self):
        state = {"n": 0}

        async def predicate():
            state["n"] += 1
            return state["n"] >= 3

        assert await poll_until(predicate, timeout_ms=1000, interval_ms=1) is True
        assert state["n"] == 3

    async def test_times_out(self):
        async def predicate():
            return False

        assert await poll_until(predicate, timeout_ms=30, interval_ms=5) is False

    async def test_zero_timeout_still_evaluates(self):
        calls = []

        async def predicate():
            calls.append(1)
            return len(calls) == 2

        assert await poll_until(predicate, timeout_ms=0) is True
        assert len(calls) == 2

    async def test_predicate_errors_propagate(self):
        async def predicate():
            raise RuntimeError("browser gone")

        with pytest.raises(RuntimeError):
            await poll_until(predicate, timeout_ms=50)
