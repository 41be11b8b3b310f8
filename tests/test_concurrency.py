"""
Concurrency Module Tests
========================
Tests for keyed single-flight execution.
"""

import asyncio

import pytest

from reconciler.concurrency import SingleFlight


class TestSingleFlight:
    """Tests for SingleFlight."""

    @pytest.mark.asyncio
    async def test_returns_value(self):
        flights = SingleFlight()

        async def work():
            return 42

        assert await flights.do("k", work) == 42
        assert not flights.in_flight("k")

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_execution(self):
        flights = SingleFlight()
        calls = []

        async def work():
            calls.append(1)
            await asyncio.sleep(0.01)
            return object()

        results = await asyncio.gather(*(flights.do("k", work) for _ in range(10)))

        assert len(calls) == 1
        assert all(result is results[0] for result in results)

    @pytest.mark.asyncio
    async def test_distinct_keys_run_in_parallel(self):
        flights = SingleFlight()
        running = set()
        both_running = asyncio.Event()

        async def work(key):
            running.add(key)
            if len(running) == 2:
                both_running.set()
            await asyncio.wait_for(both_running.wait(), timeout=1.0)
            return key

        results = await asyncio.gather(
            flights.do("a", lambda: work("a")),
            flights.do("b", lambda: work("b")),
        )
        assert results == ["a", "b"]

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_shared_work(self):
        flights = SingleFlight()
        started = asyncio.Event()
        release = asyncio.Event()
        calls = []

        async def work():
            calls.append(1)
            started.set()
            await release.wait()
            return "done"

        first = asyncio.create_task(flights.do("k", work))
        await started.wait()
        second = asyncio.create_task(flights.do("k", work))
        await asyncio.sleep(0)

        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first

        assert flights.in_flight("k")
        release.set()
        assert await second == "done"
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_work_finishes_when_only_waiter_is_cancelled(self):
        flights = SingleFlight()
        finished = asyncio.Event()

        async def work():
            await asyncio.sleep(0.01)
            finished.set()
            return "done"

        waiter = asyncio.create_task(flights.do("k", work))
        await asyncio.sleep(0)
        waiter.cancel()

        await asyncio.wait_for(finished.wait(), timeout=1.0)
        await asyncio.sleep(0.01)
        assert not flights.in_flight("k")

    @pytest.mark.asyncio
    async def test_failure_is_not_cached(self):
        flights = SingleFlight()
        attempts = []

        async def work():
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("first attempt fails")
            return "ok"

        with pytest.raises(RuntimeError):
            await flights.do("k", work)
        assert not flights.in_flight("k")

        assert await flights.do("k", work) == "ok"
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_failure_reaches_every_waiter(self):
        flights = SingleFlight()

        async def work():
            await asyncio.sleep(0.01)
            raise ValueError("broken")

        results = await asyncio.gather(
            *(flights.do("k", work) for _ in range(3)),
            return_exceptions=True,
        )
        assert all(isinstance(result, ValueError) for result in results)
