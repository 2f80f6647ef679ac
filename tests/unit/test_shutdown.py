"""Tests for graceful shutdown request tracking."""

import asyncio

import pytest

from src.identity.core.shutdown import RequestTracker

pytestmark = [pytest.mark.unit, pytest.mark.asyncio]


class TestRequestTracker:
    async def test_request_tracking(self):
        tracker = RequestTracker()
        assert tracker.in_flight_count == 0
        assert not tracker.is_shutting_down

        async with tracker.track_request():
            assert tracker.in_flight_count == 1

        assert tracker.in_flight_count == 0

    async def test_drain_waits_for_in_flight(self):
        tracker = RequestTracker()
        release = asyncio.Event()

        async def slow_request():
            async with tracker.track_request():
                await release.wait()

        task = asyncio.create_task(slow_request())
        await asyncio.sleep(0)
        assert tracker.in_flight_count == 1

        await tracker.start_shutdown()
        assert tracker.is_shutting_down
        assert not await tracker.wait_for_drain(timeout=0.01)

        release.set()
        await task
        assert await tracker.wait_for_drain(timeout=1)

    async def test_drain_immediate_when_idle(self):
        tracker = RequestTracker()
        await tracker.start_shutdown()
        assert await tracker.wait_for_drain(timeout=0.01)

    async def test_reset(self):
        tracker = RequestTracker()
        await tracker.start_shutdown()
        tracker.reset()
        assert not tracker.is_shutting_down
