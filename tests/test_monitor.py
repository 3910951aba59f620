"""Tests for the periodic cache refresher."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from monitor import CacheRefresher, refresh_cache

def make_service(result=None, side_effect=None):
    service = MagicMock()
    service.get_all_data = AsyncMock(return_value=result, side_effect=side_effect)
    return service

@pytest.mark.asyncio
async def test_refresh_once_forces_refresh():
    data = {
        'trades': {'status': 'ok', 'count': 1},
        'burns': {'status': 'stale', 'count': 4},
        'timestamp': '2024-01-01T00:00:00.000Z',
    }
    service = make_service(result=data)
    refresher = CacheRefresher(service, interval=10)

    assert await refresher.refresh_once() is True
    service.get_all_data.assert_awaited_once_with(force_refresh=True)
    assert refresher.last_refresh == data
    assert refresher.refreshing is False

@pytest.mark.asyncio
async def test_overlapping_refresh_is_skipped():
    release = asyncio.Event()

    async def slow_refresh(**kwargs):
        await release.wait()
        return {}

    service = make_service(side_effect=slow_refresh)
    refresher = CacheRefresher(service)

    first = asyncio.create_task(refresher.refresh_once())
    await asyncio.sleep(0)
    assert refresher.refreshing is True

    assert await refresher.refresh_once() is False

    release.set()
    assert await first is True
    assert service.get_all_data.await_count == 1

@pytest.mark.asyncio
async def test_failed_refresh_does_not_stop_refresher():
    service = make_service(side_effect=RuntimeError("node down"))
    refresher = CacheRefresher(service)

    assert await refresher.refresh_once() is True
    assert refresher.refreshing is False
    assert refresher.last_refresh is None

@pytest.mark.asyncio
async def test_start_loops_until_stopped():
    refresher = refresh_cache(None, interval=0)

    async def refresh_and_stop(**kwargs):
        if refresher.service.get_all_data.await_count >= 2:
            refresher.stop()
        return {}

    refresher.service = make_service(side_effect=refresh_and_stop)
    await asyncio.wait_for(refresher.start(), timeout=5)

    assert refresher.running is False
    assert refresher.service.get_all_data.await_count == 2
