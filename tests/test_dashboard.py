"""Tests for the dashboard state container and data manager."""

from unittest.mock import MagicMock

import pytest
import requests

from dashboard import ActivityAPIClient, DashboardAPIError, DashboardState, DataManager

class FakeAPIClient:
    def __init__(self):
        self.calls = []
        self.failing = set()

    def fetch(self, key, period='all', refresh=False):
        self.calls.append((key, period, refresh))
        if key in self.failing:
            raise DashboardAPIError(f"Request to /api/{key} failed", f"/api/{key}")
        return {key: [{'id': f'{key}-1'}], 'count': 1, 'period': period, 'status': 'ok'}

@pytest.fixture
def api_client():
    return FakeAPIClient()

@pytest.fixture
def manager(api_client):
    return DataManager(api_client, DashboardState('7d'), poll_interval=0, keys=['trades', 'burns'])

@pytest.mark.asyncio
async def test_refresh_fills_state(manager, api_client):
    assert await manager.refresh() is True

    assert sorted(api_client.calls) == [('burns', '7d', False), ('trades', '7d', False)]
    assert manager.state.count('trades') == 1
    assert manager.state.get('burns')['period'] == '7d'
    assert manager.state.last_updated is not None

@pytest.mark.asyncio
async def test_failed_refresh_keeps_last_value(manager, api_client):
    await manager.refresh()
    api_client.failing.add('burns')

    await manager.refresh(force=True)

    assert manager.state.get('burns')['burns'] == [{'id': 'burns-1'}]
    assert 'failed' in manager.state.error('burns')
    assert manager.state.error('trades') is None
    assert ('trades', '7d', True) in api_client.calls

@pytest.mark.asyncio
async def test_refresh_in_progress_is_skipped(manager, api_client):
    manager.refreshing = True
    assert await manager.refresh() is False
    assert api_client.calls == []

@pytest.mark.asyncio
async def test_set_period_refreshes_on_change(manager, api_client):
    assert await manager.set_period('7d') is False
    assert api_client.calls == []

    assert await manager.set_period('24h') is True
    assert {period for _, period, _ in api_client.calls} == {'24h'}

    with pytest.raises(ValueError):
        await manager.set_period('1y')

def test_state_listeners():
    state = DashboardState()
    events = []
    unsubscribe = state.subscribe(lambda key, value: events.append((key, value)))

    state.update('morphs', {'morphs': [], 'count': 0})
    state.set_period('all')
    unsubscribe()
    state.update('morphs', {'morphs': [], 'count': 0})

    assert events == [('morphs', {'morphs': [], 'count': 0}), ('period', 'all')]

def test_state_get_returns_copy():
    state = DashboardState()
    state.update('users', {'ardor_users': [], 'count': 0})
    state.get('users')['ardor_users'].append('tampered')
    assert state.get('users')['ardor_users'] == []
    assert state.count('missing') == 0

def test_state_rejects_invalid_period():
    with pytest.raises(ValueError):
        DashboardState('forever')

def test_api_client_fetch():
    session = MagicMock()
    session.get.return_value.json.return_value = {'trades': [], 'count': 0}
    client = ActivityAPIClient('http://api.example.org/', session=session)

    assert client.fetch('trades', '24h', refresh=True) == {'trades': [], 'count': 0}
    session.get.assert_called_once_with(
        'http://api.example.org/api/trades',
        params={'period': '24h', 'refresh': 'true'},
        timeout=30
    )

def test_api_client_wraps_transport_errors():
    session = MagicMock()
    session.get.side_effect = requests.exceptions.ConnectionError("refused")
    client = ActivityAPIClient(session=session)

    with pytest.raises(DashboardAPIError) as exc_info:
        client.fetch('giftz')
    assert exc_info.value.endpoint == '/api/giftz'
