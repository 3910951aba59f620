"""Tests for the REST endpoints."""

import time

import pytest
from fastapi.testclient import TestClient

from api import create_app

@pytest.fixture
def client(service, settings):
    app = create_app(service=service, settings=settings, start_refresher=False)
    with TestClient(app) as test_client:
        yield test_client

def test_burns_filtered_to_last_day(client, seeded_cache):
    """Of 10 cached burns only the 3 from the last 24 hours are returned."""
    response = client.get("/api/burns", params={"period": "24h"})

    assert response.status_code == 200
    body = response.json()
    assert body['count'] == 3
    assert len(body['burns']) == 3
    assert body['period'] == '24h'
    assert body['status'] == 'ok'
    assert [burn['id'] for burn in body['burns']] == ['burn-0', 'burn-1', 'burn-2']

def test_default_period_is_all(client, seeded_cache):
    body = client.get("/api/burns").json()
    assert body['count'] == 10
    assert body['period'] == 'all'

def test_refresh_bypasses_cache(client, seeded_cache, fake_ardor):
    body = client.get("/api/burns", params={"refresh": "true"}).json()

    assert 'getAssetTransfers' in fake_ardor.calls
    assert body['count'] == 0
    assert body['status'] == 'ok'

def test_upstream_failure_is_reported_in_body(client, fake_ardor, fake_polygon):
    fake_ardor.fail = True
    fake_polygon.fail = True

    response = client.get("/api/trades", params={"period": "7d"})

    assert response.status_code == 200
    body = response.json()
    assert body['trades'] == []
    assert body['count'] == 0
    assert body['total_quantity'] == 0
    assert body['status'] == 'error'

def test_users_split_by_chain(client):
    body = client.get("/api/users").json()
    assert body['ardor_users'] == []
    assert body['polygon_users'] == []
    assert body['count'] == 0

def test_all_endpoint(client, seeded_cache):
    body = client.get("/api/all", params={"period": "24h"}).json()

    assert body['burns']['count'] == 3
    assert set(body) == {'trades', 'burns', 'craftings', 'morphs', 'giftz_sales', 'users', 'timestamp'}

def test_cache_status(client, seeded_cache):
    body = client.get("/api/cache/status").json()

    assert body['count'] == 1
    info = body['files'][0]
    assert info['key'] == 'burns'
    assert info['records'] == 10
    assert info['date_range']['start'] <= info['date_range']['end']

def test_cache_file(client, seeded_cache):
    assert client.get("/api/cache/file/burns").json()['count'] == 10
    assert client.get("/api/cache/file/morphs").status_code == 404
    assert client.get("/api/cache/file/bad.key").status_code == 400

def test_cache_delete_and_clear(client, seeded_cache):
    assert client.delete("/api/cache/burns").json() == {'success': True, 'key': 'burns'}
    assert client.delete("/api/cache/burns").status_code == 404

    client.get("/api/burns")
    body = client.post("/api/cache/clear").json()
    assert body['success'] is True
    assert 'burns' in body['removed']

def test_health(client, fake_ardor):
    body = client.get("/api/health").json()

    assert body['status'] == 'healthy'
    assert body['node']['height'] == 4200000
    assert body['cache_files'] == 0

    fake_ardor.fail = True
    body = client.get("/api/health").json()
    assert body['status'] == 'degraded'
    assert body['node']['status'] == 'unreachable'

def test_health_reports_slow_node_as_unreachable(client, fake_ardor, monkeypatch):
    monkeypatch.setattr('api.system.NODE_STATUS_TIMEOUT', 0.05)

    def slow_status(**params):
        time.sleep(1)
        return {'numberOfBlocks': 1}
    monkeypatch.setattr(fake_ardor, 'getBlockchainStatus', slow_status)

    started = time.monotonic()
    response = client.get("/api/health")

    assert response.status_code == 200
    assert time.monotonic() - started < 1
    body = response.json()
    assert body['status'] == 'degraded'
    assert body['node']['status'] == 'unreachable'
    assert 'Timed out' in body['node']['error']

def test_cache_status_with_undecodable_entry(client, cache):
    cache.storage_dir.mkdir(parents=True)
    cache.path_for('burns').write_bytes(b'\xff\xfe{"burns": []}')

    response = client.get("/api/cache/status")

    assert response.status_code == 200
    info = response.json()['files'][0]
    assert (info['key'], info['records']) == ('burns', 0)
    assert client.get("/api/burns").status_code == 200
