"""Tests for period filtering."""

from datetime import datetime, timedelta, timezone

from activity.periods import filter_by_period, period_stats, total_quantity
from activity.timestamps import date_to_chain_timestamp

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

def ardor(**delta):
    return date_to_chain_timestamp(NOW - timedelta(**delta))

def unix_ms(**delta):
    return int((NOW - timedelta(**delta)).timestamp() * 1000)

RECORDS = [
    {'id': 'a', 'timestamp': ardor(hours=2)},
    {'id': 'b', 'timestamp': unix_ms(hours=30)},
    {'id': 'c', 'timestamp': ardor(days=10)},
    {'id': 'd', 'timestamp': unix_ms(days=45)},
    {'id': 'e', 'timestamp_iso': (NOW - timedelta(days=3)).isoformat()},
    {'id': 'f'},
]

def ids(records):
    return [record['id'] for record in records]

def test_periods_are_nested():
    """24h is a subset of 7d, which is a subset of 30d, which is a subset of all."""
    day = set(ids(filter_by_period(RECORDS, '24h', now=NOW)))
    week = set(ids(filter_by_period(RECORDS, '7d', now=NOW)))
    month = set(ids(filter_by_period(RECORDS, '30d', now=NOW)))
    everything = set(ids(filter_by_period(RECORDS, 'all', now=NOW)))

    assert day <= week <= month <= everything
    assert day == {'a', 'f'}
    assert week == {'a', 'b', 'e', 'f'}
    assert month == {'a', 'b', 'c', 'e', 'f'}
    assert everything == {'a', 'b', 'c', 'd', 'e', 'f'}

def test_all_is_identity():
    assert filter_by_period(RECORDS, 'all') == RECORDS

def test_custom_accessor():
    users = [{'id': 'u1', 'last_seen': (NOW - timedelta(hours=1)).isoformat()},
             {'id': 'u2', 'last_seen': (NOW - timedelta(days=2)).isoformat()}]
    kept = filter_by_period(users, '24h', lambda user: user['last_seen'], now=NOW)
    assert ids(kept) == ['u1']

def test_period_stats():
    stats = period_stats(RECORDS, now=NOW)
    assert stats == {'24h': 2, '7d': 4, '30d': 5, 'total': 6}

def test_total_quantity_defaults_to_one():
    assert total_quantity([{'quantity': 3}, {'quantity': None}, {}, {'quantity': '2'}]) == 7
