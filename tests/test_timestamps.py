"""Tests for Ardor timestamp conversion."""

from datetime import datetime, timedelta, timezone

import pytest

from activity.timestamps import (
    ARDOR_EPOCH,
    chain_timestamp_to_date,
    chain_timestamp_to_iso,
    date_to_chain_timestamp,
    extract_date_part,
    period_cutoff,
    to_datetime,
)

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

def test_epoch_is_2018():
    assert ARDOR_EPOCH == datetime(2018, 1, 1, tzinfo=timezone.utc)
    assert chain_timestamp_to_date(0) == ARDOR_EPOCH
    assert chain_timestamp_to_iso(86400) == '2018-01-02T00:00:00.000Z'

def test_round_trip_to_the_second():
    date = datetime(2024, 5, 6, 7, 8, 9, 750000, tzinfo=timezone.utc)
    assert chain_timestamp_to_date(date_to_chain_timestamp(date)) == date.replace(microsecond=0)

@pytest.mark.parametrize('value', [-1, '-5', 1.5, 'abc', None])
def test_invalid_chain_timestamps(value):
    with pytest.raises(ValueError):
        chain_timestamp_to_date(value)

def test_disambiguates_seconds_and_milliseconds():
    """Numbers below 1e10 are Ardor seconds, larger ones Unix milliseconds."""
    assert to_datetime(1600000) == datetime(2018, 1, 19, 12, 26, 40, tzinfo=timezone.utc)
    assert to_datetime(1700000000000) == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
    assert to_datetime('1600000') == to_datetime(1600000)

def test_to_datetime_accepts_iso_and_datetime():
    assert to_datetime('2024-01-02T03:04:05.000Z') == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert to_datetime(NOW) is NOW
    assert to_datetime(None) is None

def test_period_cutoffs():
    assert period_cutoff('24h', now=NOW) == NOW - timedelta(hours=24)
    assert period_cutoff('7d', now=NOW) == NOW - timedelta(days=7)
    assert period_cutoff('30d', now=NOW) == NOW - timedelta(days=30)
    assert period_cutoff('all', now=NOW) == ARDOR_EPOCH

def test_unknown_period_falls_back_to_30d():
    assert period_cutoff('90d', now=NOW) == period_cutoff('30d', now=NOW)

def test_period_cutoff_as_chain_timestamp():
    assert period_cutoff('all', as_chain_timestamp=True) == 0
    assert period_cutoff('24h', as_chain_timestamp=True, now=NOW) == date_to_chain_timestamp(NOW) - 86400

def test_extract_date_part():
    assert extract_date_part(1700000000000) == '2023-11-14'
    assert extract_date_part('not a date') is None
    assert extract_date_part(None) is None
