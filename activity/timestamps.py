"""Conversion between Ardor-native timestamps and absolute time.

Ardor timestamps are whole seconds since 2018-01-01T00:00:00Z. Polygon records
carry Unix milliseconds. A bare number below ``1e10`` is read as Ardor seconds,
anything larger as Unix milliseconds.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

ARDOR_EPOCH = datetime(2018, 1, 1, tzinfo=timezone.utc)
ARDOR_EPOCH_MS = 1514764800000

# Numbers below this are Ardor seconds, otherwise Unix milliseconds
CHAIN_SECONDS_LIMIT = 1e10

PERIODS = {
    '24h': timedelta(hours=24),
    '7d': timedelta(days=7),
    '30d': timedelta(days=30),
}
DEFAULT_PERIOD = '30d'
VALID_PERIODS = ('24h', '7d', '30d', 'all')

def _as_int(ts: Any) -> int:
    if isinstance(ts, bool):
        raise ValueError(f"Invalid chain timestamp: {ts!r}")
    if isinstance(ts, str):
        ts = ts.strip()
        if not ts.lstrip('-').isdigit():
            raise ValueError(f"Invalid chain timestamp: {ts!r}")
        ts = int(ts)
    if isinstance(ts, float):
        if not ts.is_integer():
            raise ValueError(f"Chain timestamp must be whole seconds: {ts!r}")
        ts = int(ts)
    if not isinstance(ts, int):
        raise ValueError(f"Invalid chain timestamp: {ts!r}")
    if ts < 0:
        raise ValueError(f"Chain timestamp must not be negative: {ts}")
    return ts

def chain_timestamp_to_date(ts: Union[int, str]) -> datetime:
    """Convert an Ardor timestamp (seconds since the Ardor epoch) to a UTC datetime

    Raises:
        ValueError: If ``ts`` is negative or not a whole number
    """
    return ARDOR_EPOCH + timedelta(seconds=_as_int(ts))

def chain_timestamp_to_iso(ts: Union[int, str]) -> str:
    return to_iso(chain_timestamp_to_date(ts))

def date_to_chain_timestamp(date: datetime) -> int:
    """Convert a datetime to an Ardor timestamp, flooring to whole seconds"""
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    delta = date - ARDOR_EPOCH
    return delta.days * 86400 + delta.seconds

def to_iso(date: datetime) -> str:
    """Render an aware datetime as ISO-8601 UTC with millisecond precision and a Z suffix"""
    date = date.astimezone(timezone.utc)
    return date.strftime('%Y-%m-%dT%H:%M:%S.') + f"{date.microsecond // 1000:03d}Z"

def unix_ms(date: datetime) -> int:
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    return int(date.timestamp() * 1000)

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 string, accepting a trailing Z"""
    text = value.strip()
    if text.endswith('Z') or text.endswith('z'):
        text = text[:-1] + '+00:00'
    date = datetime.fromisoformat(text)
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    return date

def to_datetime(value: Any) -> Optional[datetime]:
    """Resolve any supported timestamp representation to an aware datetime

    Numbers (or numeric strings) below ``1e10`` are Ardor seconds, larger ones
    Unix milliseconds. ISO strings are parsed and datetimes pass through.
    Returns None for empty input.

    Raises:
        ValueError: If the value cannot be interpreted
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if isinstance(value, str):
        stripped = value.strip()
        try:
            value = float(stripped)
        except ValueError:
            return parse_iso(stripped)
    if isinstance(value, (int, float)):
        if value < CHAIN_SECONDS_LIMIT:
            return ARDOR_EPOCH + timedelta(seconds=value)
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    raise ValueError(f"Invalid timestamp: {value!r}")

def period_cutoff(period: str, as_chain_timestamp: bool = False,
                  now: Optional[datetime] = None) -> Union[datetime, int]:
    """Return the oldest instant included in ``period``

    ``all`` maps to the Ardor epoch. Unrecognized tokens fall back to ``30d``.

    Args:
        period: One of ``24h``, ``7d``, ``30d``, ``all``
        as_chain_timestamp: Return an Ardor timestamp instead of a datetime
        now: Reference instant (defaults to the current time)
    """
    if period == 'all':
        cutoff = ARDOR_EPOCH
    else:
        now = now or utcnow()
        cutoff = now - PERIODS.get(period, PERIODS[DEFAULT_PERIOD])
    if as_chain_timestamp:
        return max(date_to_chain_timestamp(cutoff), 0)
    return cutoff

def extract_date_part(value: Any) -> Optional[str]:
    """Return the ``YYYY-MM-DD`` part of a timestamp or None if it cannot be read"""
    try:
        date = to_datetime(value)
    except (ValueError, OverflowError):
        return None
    if date is None:
        return None
    return date.astimezone(timezone.utc).strftime('%Y-%m-%d')
