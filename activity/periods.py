"""Period filtering of normalized records"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from .timestamps import PERIODS, period_cutoff, to_datetime, utcnow

logger = logging.getLogger(__name__)

TimestampAccessor = Callable[[Dict[str, Any]], Any]

def default_timestamp(record: Dict[str, Any]) -> Any:
    """Read ``timestamp``, falling back to ``timestamp_iso``"""
    value = record.get('timestamp')
    if value is None or value == '':
        value = record.get('timestamp_iso')
    return value

def filter_by_period(records: Iterable[Dict[str, Any]], period: str,
                     timestamp_accessor: Optional[TimestampAccessor] = None,
                     now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Keep the records at or after the cutoff of ``period``

    ``all`` returns every record. Records whose timestamp is missing or cannot
    be read are kept.

    Args:
        records: Normalized records
        period: One of ``24h``, ``7d``, ``30d``, ``all`` (unknown tokens act as ``30d``)
        timestamp_accessor: Function returning a record's timestamp
        now: Reference instant for the cutoff

    Returns:
        The matching records, in their original order
    """
    records = list(records)
    if period == 'all':
        return records

    accessor = timestamp_accessor or default_timestamp
    cutoff = period_cutoff(period, now=now)
    kept = []
    for record in records:
        try:
            date = to_datetime(accessor(record))
        except (ValueError, OverflowError):
            logger.debug(f"Unreadable timestamp on record {record.get('id')}, keeping it")
            date = None
        if date is None or date >= cutoff:
            kept.append(record)
    return kept

def period_stats(records: Iterable[Dict[str, Any]],
                 timestamp_accessor: Optional[TimestampAccessor] = None,
                 now: Optional[datetime] = None) -> Dict[str, int]:
    """Count records per window plus the total"""
    records = list(records)
    now = now or utcnow()
    stats = {period: len(filter_by_period(records, period, timestamp_accessor, now))
             for period in PERIODS}
    stats['total'] = len(records)
    return stats

def total_quantity(records: Iterable[Dict[str, Any]]) -> int:
    """Sum record quantities, counting a missing or unreadable quantity as 1"""
    total = 0
    for record in records:
        try:
            quantity = int(record.get('quantity') or 1)
        except (TypeError, ValueError):
            quantity = 1
        total += quantity
    return total
