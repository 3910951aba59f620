"""Normalization, period filtering and aggregation of Mythical Beings chain activity.

The aggregation service lives in ``activity.service`` and is imported from there;
this package only re-exports the pure helpers so that ``storage`` can use them
without pulling in the service.
"""
from .models import ActivityResult, Blockchain, ResultStatus
from .periods import filter_by_period, period_stats, total_quantity
from .timestamps import (
    ARDOR_EPOCH,
    VALID_PERIODS,
    chain_timestamp_to_date,
    chain_timestamp_to_iso,
    date_to_chain_timestamp,
    period_cutoff,
    to_datetime,
)

__all__ = [
    'ActivityResult',
    'Blockchain',
    'ResultStatus',
    'filter_by_period',
    'period_stats',
    'total_quantity',
    'ARDOR_EPOCH',
    'VALID_PERIODS',
    'chain_timestamp_to_date',
    'chain_timestamp_to_iso',
    'date_to_chain_timestamp',
    'period_cutoff',
    'to_datetime',
]
