"""Explicit state container for the dashboard."""
import copy
import logging
from typing import Any, Callable, Dict, List, Optional

from activity.timestamps import VALID_PERIODS, to_iso, utcnow

logger = logging.getLogger(__name__)

Listener = Callable[[str, Any], None]

class DashboardState:
    """Holds the latest response per activity plus the selected period.

    Values are only changed through ``update``/``set_error``/``set_period``;
    listeners are called with the changed key and its new value.
    """

    def __init__(self, period: str = '30d'):
        if period not in VALID_PERIODS:
            raise ValueError(f"Invalid period: {period}")
        self._period = period
        self._data: Dict[str, Any] = {}
        self._errors: Dict[str, Optional[str]] = {}
        self._last_updated: Optional[str] = None
        self._listeners: List[Listener] = []

    @property
    def period(self) -> str:
        return self._period

    @property
    def last_updated(self) -> Optional[str]:
        return self._last_updated

    def get(self, key: str, default: Any = None) -> Any:
        return copy.deepcopy(self._data.get(key, default))

    def error(self, key: str) -> Optional[str]:
        return self._errors.get(key)

    def count(self, key: str) -> int:
        """The ``count`` of the stored response, 0 when nothing is stored"""
        value = self._data.get(key)
        if isinstance(value, dict):
            return int(value.get('count') or 0)
        return 0

    def update(self, key: str, value: Any):
        self._data[key] = value
        self._errors[key] = None
        self._last_updated = to_iso(utcnow())
        self._notify(key, value)

    def set_error(self, key: str, message: str):
        """Record a failed refresh; the last known value is kept"""
        self._errors[key] = message
        self._notify(key, self._data.get(key))

    def set_period(self, period: str) -> bool:
        """Select a period, returning True if it changed

        Raises:
            ValueError: If the period is not one of 24h, 7d, 30d, all
        """
        if period not in VALID_PERIODS:
            raise ValueError(f"Invalid period: {period}")
        if period == self._period:
            return False
        self._period = period
        self._notify('period', period)
        return True

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener and return a function that removes it"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def snapshot(self) -> Dict[str, Any]:
        return {
            'period': self._period,
            'last_updated': self._last_updated,
            'data': copy.deepcopy(self._data),
            'errors': dict(self._errors),
        }

    def _notify(self, key: str, value: Any):
        for listener in list(self._listeners):
            try:
                listener(key, value)
            except Exception as e:
                logger.error(f"State listener failed for {key}: {e}")
