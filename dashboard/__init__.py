"""Dashboard data manager.

Polls the REST layer on a fixed interval (and whenever the selected period
changes) and stores the results in a ``DashboardState``. Overlapping refreshes
are skipped.
"""
import asyncio
import logging
from typing import Iterable, Optional

from .client import ENDPOINTS, ActivityAPIClient, DashboardAPIError
from .state import DashboardState

logger = logging.getLogger(__name__)

class DataManager:
    """Keeps a DashboardState in sync with the REST API."""

    def __init__(self, client: ActivityAPIClient, state: DashboardState,
                 poll_interval: float = 60, keys: Optional[Iterable[str]] = None):
        self.client = client
        self.state = state
        self.poll_interval = poll_interval
        self.keys = list(keys or ENDPOINTS)
        self.running = True
        self.refreshing = False

    async def _refresh_key(self, key: str, period: str, force: bool):
        try:
            data = await asyncio.to_thread(self.client.fetch, key, period, force)
        except DashboardAPIError as e:
            logger.error(f"Error refreshing {key}: {e}")
            self.state.set_error(key, str(e))
            return
        self.state.update(key, data)
        if isinstance(data, dict) and data.get('status') not in (None, 'ok'):
            logger.warning(f"{key} served with status {data.get('status')}: {data.get('error')}")

    async def refresh(self, force: bool = False) -> bool:
        """Fetch every endpoint for the current period

        Returns:
            True if a refresh ran, False if one was already in progress
        """
        if self.refreshing:
            logger.debug("Refresh already in progress, skipping")
            return False
        self.refreshing = True
        try:
            period = self.state.period
            await asyncio.gather(*(self._refresh_key(key, period, force) for key in self.keys))
            return True
        finally:
            self.refreshing = False

    async def set_period(self, period: str) -> bool:
        """Change the selected period and refresh if it changed"""
        if not self.state.set_period(period):
            return False
        return await self.refresh()

    async def start(self):
        """Refresh immediately, then every ``poll_interval`` seconds until stopped."""
        logger.info(f"Starting dashboard polling (every {self.poll_interval:g} seconds)")
        while self.running:
            await self.refresh()
            await asyncio.sleep(self.poll_interval)

    def stop(self):
        logger.info("Stopping dashboard polling...")
        self.running = False

__all__ = [
    'DataManager',
    'DashboardState',
    'ActivityAPIClient',
    'DashboardAPIError',
]
