"""Monitor module for keeping the activity cache warm.

The refresher periodically force-refreshes every activity type so that REST
requests are served from cache. A refresh that is still running when the next
one is due is not overlapped; the later cycle is skipped.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from activity.models import ResultStatus

# Configure logging
logger = logging.getLogger(__name__)

class CacheRefresher:
    """Periodically refresh cached activity data."""

    def __init__(self, service, interval: float = 300):
        """Initialize the cache refresher.

        Args:
            service: ActivityService whose caches are refreshed
            interval: Seconds between refresh cycles
        """
        self.service = service
        self.interval = interval
        self.running = True
        self.refreshing = False
        self.last_refresh: Optional[Dict[str, Any]] = None

    async def refresh_once(self) -> bool:
        """Run one refresh cycle unless one is already in progress.

        Returns:
            True if a cycle ran, False if it was skipped
        """
        if self.refreshing:
            logger.info("Cache refresh already in progress, skipping")
            return False

        self.refreshing = True
        try:
            logger.info("Refreshing activity cache...")
            data = await self.service.get_all_data(force_refresh=True)
            self.last_refresh = data

            failed = [
                name for name, result in data.items()
                if isinstance(result, dict) and result.get('status') != ResultStatus.OK.value
            ]
            if failed:
                logger.warning(f"Cache refresh finished with failures: {', '.join(failed)}")
            else:
                logger.info("Cache refresh complete")
            return True
        except Exception as e:
            logger.error(f"Error refreshing cache: {e}")
            return True
        finally:
            self.refreshing = False

    async def start(self) -> None:
        """Refresh immediately, then every ``interval`` seconds until stopped."""
        logger.info(f"Starting cache refresher (every {self.interval:g} seconds)")
        while self.running:
            await self.refresh_once()
            await asyncio.sleep(self.interval)

    def stop(self):
        """Stop the refresh loop after the current cycle."""
        logger.info("Stopping cache refresher...")
        self.running = False

def refresh_cache(service, interval: float = 300) -> CacheRefresher:
    """Create and return a new cache refresher.

    Args:
        service: ActivityService to refresh
        interval: Seconds between refresh cycles

    Returns:
        CacheRefresher: A new refresher instance
    """
    return CacheRefresher(service, interval)

# Export public interface
__all__ = [
    'refresh_cache',
    'CacheRefresher'
]
