"""Cache-backed aggregation of chain activity.

Every public coroutine follows the same cycle: serve the cache entry when one
exists and no refresh was requested, otherwise fetch from upstream in a worker
thread, persist the full record list and return the period-filtered subset.

Failures never escape. The returned envelope is tagged ``ok`` (fresh or
cached data), ``stale`` (the fetch failed and an older cache entry was served)
or ``error`` (the fetch failed and nothing was cached).
"""
import asyncio
import contextvars
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from config import settings_conf
from rpc import ChainAPIError
from storage import FileCache

from .fetchers import ArdorFetcher, PolygonFetcher
from .models import ActivityResult, Blockchain, ResultStatus
from .normalizers import derive_ardor_users, derive_polygon_users
from .periods import filter_by_period, total_quantity
from .timestamps import to_iso, utcnow

logger = logging.getLogger(__name__)

# Holder of the one tracked-assets lookup shared by a get_all_data fan-out
_shared_tracked_assets = contextvars.ContextVar('shared_tracked_assets', default=None)

# Cache name -> key of the record list in the cache entry and in responses
RECORD_KEYS = {
    'trades': 'trades',
    'burns': 'burns',
    'craftings': 'craftings',
    'morphs': 'morphs',
    'giftz_sales': 'sales',
    'users': 'users',
    'tracked_assets': 'tracked_assets',
}

def users_response(result: ActivityResult) -> Dict[str, Any]:
    """Split a users result into per-chain lists; ``count`` is the sum of both"""
    response = result.to_response()
    users = response.pop('users')
    response['ardor_users'] = [user for user in users if user.get('blockchain') == Blockchain.ARDOR.value]
    response['polygon_users'] = [user for user in users if user.get('blockchain') == Blockchain.POLYGON.value]
    response['count'] = len(response['ardor_users']) + len(response['polygon_users'])
    return response

class ActivityService:
    """Aggregates trades, burns, crafts, morphs, GIFTZ sales and users"""

    def __init__(self, ardor, polygon, cache: FileCache, settings: Optional[Dict[str, Any]] = None):
        self.settings = settings or settings_conf
        self.cache = cache
        self.ardor = ArdorFetcher(ardor, self.settings)
        self.polygon = PolygonFetcher(polygon, self.settings)

    async def _run(self, name: str, fetch: Callable[[], Awaitable[List[Dict[str, Any]]]],
                   period: str, force_refresh: bool, with_quantity: bool = False) -> ActivityResult:
        key = RECORD_KEYS[name]

        def result(records, status=ResultStatus.OK, timestamp=None, error=None):
            filtered = filter_by_period(records, period)
            return ActivityResult(
                key=key,
                records=filtered,
                period=period,
                timestamp=timestamp or to_iso(utcnow()),
                status=status,
                error=error,
                total_quantity=total_quantity(filtered) if with_quantity else None
            )

        cached = None
        if not force_refresh:
            cached = await self.cache.read_cache_entry(name)
            if isinstance(cached, dict):
                logger.debug(f"Serving {name} from cache")
                return result(cached.get(key, []), timestamp=cached.get('timestamp'))

        try:
            records = await fetch()
        except Exception as e:
            logger.error(f"Error fetching {name}: {e}")
            if cached is None:
                cached = await self.cache.read_cache_entry(name)
            if isinstance(cached, dict):
                return result(cached.get(key, []), ResultStatus.STALE, cached.get('timestamp'), str(e))
            return result([], ResultStatus.ERROR, error=str(e))

        entry = {key: records, 'count': len(records), 'timestamp': to_iso(utcnow())}
        try:
            await self.cache.write_cache_entry(name, entry)
        except OSError as e:
            logger.error(f"Could not write cache entry {name}: {e}")
        logger.info(f"Fetched {len(records)} {name}")
        return result(records, timestamp=entry['timestamp'])

    async def _tracked_assets(self, force_refresh: bool) -> List[Dict[str, Any]]:
        shared = _shared_tracked_assets.get()
        if shared is not None:
            if 'lookup' not in shared:
                shared['lookup'] = asyncio.ensure_future(self._resolve_tracked_assets(force_refresh))
            return await shared['lookup']
        return await self._resolve_tracked_assets(force_refresh)

    async def _resolve_tracked_assets(self, force_refresh: bool) -> List[Dict[str, Any]]:
        tracked = await self.get_tracked_assets(force_refresh=force_refresh)
        if tracked.status == ResultStatus.ERROR:
            raise ChainAPIError(f"Tracked assets unavailable: {tracked.error}")
        return tracked.records

    async def get_tracked_assets(self, period: str = 'all', force_refresh: bool = False) -> ActivityResult:
        async def fetch():
            return await asyncio.to_thread(self.ardor.fetch_tracked_assets)
        return await self._run('tracked_assets', fetch, period, force_refresh)

    async def get_trades(self, period: str = 'all', force_refresh: bool = False) -> ActivityResult:
        """Ardor trades and Polygon sales, newest first"""
        async def fetch():
            errors = []
            trades = []
            try:
                assets = await self._tracked_assets(force_refresh)
                trades.extend(await asyncio.to_thread(self.ardor.fetch_trades, assets))
            except ChainAPIError as e:
                logger.warning(f"Ardor trades unavailable: {e}")
                errors.append(e)
            try:
                trades.extend(await asyncio.to_thread(self.polygon.fetch_sales))
            except ChainAPIError as e:
                logger.warning(f"Polygon sales unavailable: {e}")
                errors.append(e)
            if len(errors) == 2:
                raise errors[-1]
            trades.sort(key=lambda trade: trade['timestamp_iso'], reverse=True)
            return trades
        return await self._run('trades', fetch, period, force_refresh, with_quantity=True)

    async def get_burns(self, period: str = 'all', force_refresh: bool = False) -> ActivityResult:
        async def fetch():
            assets = await self._tracked_assets(force_refresh)
            return await asyncio.to_thread(self.ardor.fetch_burns, assets)
        return await self._run('burns', fetch, period, force_refresh)

    async def get_craftings(self, period: str = 'all', force_refresh: bool = False) -> ActivityResult:
        async def fetch():
            return await asyncio.to_thread(self.ardor.fetch_crafts)
        return await self._run('craftings', fetch, period, force_refresh)

    async def get_morphs(self, period: str = 'all', force_refresh: bool = False) -> ActivityResult:
        async def fetch():
            assets = await self._tracked_assets(force_refresh)
            return await asyncio.to_thread(self.ardor.fetch_morphs, assets)
        return await self._run('morphs', fetch, period, force_refresh, with_quantity=True)

    async def get_giftz_sales(self, period: str = 'all', force_refresh: bool = False) -> ActivityResult:
        async def fetch():
            return await asyncio.to_thread(self.ardor.fetch_giftz_sales)
        return await self._run('giftz_sales', fetch, period, force_refresh, with_quantity=True)

    async def get_users(self, period: str = 'all', force_refresh: bool = False,
                        refresh_sources: Optional[bool] = None) -> ActivityResult:
        """Users derived from trades, crafts, GIFTZ sales and Polygon transfers

        Users are filtered by when they were last seen. ``refresh_sources``
        controls whether the underlying activities are refetched as well and
        follows ``force_refresh`` when omitted.
        """
        if refresh_sources is None:
            refresh_sources = force_refresh

        async def fetch():
            trades = await self.get_trades(force_refresh=refresh_sources)
            crafts = await self.get_craftings(force_refresh=refresh_sources)
            sales = await self.get_giftz_sales(force_refresh=refresh_sources)
            try:
                transfers = await asyncio.to_thread(self.polygon.fetch_transfers)
                transfers_error = None
            except ChainAPIError as e:
                logger.warning(f"Polygon transfers unavailable: {e}")
                transfers, transfers_error = [], e

            sources = (trades, crafts, sales)
            if transfers_error is not None and all(source.status == ResultStatus.ERROR for source in sources):
                raise transfers_error

            users = derive_ardor_users(trades.records, crafts.records, sales.records)
            users.extend(derive_polygon_users(transfers, trades.records))
            return users
        return await self._run('users', fetch, period, force_refresh)

    async def get_all_data(self, period: str = 'all', force_refresh: bool = False) -> Dict[str, Any]:
        """Every activity type at once

        Activity types are fetched concurrently; a failing one becomes an empty
        ``error`` envelope while the others are still returned. Users are derived
        last so they build on the entries the other calls just cached. Trades,
        burns and morphs share a single tracked-assets lookup.
        """
        token = _shared_tracked_assets.set({})

        calls = {
            'trades': self.get_trades,
            'burns': self.get_burns,
            'craftings': self.get_craftings,
            'morphs': self.get_morphs,
            'giftz_sales': self.get_giftz_sales,
        }
        try:
            outcomes = await asyncio.gather(
                *(call(period, force_refresh) for call in calls.values()),
                return_exceptions=True
            )
        finally:
            _shared_tracked_assets.reset(token)
        data = {}
        for name, outcome in zip(calls, outcomes):
            data[name] = self._settle(name, outcome, period).to_response()

        try:
            users = await self.get_users(period, force_refresh, refresh_sources=False)
        except Exception as e:
            users = self._settle('users', e, period)
        data['users'] = users_response(users)
        data['timestamp'] = to_iso(utcnow())
        return data

    def _settle(self, name: str, outcome: Any, period: str) -> ActivityResult:
        if isinstance(outcome, ActivityResult):
            return outcome
        logger.error(f"Unexpected failure aggregating {name}: {outcome}")
        return ActivityResult(
            key=RECORD_KEYS[name],
            period=period,
            timestamp=to_iso(utcnow()),
            status=ResultStatus.ERROR,
            error=str(outcome),
            total_quantity=0 if name in ('trades', 'morphs', 'giftz_sales') else None
        )
