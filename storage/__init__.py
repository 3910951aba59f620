"""JSON file cache for normalized activity data.

Each logical dataset lives in ``<storage_dir>/<name>.json`` and is always
replaced as a whole. There is no locking: concurrent writers of the same name
race and the last write wins.
"""
import json
import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiofiles
import aiofiles.os

from activity.timestamps import extract_date_part, to_iso

logger = logging.getLogger(__name__)

CACHE_KEY_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')

class CacheError(Exception):
    """Base exception for cache errors"""
    pass

class InvalidCacheKeyError(CacheError):
    """Raised when a cache key is not a plain dataset name"""
    pass

class CacheEntryNotFoundError(CacheError):
    """Raised when a cache entry does not exist"""
    pass

def validate_key(name: str) -> str:
    """Return the dataset name for ``name`` (a trailing ``.json`` is dropped)

    Raises:
        InvalidCacheKeyError: If the name could escape the storage directory
    """
    key = str(name or '')
    if key.endswith('.json'):
        key = key[:-len('.json')]
    if not CACHE_KEY_PATTERN.match(key):
        raise InvalidCacheKeyError(f"Invalid cache key: {name!r}")
    return key

def _records_of(data: Any) -> List[Any]:
    """The record array of a cache payload (its first list member)"""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for value in data.values():
            if isinstance(value, list):
                return value
    return []

class FileCache:
    """Async JSON read/write of cache entries under one directory"""

    def __init__(self, storage_dir: str = 'storage'):
        self.storage_dir = Path(storage_dir)

    def path_for(self, name: str) -> Path:
        return self.storage_dir / f"{validate_key(name)}.json"

    async def read_cache_entry(self, name: str) -> Optional[Any]:
        """Read a cache entry

        Returns:
            The parsed JSON, or None when the entry is missing, unreadable
            or not valid UTF-8 JSON
        """
        path = self.path_for(name)
        try:
            async with aiofiles.open(path, 'rb') as f:
                content = await f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Ignoring unreadable cache entry {path}: {e}")
            return None

        try:
            return json.loads(content.decode('utf-8'))
        except ValueError as e:
            logger.warning(f"Ignoring corrupt cache entry {path}: {e}")
            return None

    async def write_cache_entry(self, name: str, data: Any) -> Path:
        """Overwrite a cache entry with ``data`` serialized as 2-space indented JSON"""
        path = self.path_for(name)
        os.makedirs(self.storage_dir, exist_ok=True)
        async with aiofiles.open(path, 'w', encoding='utf-8') as f:
            await f.write(json.dumps(data, indent=2))
        logger.debug(f"Wrote cache entry {path}")
        return path

    async def delete_cache_entry(self, name: str):
        """Delete one cache entry

        Raises:
            CacheEntryNotFoundError: If there is no such entry
        """
        path = self.path_for(name)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            raise CacheEntryNotFoundError(f"Cache entry not found: {validate_key(name)}")
        logger.info(f"Deleted cache entry {path}")

    def list_keys(self) -> List[str]:
        if not self.storage_dir.is_dir():
            return []
        return sorted(
            path.stem for path in self.storage_dir.glob('*.json')
            if CACHE_KEY_PATTERN.match(path.stem)
        )

    async def clear(self) -> List[str]:
        """Delete every cache entry and return the removed names"""
        removed = []
        for key in self.list_keys():
            try:
                await self.delete_cache_entry(key)
                removed.append(key)
            except CacheEntryNotFoundError:
                pass
        logger.info(f"Cleared {len(removed)} cache entries")
        return removed

    async def status(self) -> List[Dict[str, Any]]:
        """Describe every cache file: size, modification time, record count and date range"""
        files = []
        for key in self.list_keys():
            path = self.path_for(key)
            try:
                stat = await aiofiles.os.stat(path)
            except FileNotFoundError:
                continue
            data = await self.read_cache_entry(key)
            records = _records_of(data)

            dates = [extract_date_part(record.get('timestamp') or record.get('timestamp_iso'))
                     for record in records if isinstance(record, dict)]
            dates = sorted(date for date in dates if date)

            files.append({
                'key': key,
                'file': path.name,
                'size': stat.st_size,
                'modified': to_iso(datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)),
                'records': len(records),
                'timestamp': data.get('timestamp') if isinstance(data, dict) else None,
                'date_range': {'start': dates[0], 'end': dates[-1]} if dates else None,
            })
        return files

__all__ = [
    'FileCache',
    'CacheError',
    'InvalidCacheKeyError',
    'CacheEntryNotFoundError',
    'validate_key',
]
