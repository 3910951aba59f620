"""Cache administration endpoints."""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status

from activity.models import CacheFileInfo
from activity.service import ActivityService
from storage import CacheEntryNotFoundError, InvalidCacheKeyError, validate_key
from ..dependencies import get_service

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(
    prefix="/api/cache",
    tags=["Cache"]
)

@router.get("/status")
async def get_cache_status(service: ActivityService = Depends(get_service)) -> Dict[str, Any]:
    """List cached files with their record counts, sizes, date ranges and modification times."""
    try:
        files = [CacheFileInfo(**info) for info in await service.cache.status()]
        return {
            'files': [info.model_dump() for info in files],
            'count': len(files),
            'storage_dir': str(service.cache.storage_dir)
        }
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )

@router.get("/file/{key}")
async def get_cache_file(key: str, service: ActivityService = Depends(get_service)) -> Any:
    """Return the raw contents of one cache entry."""
    try:
        data = await service.cache.read_cache_entry(key)
    except InvalidCacheKeyError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if data is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Cache entry not found: {key}"
        )
    return data

@router.post("/clear")
async def clear_cache(service: ActivityService = Depends(get_service)) -> Dict[str, Any]:
    """Delete every cache entry."""
    try:
        removed: List[str] = await service.cache.clear()
        logger.info(f"Cleared cache entries: {removed}")
        return {'success': True, 'removed': removed, 'count': len(removed)}
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )

@router.delete("/{key}")
async def delete_cache_entry(key: str, service: ActivityService = Depends(get_service)) -> Dict[str, Any]:
    """Delete one cache entry."""
    try:
        await service.cache.delete_cache_entry(key)
        return {'success': True, 'key': validate_key(key)}
    except InvalidCacheKeyError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except CacheEntryNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
