"""Chain activity endpoints.

Every endpoint accepts ``period`` (24h, 7d, 30d or all) and ``refresh``/``force``
to bypass the cache. Upstream failures are reported through the ``status`` and
``error`` fields of the body rather than as HTTP errors.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query, status

from activity.service import ActivityService, users_response
from ..dependencies import force_refresh, get_service

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(
    prefix="/api",
    tags=["Activity"]
)

PERIOD_QUERY = Query('all', description="Time window: 24h, 7d, 30d or all")

@router.get("/trades")
async def get_trades(
    period: str = PERIOD_QUERY,
    refresh: bool = Depends(force_refresh),
    service: ActivityService = Depends(get_service)
) -> Dict[str, Any]:
    """Get Ardor and Polygon card trades.

    Returns:
        ``{trades, count, total_quantity, period, timestamp, status, error}``
    """
    try:
        result = await service.get_trades(period, refresh)
        return result.to_response()
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )

@router.get("/burns")
async def get_burns(
    period: str = PERIOD_QUERY,
    refresh: bool = Depends(force_refresh),
    service: ActivityService = Depends(get_service)
) -> Dict[str, Any]:
    """Get card burns."""
    try:
        result = await service.get_burns(period, refresh)
        return result.to_response()
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )

@router.get("/crafts")
async def get_crafts(
    period: str = PERIOD_QUERY,
    refresh: bool = Depends(force_refresh),
    service: ActivityService = Depends(get_service)
) -> Dict[str, Any]:
    """Get card crafts, listed under ``craftings``."""
    try:
        result = await service.get_craftings(period, refresh)
        return result.to_response()
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )

@router.get("/morphs")
async def get_morphs(
    period: str = PERIOD_QUERY,
    refresh: bool = Depends(force_refresh),
    service: ActivityService = Depends(get_service)
) -> Dict[str, Any]:
    try:
        result = await service.get_morphs(period, refresh)
        return result.to_response()
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )

@router.get("/giftz")
async def get_giftz_sales(
    period: str = PERIOD_QUERY,
    refresh: bool = Depends(force_refresh),
    service: ActivityService = Depends(get_service)
) -> Dict[str, Any]:
    """Get GIFTZ token sales, listed under ``sales``."""
    try:
        result = await service.get_giftz_sales(period, refresh)
        return result.to_response()
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )

@router.get("/users")
async def get_users(
    period: str = PERIOD_QUERY,
    refresh: bool = Depends(force_refresh),
    service: ActivityService = Depends(get_service)
) -> Dict[str, Any]:
    """Get active users per chain.

    Returns:
        ``{ardor_users, polygon_users, count}`` where count is the size of both lists
    """
    try:
        result = await service.get_users(period, refresh)
        return users_response(result)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )

@router.get("/all")
async def get_all(
    period: str = PERIOD_QUERY,
    refresh: bool = Depends(force_refresh),
    service: ActivityService = Depends(get_service)
) -> Dict[str, Any]:
    """Get every activity type in one response."""
    try:
        return await service.get_all_data(period, refresh)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )
