"""System health endpoint."""

import asyncio
import logging
import time

import psutil
from fastapi import APIRouter, Depends, HTTPException, status

from activity.models import HealthStatus
from activity.service import ActivityService
from activity.timestamps import to_iso, utcnow
from rpc import ChainAPIError
from ..dependencies import get_service

logger = logging.getLogger(__name__)

# Seconds to wait for the Ardor node before reporting it unreachable
NODE_STATUS_TIMEOUT = 5

# Create router
router = APIRouter(
    prefix="/api",
    tags=["System"]
)

@router.get("/health")
async def get_system_health(service: ActivityService = Depends(get_service)) -> HealthStatus:
    """Get process and upstream health.

    Returns:
        HealthStatus with process stats, Ardor node status and cache file count
    """
    try:
        process = psutil.Process()
        memory = process.memory_info()
        cpu_percent = process.cpu_percent(interval=None)

        # Get node status
        try:
            node_info = await asyncio.wait_for(
                asyncio.to_thread(service.ardor.client.getBlockchainStatus),
                timeout=NODE_STATUS_TIMEOUT
            )
            node = {
                'status': 'connected',
                'height': node_info.get('numberOfBlocks'),
                'version': node_info.get('version')
            }
        except ChainAPIError as e:
            logger.warning(f"Ardor node unreachable: {e}")
            node = {'status': 'unreachable', 'error': str(e)}
        except asyncio.TimeoutError:
            logger.warning(f"Ardor node did not answer within {NODE_STATUS_TIMEOUT}s")
            node = {'status': 'unreachable', 'error': f"Timed out after {NODE_STATUS_TIMEOUT}s"}

        return HealthStatus(
            status="healthy" if node['status'] == 'connected' else "degraded",
            timestamp=to_iso(utcnow()),
            uptime=time.time() - process.create_time(),
            memory_mb=round(memory.rss / (1024 * 1024), 2),
            cpu_percent=cpu_percent,
            node=node,
            cache_files=len(service.cache.list_keys())
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )
