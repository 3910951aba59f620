"""REST API module for the chain activity monitor.

This module provides HTTP endpoints for:
- Trades, burns, crafts, morphs, GIFTZ sales and active users
- Cache inspection and clearing
- System health monitoring
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings_conf
from activity.service import ActivityService
from monitor import CacheRefresher
from storage import FileCache

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

def build_service(settings: Dict[str, Any]) -> ActivityService:
    """Create the ActivityService for the configured chain endpoints."""
    from rpc import AlchemyClient, ArdorClient

    return ActivityService(
        ArdorClient.from_settings(settings),
        AlchemyClient.from_settings(settings),
        FileCache(settings['storage_dir']),
        settings
    )

# Lifecycle management
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    # Startup
    logger.info("Initializing API...")
    refresh_task = None
    if app.state.start_refresher:
        refresher = CacheRefresher(app.state.service, app.state.settings['refresh_interval'])
        app.state.refresher = refresher
        refresh_task = asyncio.create_task(refresher.start())
        logger.info(f"Started cache refresher (every {refresher.interval:g} seconds)")

    yield

    # Shutdown
    logger.info("Shutting down API...")
    if refresh_task:
        app.state.refresher.stop()
        refresh_task.cancel()
        try:
            await refresh_task
        except asyncio.CancelledError:
            pass

def create_app(service: Optional[ActivityService] = None,
               settings: Optional[Dict[str, Any]] = None,
               start_refresher: bool = True) -> FastAPI:
    """Create the FastAPI application.

    Args:
        service: ActivityService to serve (built from settings if omitted)
        settings: Settings dict (defaults to settings.conf)
        start_refresher: Run the periodic cache refresher while the app is up

    Returns:
        Configured FastAPI app
    """
    settings = settings or settings_conf

    app = FastAPI(
        title="Mythical Beings Activity API",
        description="REST API for Mythical Beings activity on Ardor and Polygon",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.service = service or build_service(settings)
    app.state.start_refresher = start_refresher

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings['allowed_origins'],
        allow_credentials=settings['allowed_origins'] != ['*'],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Import and include all routers
    from .activity import router as activity_router
    from .cache import router as cache_router
    from .system import router as system_router

    app.include_router(activity_router)
    app.include_router(cache_router)
    app.include_router(system_router)

    return app

app = create_app()
