import asyncio
import signal
import logging

from config import settings_conf
from rpc import ardor, polygon
from storage import FileCache
from activity.service import ActivityService
from monitor import CacheRefresher

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

refresher = None

def handle_shutdown(signum, frame):
    """Handle shutdown signals gracefully."""
    logger.info("Shutdown signal received. Cleaning up...")
    if refresher:
        refresher.stop()

async def main():
    """Keep the activity cache warm without serving the API."""
    global refresher

    service = ActivityService(ardor, polygon, FileCache(settings_conf['storage_dir']), settings_conf)
    refresher = CacheRefresher(service, settings_conf['refresh_interval'])

    # Register shutdown handlers
    signal.signal(signal.SIGINT, handle_shutdown)
    signal.signal(signal.SIGTERM, handle_shutdown)

    try:
        await refresher.start()
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        raise

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
