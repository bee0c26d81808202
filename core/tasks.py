import asyncio
import logging

logger = logging.getLogger(__name__)


async def periodic_refresh(service, interval: int):
    """Refresh the aggregation snapshot every ``interval`` seconds until cancelled."""
    while True:
        try:
            await service.refresh()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error in refresh task: {e}")
        await asyncio.sleep(interval)


async def stop_task(task: asyncio.Task):
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
