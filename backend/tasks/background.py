"""
Background Tasks Module

Loops started during the application lifespan and stopped on shutdown.

Dependencies (injected at startup):
- store: NotificationStore
- logger: Logging instance
"""
import asyncio
import logging

# Module-level references to dependencies (set by init_tasks)
_store = None
_logger = logging.getLogger(__name__)
_tasks_running = True
_REAPER_INTERVAL = 3600


def init_tasks(store, logger=None, reaper_interval=3600):
    """
    Initialize the tasks module with required dependencies.
    Must be called before starting any background tasks.
    """
    global _store, _logger, _tasks_running, _REAPER_INTERVAL

    _store = store
    if logger is not None:
        _logger = logger
    _REAPER_INTERVAL = reaper_interval
    _tasks_running = True

    _logger.info("Background tasks module initialized")


def stop_tasks():
    """Signal all tasks to stop"""
    global _tasks_running
    _tasks_running = False


async def purge_expired_notifications_once() -> int:
    """Delete notifications whose expires_at has passed; errors are logged, not raised"""
    try:
        return await _store.purge_expired()
    except Exception as e:
        _logger.error(f"Expired notification reaper error: {e}")
        return 0


async def purge_expired_notifications():
    """Background task deleting expired notifications every reaper interval"""
    _logger.info("Expired notification reaper started")

    while _tasks_running:
        await purge_expired_notifications_once()
        await asyncio.sleep(_REAPER_INTERVAL)
