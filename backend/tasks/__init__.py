"""
Tasks package

Contains background tasks that run continuously during application lifetime.
"""
from .background import (
    init_tasks,
    stop_tasks,
    purge_expired_notifications,
    purge_expired_notifications_once,
)

__all__ = [
    'init_tasks',
    'stop_tasks',
    'purge_expired_notifications',
    'purge_expired_notifications_once',
]
