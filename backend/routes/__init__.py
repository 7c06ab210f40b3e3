"""
Routes package for the notification API

Routes are organized by domain:
- health: Health check endpoints
- notifications: Notification listing, read state and realtime websocket
- push: Web push subscription management
"""

from .health import router as health_router
from .notifications import router as notifications_router
from .push import router as push_router

__all__ = ['health_router', 'notifications_router', 'push_router']
