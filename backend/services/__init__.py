# Services module exports
from .notification_store import NotificationStore
from .subscriptions import SubscriptionRegistry, push_enabled_for
from .realtime import ConnectionRegistry
from .channels import DeliveryChannel, RealtimeChannel, EmailChannel, SmsChannel
from .webpush import (
    VapidConfig, WebPushChannel, load_vapid_config, build_push_payload
)
from .notifications import NotificationService


def build_notification_service(db, connections=None, vapid=None, transport=None) -> NotificationService:
    """Wire the store, registry and channels into a ``NotificationService``"""
    store = NotificationStore(db)
    subscriptions = SubscriptionRegistry(db)
    connections = connections if connections is not None else ConnectionRegistry()
    webpush_kwargs = {"transport": transport} if transport is not None else {}
    return NotificationService(
        db=db,
        store=store,
        subscriptions=subscriptions,
        realtime=RealtimeChannel(connections, store),
        webpush=WebPushChannel(vapid, subscriptions, **webpush_kwargs),
        extra_channels=[EmailChannel(), SmsChannel()],
    )
