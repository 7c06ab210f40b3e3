"""
Delivery channel adapters.

Every adapter implements ``deliver(recipient_id, notification)`` and reports
the outcome as a ``DeliveryResult`` instead of raising. The web push adapter
lives in ``services.webpush``.

Email and SMS are recognised channel names without a transport yet. To add
one, subclass ``DeliveryChannel`` with ``name`` set to the channel value and
pass an instance to ``NotificationService(extra_channels=[...])``; it is then
called for every notification listing that channel.
"""
import logging
from abc import ABC, abstractmethod

from models.notification import DeliveryResult, NotificationChannel
from core.config import REALTIME_EVENT_NEW_NOTIFICATION

logger = logging.getLogger(__name__)


class DeliveryChannel(ABC):
    name: str = ""

    @abstractmethod
    async def deliver(self, recipient_id: str, notification: dict) -> DeliveryResult:
        ...

    def success(self) -> DeliveryResult:
        return DeliveryResult(channel=self.name, ok=True)

    def failure(self, reason: str) -> DeliveryResult:
        return DeliveryResult(channel=self.name, ok=False, reason=reason)


class RealtimeChannel(DeliveryChannel):
    """Best-effort push to the recipient's open websocket connections"""
    name = "realtime"

    def __init__(self, connections, store):
        self.connections = connections
        self.store = store

    async def deliver(self, recipient_id: str, notification: dict) -> DeliveryResult:
        if not self.connections.is_connected(recipient_id):
            return self.failure("recipient not connected")

        unread_count = await self.store.count_unread(recipient_id)
        delivered = await self.connections.send_to_user(recipient_id, {
            "type": REALTIME_EVENT_NEW_NOTIFICATION,
            "data": {
                "notification": notification,
                "unread_count": unread_count,
            },
        })
        if not delivered:
            return self.failure("all connections closed")

        logger.debug(f"Realtime notification {notification['id']} sent to {delivered} connection(s)")
        return self.success()


class EmailChannel(DeliveryChannel):
    name = NotificationChannel.EMAIL.value

    async def deliver(self, recipient_id: str, notification: dict) -> DeliveryResult:
        return self.failure("email delivery is not implemented")


class SmsChannel(DeliveryChannel):
    name = NotificationChannel.SMS.value

    async def deliver(self, recipient_id: str, notification: dict) -> DeliveryResult:
        return self.failure("sms delivery is not implemented")
