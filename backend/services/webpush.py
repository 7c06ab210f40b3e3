"""
Browser web push delivery (VAPID-authenticated).

The VAPID key pair is read once at startup; without it the channel refuses to
dispatch and ``get_public_key`` raises ``ConfigurationError``.
"""
import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from pywebpush import webpush, WebPushException

from core.config import (
    VAPID_PUBLIC_KEY, VAPID_PRIVATE_KEY, VAPID_SUBJECT,
    PUSH_TIMEOUT_SECONDS, PUSH_ICON, PUSH_BADGE, MAX_PUSH_PAYLOAD_BYTES
)
from core.errors import ConfigurationError, DeliveryError
from models.notification import DeliveryResult, NotificationPriority
from services.channels import DeliveryChannel

logger = logging.getLogger(__name__)

# Push service responses meaning the subscription no longer exists
GONE_STATUS_CODES = (404, 410)

INVALID_SUBSCRIPTION_REASON = "invalid subscription, removed"

TRUNCATION_MARK = "..."


@dataclass(frozen=True)
class VapidConfig:
    public_key: str
    private_key: str
    subject: str


def load_vapid_config(public_key: str = VAPID_PUBLIC_KEY, private_key: str = VAPID_PRIVATE_KEY,
                      subject: str = VAPID_SUBJECT) -> Optional[VapidConfig]:
    if not public_key or not private_key:
        logger.warning("VAPID keys not found. Web push notifications will not work.")
        logger.warning("Set VAPID_PUBLIC_KEY and VAPID_PRIVATE_KEY in the environment.")
        return None
    logger.info("Web push service initialized with VAPID keys")
    return VapidConfig(public_key=public_key, private_key=private_key, subject=subject)


def build_push_payload(notification: dict, icon: str = PUSH_ICON, badge: str = PUSH_BADGE,
                       max_bytes: int = MAX_PUSH_PAYLOAD_BYTES) -> str:
    """JSON payload consumed by the service worker, trimmed to ``max_bytes``"""
    notification_id = notification.get("id")
    payload = {
        "title": notification["title"],
        "body": notification["message"],
        "icon": icon,
        "badge": badge,
        "data": {
            "url": (notification.get("data") or {}).get("url") or "/",
            "notification_id": notification_id,
            "type": notification.get("type"),
        },
        "actions": [
            {"action": "view", "title": "View", "icon": badge},
            {"action": "dismiss", "title": "Dismiss"},
        ],
        "requireInteraction": notification.get("priority") == NotificationPriority.URGENT.value,
        "tag": f"notification-{notification_id}",
        "timestamp": int(time.time() * 1000),
    }

    # json.dumps escapes non-ASCII, so string length equals byte length
    encoded = json.dumps(payload)
    if len(encoded) <= max_bytes:
        return encoded

    # Longest body prefix that still fits once escaped and marked
    body = payload["body"]
    low, high = 0, len(body)
    while low < high:
        mid = (low + high + 1) // 2
        payload["body"] = body[:mid] + TRUNCATION_MARK
        if len(json.dumps(payload)) <= max_bytes:
            low = mid
        else:
            high = mid - 1
    payload["body"] = body[:low] + TRUNCATION_MARK
    return json.dumps(payload)


class WebPushChannel(DeliveryChannel):
    name = "web_push"

    def __init__(self, vapid: Optional[VapidConfig], subscriptions,
                 transport: Callable = webpush, timeout: float = PUSH_TIMEOUT_SECONDS):
        self.vapid = vapid
        self.subscriptions = subscriptions
        self.transport = transport
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return self.vapid is not None

    def get_public_key(self) -> str:
        if not self.configured:
            raise ConfigurationError("VAPID keys not initialized")
        return self.vapid.public_key

    async def deliver(self, recipient_id: str, notification: dict) -> DeliveryResult:
        if not self.configured:
            logger.warning(f"Skipping web push for user {recipient_id}: VAPID keys not configured")
            return self.failure("web push is not configured")

        subscription = await self.subscriptions.get(recipient_id)
        if not subscription:
            logger.info(f"No push subscription found for user {recipient_id}")
            return self.failure("no push subscription")

        try:
            await self._send(subscription, build_push_payload(notification))
        except DeliveryError as e:
            if e.status_code in GONE_STATUS_CODES:
                await self.subscriptions.remove(recipient_id)
                logger.info(f"Push subscription for user {recipient_id} is gone, removed it")
                return self.failure(INVALID_SUBSCRIPTION_REASON)
            logger.error(f"Error sending push notification to user {recipient_id}: {e.reason}")
            return self.failure(e.reason)

        logger.info(f"Push notification sent to user {recipient_id}: {notification['title']}")
        return self.success()

    async def _send(self, subscription: dict, payload: str) -> None:
        """Run the blocking transport in a worker thread; failures become ``DeliveryError``"""
        try:
            await asyncio.to_thread(
                self.transport,
                subscription_info=subscription,
                data=payload,
                vapid_private_key=self.vapid.private_key,
                vapid_claims={"sub": self.vapid.subject},
                timeout=self.timeout,
            )
        except WebPushException as e:
            status_code = getattr(e.response, "status_code", None)
            raise DeliveryError(self.name, str(e), status_code=status_code) from e
        except Exception as e:
            raise DeliveryError(self.name, str(e) or e.__class__.__name__) from e

    async def send_test(self, user_id: str) -> DeliveryResult:
        test_notification = {
            "id": "test",
            "title": "Test Notification",
            "message": "This is a test push notification from SnacksShop!",
            "type": "general",
            "priority": NotificationPriority.MEDIUM.value,
            "data": {"url": "/"},
        }
        return await self.deliver(user_id, test_notification)
