"""
Notification orchestration: domain events -> persisted notifications -> channel fan-out
"""
import logging
import math
from datetime import datetime, timezone
from typing import List, Optional, Union

from core.config import (
    ROLE_ADMIN, ORDER_STATUS_MESSAGES, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
)
from core.errors import NotFoundError
from models.notification import (
    NotificationCreate, NotificationChannel, NotificationPriority, NotificationType,
    DeliveryResult
)
from services.subscriptions import push_enabled_for

logger = logging.getLogger(__name__)

# Channels every order/stock notification is flagged for
ORDER_CHANNELS = [NotificationChannel.IN_APP, NotificationChannel.EMAIL]


def _format_amount(amount) -> str:
    try:
        return f"${float(amount):,.2f}"
    except (TypeError, ValueError):
        return "$0.00"


def _product_stock(product: dict):
    stock = product.get("stock")
    return stock if stock is not None else product.get("quantity", 0)


class NotificationService:
    """
    Composes notifications for order and stock events, persists them and
    hands them to the delivery channels.

    Persistence is the durability guarantee: store errors propagate, channel
    errors are logged and never reach the caller.
    """

    def __init__(self, db, store, subscriptions, realtime, webpush, extra_channels=None):
        self.db = db
        self.store = store
        self.subscriptions = subscriptions
        self.realtime = realtime
        self.webpush = webpush
        self.extra_channels = {channel.name: channel for channel in (extra_channels or [])}

    # ============ Core primitive ============

    async def create_notification(self, data: Union[NotificationCreate, dict]) -> dict:
        """Persist one notification and dispatch it best-effort to every applicable channel"""
        if not isinstance(data, NotificationCreate):
            data = NotificationCreate.model_validate(data)

        notification = await self.store.create(data)
        results = await self._dispatch(notification)
        notification["sent_at"] = await self.store.mark_sent(notification["id"])

        delivered = [result.channel for result in results if result.ok]
        logger.info(
            f"Notification {notification['id']} ({notification['type']}) for {notification['recipient_id']} "
            f"delivered via {', '.join(delivered) or 'no live channel'}"
        )
        return notification

    async def _dispatch(self, notification: dict) -> List[DeliveryResult]:
        recipient_id = notification["recipient_id"]
        results = [await self._attempt(self.realtime, recipient_id, notification)]

        if await self._should_push(recipient_id):
            results.append(await self._attempt(self.webpush, recipient_id, notification))

        for channel_name in notification.get("channels", []):
            channel = self.extra_channels.get(channel_name)
            if channel is not None:
                results.append(await self._attempt(channel, recipient_id, notification))

        for result in results:
            if not result.ok:
                logger.debug(f"{result.channel} delivery skipped for {recipient_id}: {result.reason}")
        return results

    async def _attempt(self, channel, recipient_id: str, notification: dict) -> DeliveryResult:
        try:
            return await channel.deliver(recipient_id, notification)
        except Exception as e:
            logger.error(f"{channel.name} delivery failed for notification {notification['id']}: {e}")
            return DeliveryResult(channel=channel.name, ok=False, reason=str(e))

    async def _should_push(self, recipient_id: str) -> bool:
        try:
            user = await self.db.users.find_one(
                {"id": recipient_id}, {"_id": 0, "push_subscription": 1, "preferences": 1}
            )
        except Exception as e:
            logger.error(f"Could not load push settings for user {recipient_id}: {e}")
            return False
        return bool(user and user.get("push_subscription") and push_enabled_for(user))

    # ============ Lookups ============

    async def _get_order(self, order_id: str) -> dict:
        order = await self.db.orders.find_one({"id": order_id}, {"_id": 0})
        if not order:
            raise NotFoundError("Order", order_id)
        return order

    async def _get_product(self, product_id: str) -> dict:
        product = await self.db.products.find_one({"id": product_id}, {"_id": 0})
        if not product:
            raise NotFoundError("Product", product_id)
        return product

    async def _get_active_admins(self) -> List[dict]:
        return await self.db.users.find(
            {"role": ROLE_ADMIN, "is_active": True},
            {"_id": 0, "id": 1, "name": 1, "email": 1}
        ).to_list(None)

    # ============ Domain events ============

    async def notify_order_placed(self, order_id: str) -> List[dict]:
        """
        Notify the customer and every active admin about a new order.

        The customer copy is created first. When the customer is also an
        admin, their admin slot is covered by the customer copy, so each
        person receives exactly one notification.
        """
        order = await self._get_order(order_id)
        customer_id = str(order.get("customer_id") or "")
        customer = await self.db.users.find_one({"id": customer_id}, {"_id": 0, "name": 1}) or {}
        customer_name = customer.get("name") or "a customer"
        admins = await self._get_active_admins()

        order_number = str(order.get("order_number") or order_id)
        amount = order.get("total_amount", 0)
        created = []

        if customer_id:
            created.append(await self.create_notification(NotificationCreate(
                recipient_id=customer_id,
                type=NotificationType.ORDER_PLACED,
                title="Order Placed Successfully!",
                message=f"Your order #{order_number} has been placed successfully. We'll process it soon.",
                data={
                    "order_id": order_id,
                    "order_number": order_number,
                    "amount": amount,
                    "url": f"/my-orders/{order_id}",
                },
                priority=NotificationPriority.HIGH,
                channels=ORDER_CHANNELS,
            )))

        for admin in admins:
            if str(admin["id"]) == customer_id:
                logger.debug(f"Admin {admin['id']} placed order {order_number}, customer copy covers them")
                continue
            created.append(await self.create_notification(NotificationCreate(
                recipient_id=str(admin["id"]),
                type=NotificationType.ORDER_PLACED,
                title="New Order Received!",
                message=f"New order #{order_number} from {customer_name} for {_format_amount(amount)}",
                data={
                    "order_id": order_id,
                    "order_number": order_number,
                    "amount": amount,
                    "url": f"/admin/orders/{order_id}",
                },
                priority=NotificationPriority.URGENT,
                channels=ORDER_CHANNELS,
            )))

        logger.info(f"Order placed notifications sent for order {order_number} ({len(created)} recipients)")
        return created

    async def notify_order_status_update(self, order_id: str, new_status: str) -> Optional[dict]:
        """Notify the customer about a status change; statuses without a message are ignored"""
        order = await self._get_order(order_id)
        status_info = ORDER_STATUS_MESSAGES.get(new_status)
        if status_info is None:
            logger.info(f"No notification configured for order status '{new_status}'")
            return None

        customer_id = str(order.get("customer_id") or "")
        if not customer_id:
            logger.warning(f"Order {order_id} has no customer, skipping status notification")
            return None

        order_number = str(order.get("order_number") or order_id)
        message = status_info["message"].format(
            order_number=order_number,
            tracking_number=order.get("tracking_number") or "N/A",
        )
        notification_type = f"order_{new_status}"

        notification = await self.create_notification(NotificationCreate(
            recipient_id=customer_id,
            type=notification_type,
            title=status_info["title"],
            message=message,
            data={
                "order_id": order_id,
                "order_number": order_number,
                "url": f"/my-orders/{order_id}",
            },
            priority=status_info["priority"],
            channels=ORDER_CHANNELS,
        ))

        await self.db.orders.update_one(
            {"id": order_id},
            {"$push": {"notifications": {
                "type": notification_type,
                "message": message,
                "sent_at": datetime.now(timezone.utc).isoformat(),
                "sent_to": "customer",
            }}}
        )
        logger.info(f"Order status update notification sent for order {order_number}")
        return notification

    async def notify_low_stock(self, product_id: str) -> List[dict]:
        product = await self._get_product(product_id)
        return await self._notify_admins_about_product(
            product,
            NotificationType.STOCK_LOW,
            title="Low Stock Alert!",
            message=f"{product['name']} is running low on stock ({_product_stock(product)} remaining)",
            priority=NotificationPriority.HIGH,
        )

    async def notify_out_of_stock(self, product_id: str) -> List[dict]:
        product = await self._get_product(product_id)
        return await self._notify_admins_about_product(
            product,
            NotificationType.STOCK_OUT,
            title="Out of Stock Alert!",
            message=f"{product['name']} is now out of stock",
            priority=NotificationPriority.URGENT,
        )

    async def _notify_admins_about_product(self, product: dict, notification_type: NotificationType,
                                           title: str, message: str,
                                           priority: NotificationPriority) -> List[dict]:
        created = []
        for admin in await self._get_active_admins():
            created.append(await self.create_notification(NotificationCreate(
                recipient_id=str(admin["id"]),
                type=notification_type,
                title=title,
                message=message,
                data={
                    "product_id": product["id"],
                    "product_name": product["name"],
                    "url": f"/admin/products/{product['id']}",
                },
                priority=priority,
                channels=ORDER_CHANNELS,
            )))
        logger.info(f"{notification_type.value} notifications sent for product {product['name']}")
        return created

    # ============ Recipient reads ============

    async def get_user_notifications(self, user_id: str, page: int = 1, limit: int = DEFAULT_PAGE_SIZE,
                                     unread_only: bool = False,
                                     notification_type: Optional[str] = None) -> dict:
        page = max(int(page), 1)
        limit = min(max(int(limit), 1), MAX_PAGE_SIZE)
        items, total = await self.store.find_by_recipient(
            user_id, unread_only=unread_only, notification_type=notification_type, page=page, limit=limit
        )
        return {
            "notifications": items,
            "pagination": {
                "current_page": page,
                "total_pages": math.ceil(total / limit),
                "total_items": total,
                "items_per_page": limit,
            },
        }

    async def mark_as_read(self, notification_id: str, user_id: str) -> Optional[dict]:
        return await self.store.mark_read(notification_id, user_id)

    async def mark_all_as_read(self, user_id: str) -> int:
        return await self.store.mark_all_read(user_id)

    async def get_unread_count(self, user_id: str) -> int:
        return await self.store.count_unread(user_id)

    # ============ Push subscription management ============

    async def save_push_subscription(self, user_id: str, subscription) -> dict:
        return await self.subscriptions.save(user_id, subscription)

    async def remove_push_subscription(self, user_id: str) -> bool:
        return await self.subscriptions.remove(user_id)

    def get_public_key(self) -> str:
        return self.webpush.get_public_key()

    async def set_push_preference(self, user_id: str, enabled: bool) -> None:
        await self.subscriptions.set_push_preference(user_id, enabled)

    async def get_push_status(self, user_id: str):
        return await self.subscriptions.get_status(user_id)

    async def send_test_push(self, user_id: str) -> DeliveryResult:
        return await self.webpush.send_test(user_id)
