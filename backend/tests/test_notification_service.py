"""
Test suite for notification orchestration
Tests:
- Order placed / status update fan-out
- Stock alerts to active admins
- Best-effort dispatch (channel failures never reach the caller)
- Recipient reads and pagination
"""
import json

import pytest
from pydantic import ValidationError

from core.errors import NotFoundError
from models.notification import DeliveryResult
from services.channels import DeliveryChannel

from helpers import FakeWebSocket, SUBSCRIPTION, make_user

pytestmark = pytest.mark.anyio


class ExplodingChannel(DeliveryChannel):
    name = "email"

    def __init__(self):
        self.calls = 0

    async def deliver(self, recipient_id, notification):
        self.calls += 1
        raise RuntimeError("smtp server on fire")


async def _recipients(db):
    docs = await db.notifications.find({}, {"_id": 0}).to_list(None)
    return sorted(doc["recipient_id"] for doc in docs)


class TestCreateNotification:
    async def test_persists_and_stamps_sent_at(self, service, db):
        notification = await service.create_notification({
            "recipient_id": "user-1",
            "type": "general",
            "title": "Hi",
            "message": "There",
        })

        stored = await db.notifications.find_one({"id": notification["id"]}, {"_id": 0})
        assert stored["sent_at"] is not None
        assert notification["sent_at"] == stored["sent_at"]
        assert stored["is_read"] is False

    async def test_invalid_input_is_rejected_before_persisting(self, service, db):
        with pytest.raises(ValidationError):
            await service.create_notification({
                "recipient_id": "user-1",
                "type": "order_placed",
                "title": "Missing order id",
                "message": "No data",
            })
        with pytest.raises(ValidationError):
            await service.create_notification({
                "recipient_id": "user-1", "type": "general", "title": "x" * 101, "message": "m",
            })
        assert await db.notifications.count_documents({}) == 0

    async def test_channel_exception_does_not_fail_creation(self, db, service):
        exploding = ExplodingChannel()
        service.extra_channels["email"] = exploding

        notification = await service.create_notification({
            "recipient_id": "user-1", "type": "general", "title": "Hi", "message": "There",
            "channels": ["in_app", "email"],
        })

        assert exploding.calls == 1
        assert await db.notifications.count_documents({"id": notification["id"]}) == 1

    async def test_realtime_delivery_to_connected_recipient(self, service, connections):
        socket = FakeWebSocket()
        await connections.connect("user-1", socket)

        notification = await service.create_notification({
            "recipient_id": "user-1", "type": "general", "title": "Hi", "message": "There",
        })

        assert socket.sent[0]["type"] == "new-notification"
        assert socket.sent[0]["data"]["notification"]["id"] == notification["id"]
        assert socket.sent[0]["data"]["unread_count"] == 1

    async def test_push_sent_only_when_subscribed_and_enabled(self, service, db, push_transport):
        await db.users.insert_one(make_user("user-1", push_subscription=SUBSCRIPTION))
        payload = {"recipient_id": "user-1", "type": "general", "title": "Hi", "message": "There"}

        await service.create_notification(payload)
        assert len(push_transport.calls) == 1

        await service.set_push_preference("user-1", False)
        await service.create_notification(payload)
        assert len(push_transport.calls) == 1

        await service.set_push_preference("user-1", True)
        await service.remove_push_subscription("user-1")
        await service.create_notification(payload)
        assert len(push_transport.calls) == 1

    async def test_gone_subscription_is_cleaned_up_during_dispatch(self, service, db, push_transport):
        await db.users.insert_one(make_user("user-1", push_subscription=SUBSCRIPTION))
        push_transport.status_code = 410
        payload = {"recipient_id": "user-1", "type": "general", "title": "Hi", "message": "There"}

        await service.create_notification(payload)
        await service.create_notification(payload)

        assert len(push_transport.calls) == 1
        assert await db.notifications.count_documents({"recipient_id": "user-1"}) == 2
        assert (await service.get_push_status("user-1")).has_subscription is False


class TestOrderPlaced:
    async def test_customer_and_each_active_admin(self, service, seeded):
        created = await service.notify_order_placed("order-1")

        assert len(created) == 3
        assert await _recipients(seeded) == ["admin-1", "admin-2", "customer-1"]

        customer_copy = created[0]
        assert customer_copy["recipient_id"] == "customer-1"
        assert customer_copy["title"] == "Order Placed Successfully!"
        assert customer_copy["priority"] == "high"
        assert customer_copy["data"]["url"] == "/my-orders/order-1"
        assert "ORD-1001" in customer_copy["message"]

        admin_copy = created[1]
        assert admin_copy["title"] == "New Order Received!"
        assert admin_copy["priority"] == "urgent"
        assert admin_copy["message"] == "New order #ORD-1001 from Customer 1 for $42.50"
        assert admin_copy["data"]["url"] == "/admin/orders/order-1"
        assert admin_copy["channels"] == ["in_app", "email"]
        print("✓ Inactive admin excluded from the fan-out")

    async def test_customer_who_is_admin_gets_one_copy(self, service, seeded):
        await seeded.orders.update_one({"id": "order-1"}, {"$set": {"customer_id": "admin-1"}})

        created = await service.notify_order_placed("order-1")

        assert len(created) == 2
        assert await _recipients(seeded) == ["admin-1", "admin-2"]
        own = next(n for n in created if n["recipient_id"] == "admin-1")
        assert own["title"] == "Order Placed Successfully!"
        assert own["message"].startswith("Your order")

    async def test_customer_admin_with_other_admins(self, service, seeded):
        await seeded.users.insert_one(make_user("admin-3", role="admin"))
        await seeded.orders.update_one({"id": "order-1"}, {"$set": {"customer_id": "admin-3"}})

        created = await service.notify_order_placed("order-1")

        assert len(created) == 3
        assert await _recipients(seeded) == ["admin-1", "admin-2", "admin-3"]

    async def test_no_active_admins(self, service, seeded):
        await seeded.users.update_many({"role": "admin"}, {"$set": {"is_active": False}})

        created = await service.notify_order_placed("order-1")

        assert [n["recipient_id"] for n in created] == ["customer-1"]

    async def test_unknown_order(self, service, seeded):
        with pytest.raises(NotFoundError):
            await service.notify_order_placed("order-404")
        assert await seeded.notifications.count_documents({}) == 0


class TestOrderStatusUpdate:
    async def test_shipped_includes_tracking_and_appends_history(self, service, seeded):
        notification = await service.notify_order_status_update("order-1", "shipped")

        assert notification["type"] == "order_shipped"
        assert notification["recipient_id"] == "customer-1"
        assert "TRK-778" in notification["message"]

        order = await seeded.orders.find_one({"id": "order-1"}, {"_id": 0})
        assert len(order["notifications"]) == 1
        entry = order["notifications"][0]
        assert entry["type"] == "order_shipped"
        assert entry["message"] == notification["message"]
        assert entry["sent_to"] == "customer"
        assert entry["sent_at"]

    @pytest.mark.parametrize("status,priority", [
        ("confirmed", "high"),
        ("processing", "medium"),
        ("delivered", "high"),
        ("cancelled", "high"),
    ])
    async def test_mapped_statuses(self, service, seeded, status, priority):
        notification = await service.notify_order_status_update("order-1", status)

        assert notification["type"] == f"order_{status}"
        assert notification["priority"] == priority
        assert notification["data"]["order_id"] == "order-1"

    async def test_unmapped_status_is_ignored(self, service, seeded):
        assert await service.notify_order_status_update("order-1", "packed") is None
        assert await seeded.notifications.count_documents({}) == 0
        order = await seeded.orders.find_one({"id": "order-1"}, {"_id": 0})
        assert order["notifications"] == []

    @pytest.mark.parametrize("missing", [{"$unset": {"customer_id": ""}}, {"$set": {"customer_id": None}}])
    async def test_order_without_customer_is_skipped(self, service, seeded, missing):
        await seeded.orders.update_one({"id": "order-1"}, missing)

        assert await service.notify_order_status_update("order-1", "shipped") is None
        assert await seeded.notifications.count_documents({}) == 0
        order = await seeded.orders.find_one({"id": "order-1"}, {"_id": 0})
        assert order["notifications"] == []

    async def test_unknown_order(self, service, seeded):
        with pytest.raises(NotFoundError):
            await service.notify_order_status_update("order-404", "shipped")


class TestStockAlerts:
    async def test_low_stock(self, service, seeded):
        created = await service.notify_low_stock("product-1")

        assert sorted(n["recipient_id"] for n in created) == ["admin-1", "admin-2"]
        alert = created[0]
        assert alert["type"] == "stock_low"
        assert alert["priority"] == "high"
        assert alert["message"] == "Salted Pretzels is running low on stock (3 remaining)"
        assert alert["data"] == {
            "product_id": "product-1",
            "product_name": "Salted Pretzels",
            "url": "/admin/products/product-1",
        }

    async def test_out_of_stock(self, service, seeded):
        created = await service.notify_out_of_stock("product-1")

        assert len(created) == 2
        assert all(n["type"] == "stock_out" and n["priority"] == "urgent" for n in created)
        assert created[0]["message"] == "Salted Pretzels is now out of stock"

    async def test_unknown_product(self, service, seeded):
        with pytest.raises(NotFoundError):
            await service.notify_low_stock("product-404")
        with pytest.raises(NotFoundError):
            await service.notify_out_of_stock("product-404")


class TestRecipientReads:
    async def test_pagination_envelope(self, service):
        for i in range(5):
            await service.create_notification({
                "recipient_id": "user-1", "type": "general", "title": f"N{i}", "message": "m",
            })

        result = await service.get_user_notifications("user-1", page=2, limit=2)

        assert [n["title"] for n in result["notifications"]] == ["N2", "N1"]
        assert result["pagination"] == {
            "current_page": 2,
            "total_pages": 3,
            "total_items": 5,
            "items_per_page": 2,
        }

    async def test_created_content_comes_back_unchanged(self, service):
        data = {
            "order_id": "order-77",
            "product_id": "product-9",
            "order_number": "ORD-0077",
            "product_name": "Chili Mango Chips",
            "amount": 1234.56,
            "url": "/my-orders/order-77",
        }
        created = await service.create_notification({
            "recipient_id": "user-1",
            "type": "order_delivered",
            "title": "Order Delivered!",
            "message": "Your order #ORD-0077 has been delivered, enjoy 🍿",
            "data": data,
            "priority": "high",
        })

        result = await service.get_user_notifications("user-1")

        assert len(result["notifications"]) == 1
        listed = result["notifications"][0]
        assert listed["id"] == created["id"]
        assert listed["type"] == "order_delivered"
        assert listed["title"] == "Order Delivered!"
        assert listed["message"] == "Your order #ORD-0077 has been delivered, enjoy 🍿"
        assert listed["data"] == data
        assert listed["priority"] == "high"

    async def test_limit_is_clamped(self, service):
        result = await service.get_user_notifications("user-1", limit=1000)

        assert result["pagination"]["items_per_page"] == 100
        assert result["pagination"]["total_pages"] == 0

    async def test_read_state(self, service):
        first = await service.create_notification({
            "recipient_id": "user-1", "type": "general", "title": "A", "message": "m",
        })
        await service.create_notification({
            "recipient_id": "user-1", "type": "general", "title": "B", "message": "m",
        })

        assert await service.get_unread_count("user-1") == 2
        assert (await service.mark_as_read(first["id"], "user-1"))["is_read"] is True
        assert await service.mark_as_read(first["id"], "user-2") is None
        assert await service.get_unread_count("user-1") == 1
        assert await service.mark_all_as_read("user-1") == 1
        assert await service.get_unread_count("user-1") == 0


class TestPushManagement:
    async def test_test_push_uses_stored_subscription(self, service, db, push_transport):
        await db.users.insert_one(make_user("user-1"))
        await service.save_push_subscription("user-1", SUBSCRIPTION)

        result = await service.send_test_push("user-1")

        assert result == DeliveryResult(channel="web_push", ok=True)
        assert json.loads(push_transport.calls[0]["data"])["data"]["url"] == "/"
        assert service.get_public_key() == "BPublicVapidKey"
