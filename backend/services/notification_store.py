"""
Notification persistence on the ``notifications`` collection
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Tuple, List

from pymongo import ReturnDocument

from models.notification import NotificationCreate

logger = logging.getLogger(__name__)

# Never return Mongo's internal _id
_PROJECTION = {"_id": 0}


def to_iso(value: datetime) -> str:
    """Fixed-width UTC ISO string, so stored timestamps order correctly as strings"""
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def utc_now() -> str:
    return to_iso(datetime.now(timezone.utc))


def _not_expired(now: str) -> dict:
    """Filter excluding records whose ``expires_at`` has passed"""
    return {"$or": [{"expires_at": None}, {"expires_at": {"$gt": now}}]}


class NotificationStore:
    """
    Stores one document per (notification, recipient). Reads always hide
    expired documents; ``purge_expired`` removes them for good.
    """

    def __init__(self, db):
        self.collection = db.notifications

    async def create(self, data: NotificationCreate) -> dict:
        now = utc_now()
        notification = {
            "id": str(uuid.uuid4()),
            "recipient_id": data.recipient_id,
            "type": data.type.value,
            "title": data.title,
            "message": data.message,
            "data": data.data.model_dump(exclude_none=True),
            "priority": data.priority.value,
            "channels": [channel.value for channel in data.channels],
            "sent_at": None,
            "is_read": False,
            "read_at": None,
            "expires_at": to_iso(data.expires_at) if data.expires_at is not None else None,
            "created_at": now,
            "updated_at": now,
        }
        # insert_one adds _id to the dict it is given
        await self.collection.insert_one(dict(notification))
        return notification

    def _recipient_query(self, user_id: str, unread_only: bool = False,
                         notification_type: Optional[str] = None) -> dict:
        query = {"recipient_id": user_id, **_not_expired(utc_now())}
        if unread_only:
            query["is_read"] = False
        if notification_type:
            query["type"] = notification_type
        return query

    async def find_by_recipient(self, user_id: str, unread_only: bool = False,
                                notification_type: Optional[str] = None,
                                page: int = 1, limit: int = 20) -> Tuple[List[dict], int]:
        """Return one page of a recipient's notifications (newest first) and the total count"""
        page = max(page, 1)
        limit = max(limit, 1)
        query = self._recipient_query(user_id, unread_only, notification_type)

        items = await self.collection.find(query, _PROJECTION) \
            .sort([("created_at", -1), ("_id", -1)]) \
            .skip((page - 1) * limit) \
            .limit(limit) \
            .to_list(limit)
        total = await self.collection.count_documents(query)
        return items, total

    async def find_unread(self, user_id: str, limit: int = 50) -> List[dict]:
        items, _ = await self.find_by_recipient(user_id, unread_only=True, limit=limit)
        return items

    async def mark_read(self, notification_id: str, user_id: str) -> Optional[dict]:
        """
        Mark a notification read on behalf of ``user_id``.

        Returns None when the notification does not exist, has expired or
        belongs to someone else. Marking an already-read notification
        returns it unchanged.
        """
        now = utc_now()
        owned = {"id": notification_id, "recipient_id": user_id, **_not_expired(now)}

        notification = await self.collection.find_one_and_update(
            {**owned, "is_read": False},
            {"$set": {"is_read": True, "read_at": now, "updated_at": now}},
            projection=_PROJECTION,
            return_document=ReturnDocument.AFTER,
        )
        if notification is None:
            notification = await self.collection.find_one(owned, _PROJECTION)
        return notification

    async def mark_many_read(self, notification_ids: List[str], user_id: str) -> int:
        if not notification_ids:
            return 0
        now = utc_now()
        result = await self.collection.update_many(
            {"id": {"$in": list(notification_ids)}, "recipient_id": user_id, "is_read": False},
            {"$set": {"is_read": True, "read_at": now, "updated_at": now}},
        )
        return result.modified_count

    async def mark_all_read(self, user_id: str) -> int:
        now = utc_now()
        result = await self.collection.update_many(
            {"recipient_id": user_id, "is_read": False},
            {"$set": {"is_read": True, "read_at": now, "updated_at": now}},
        )
        return result.modified_count

    async def count_unread(self, user_id: str) -> int:
        return await self.collection.count_documents(self._recipient_query(user_id, unread_only=True))

    async def mark_sent(self, notification_id: str) -> str:
        now = utc_now()
        await self.collection.update_one(
            {"id": notification_id, "sent_at": None},
            {"$set": {"sent_at": now, "updated_at": now}},
        )
        return now

    async def purge_expired(self) -> int:
        result = await self.collection.delete_many({"expires_at": {"$ne": None, "$lte": utc_now()}})
        if result.deleted_count:
            logger.info(f"Purged {result.deleted_count} expired notifications")
        return result.deleted_count
