"""
Per-user push subscription credentials and opt-out preference.

Both live on the user document:

- ``push_subscription`` / ``push_subscription_updated_at``
- ``preferences.notifications.push`` (missing means enabled)
"""
import logging
from datetime import datetime, timezone
from typing import Optional, Union

from core.errors import NotFoundError
from models.user import PushSubscription, PushStatus

logger = logging.getLogger(__name__)

PUSH_PREFERENCE_FIELD = "preferences.notifications.push"


def push_enabled_for(user: dict) -> bool:
    """Only an explicit ``False`` opts a user out of push"""
    preference = ((user.get("preferences") or {}).get("notifications") or {}).get("push")
    return preference is not False


class SubscriptionRegistry:
    def __init__(self, db):
        self.users = db.users

    async def save(self, user_id: str, subscription: Union[PushSubscription, dict]) -> dict:
        if not isinstance(subscription, PushSubscription):
            subscription = PushSubscription.model_validate(subscription)
        stored = subscription.model_dump(by_alias=True, exclude_none=True)

        result = await self.users.update_one(
            {"id": user_id},
            {"$set": {
                "push_subscription": stored,
                "push_subscription_updated_at": datetime.now(timezone.utc).isoformat(),
            }}
        )
        if result.matched_count == 0:
            raise NotFoundError("User", user_id)

        logger.info(f"Push subscription saved for user {user_id}")
        return stored

    async def remove(self, user_id: str) -> bool:
        """Clear stored credentials. Returns False if the user does not exist."""
        result = await self.users.update_one(
            {"id": user_id},
            {"$set": {
                "push_subscription": None,
                "push_subscription_updated_at": datetime.now(timezone.utc).isoformat(),
            }}
        )
        if result.matched_count == 0:
            logger.warning(f"Cannot remove push subscription, user {user_id} not found")
            return False

        logger.info(f"Push subscription removed for user {user_id}")
        return True

    async def get(self, user_id: str) -> Optional[dict]:
        user = await self.users.find_one({"id": user_id}, {"_id": 0, "push_subscription": 1})
        if user is None:
            return None
        return user.get("push_subscription") or None

    async def set_push_preference(self, user_id: str, enabled: bool) -> None:
        result = await self.users.update_one(
            {"id": user_id},
            {"$set": {PUSH_PREFERENCE_FIELD: bool(enabled)}}
        )
        if result.matched_count == 0:
            raise NotFoundError("User", user_id)
        logger.info(f"Push preference for user {user_id} set to {enabled}")

    async def is_push_enabled(self, user_id: str) -> bool:
        user = await self.users.find_one({"id": user_id}, {"_id": 0, "preferences": 1})
        return push_enabled_for(user or {})

    async def get_status(self, user_id: str) -> PushStatus:
        user = await self.users.find_one(
            {"id": user_id},
            {"_id": 0, "id": 1, "push_subscription": 1, "push_subscription_updated_at": 1, "preferences": 1}
        )
        if user is None:
            raise NotFoundError("User", user_id)
        return PushStatus(
            has_subscription=bool(user.get("push_subscription")),
            subscription_updated_at=user.get("push_subscription_updated_at"),
            push_enabled=push_enabled_for(user),
        )
