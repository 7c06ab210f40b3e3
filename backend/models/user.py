"""
User-related Pydantic models (push subscription and notification preferences)
"""
from pydantic import BaseModel, ConfigDict, Field, StrictBool
from typing import Optional


class PushSubscriptionKeys(BaseModel):
    p256dh: str = Field(min_length=1)
    auth: str = Field(min_length=1)


class PushSubscription(BaseModel):
    """Browser PushSubscription as produced by ``PushSubscription.toJSON()``"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    endpoint: str = Field(min_length=1)
    expiration_time: Optional[int] = Field(default=None, alias="expirationTime")
    keys: PushSubscriptionKeys


class PushSubscribeRequest(BaseModel):
    subscription: PushSubscription


class PushPreferenceUpdate(BaseModel):
    push_enabled: StrictBool


class PushStatus(BaseModel):
    has_subscription: bool
    subscription_updated_at: Optional[str] = None
    push_enabled: bool = True
