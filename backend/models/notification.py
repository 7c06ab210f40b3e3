"""
Notification-related Pydantic models
"""
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class NotificationType(str, Enum):
    ORDER_PLACED = "order_placed"
    ORDER_CONFIRMED = "order_confirmed"
    ORDER_PROCESSING = "order_processing"
    ORDER_SHIPPED = "order_shipped"
    ORDER_DELIVERED = "order_delivered"
    ORDER_CANCELLED = "order_cancelled"
    PRODUCT_ADDED = "product_added"
    PRODUCT_UPDATED = "product_updated"
    STOCK_LOW = "stock_low"
    STOCK_OUT = "stock_out"
    GENERAL = "general"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class NotificationChannel(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"
    IN_APP = "in_app"


# Payload fields that must be present for each notification type family
REQUIRED_DATA_FIELDS = {
    "order_": ("order_id",),
    "product_": ("product_id",),
    "stock_": ("product_id",),
}


def required_data_fields(notification_type: str) -> tuple:
    """Return the ``data`` fields a notification of ``notification_type`` must carry"""
    for prefix, fields in REQUIRED_DATA_FIELDS.items():
        if notification_type.startswith(prefix):
            return fields
    return ()


class NotificationData(BaseModel):
    """Structured payload attached to a notification"""
    model_config = ConfigDict(extra="ignore")
    order_id: Optional[str] = None
    product_id: Optional[str] = None
    order_number: Optional[str] = None
    product_name: Optional[str] = None
    amount: Optional[float] = None
    url: Optional[str] = None


class NotificationCreate(BaseModel):
    """Input accepted by the orchestrator's ``create_notification``"""
    recipient_id: str = Field(min_length=1)
    type: NotificationType
    title: str = Field(min_length=1, max_length=100)
    message: str = Field(min_length=1, max_length=500)
    data: NotificationData = Field(default_factory=NotificationData)
    priority: NotificationPriority = NotificationPriority.MEDIUM
    channels: List[NotificationChannel] = Field(default_factory=lambda: [NotificationChannel.IN_APP])
    expires_at: Optional[datetime] = None  # normalized to UTC; record is reaped once passed

    @field_validator("channels")
    @classmethod
    def dedupe_channels(cls, value):
        if not value:
            return [NotificationChannel.IN_APP]
        return list(dict.fromkeys(value))

    @field_validator("expires_at")
    @classmethod
    def expires_at_in_utc(cls, value):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def check_required_data(self):
        missing = [
            name for name in required_data_fields(self.type.value)
            if getattr(self.data, name) is None
        ]
        if missing:
            raise ValueError(f"{self.type.value} notifications require data fields: {', '.join(missing)}")
        return self


class Notification(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: str
    recipient_id: str
    type: NotificationType
    title: str
    message: str
    data: NotificationData = Field(default_factory=NotificationData)
    priority: NotificationPriority = NotificationPriority.MEDIUM
    channels: List[NotificationChannel] = Field(default_factory=lambda: [NotificationChannel.IN_APP])
    sent_at: Optional[str] = None
    is_read: bool = False
    read_at: Optional[str] = None
    expires_at: Optional[str] = None
    created_at: str
    updated_at: str


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int


class NotificationList(BaseModel):
    notifications: List[Notification]
    pagination: Pagination


class DeliveryResult(BaseModel):
    """Outcome of handing a notification to one delivery channel"""
    channel: str
    ok: bool
    reason: Optional[str] = None


class AdminNotificationCreate(BaseModel):
    """Ad-hoc notification sent by an admin to a single user"""
    recipient_id: str
    title: str = Field(min_length=1, max_length=100)
    message: str = Field(min_length=1, max_length=500)
    url: Optional[str] = None
    priority: NotificationPriority = NotificationPriority.MEDIUM
