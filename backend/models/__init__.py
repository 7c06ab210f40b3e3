# Models package
from .notification import (
    NotificationType, NotificationPriority, NotificationChannel,
    NotificationData, NotificationCreate, Notification,
    Pagination, NotificationList, DeliveryResult, AdminNotificationCreate,
    required_data_fields
)
from .user import (
    PushSubscriptionKeys, PushSubscription, PushSubscribeRequest,
    PushPreferenceUpdate, PushStatus
)
