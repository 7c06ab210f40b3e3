"""
Error types raised by the notification services
"""


class NotificationError(Exception):
    """Base class for notification pipeline errors"""


class NotFoundError(NotificationError):
    """A referenced order, product or user does not exist"""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class ConfigurationError(NotificationError):
    """Required configuration (e.g. VAPID keys) is missing"""


class DeliveryError(NotificationError):
    """A delivery channel failed to hand off a notification.

    Channels convert this into a failed ``DeliveryResult``; it is never
    raised past a channel adapter.
    """

    def __init__(self, channel: str, reason: str, status_code: int = None):
        self.channel = channel
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"{channel}: {reason}")
