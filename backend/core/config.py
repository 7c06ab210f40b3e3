"""
Application configuration and constants
"""
import os
from pathlib import Path
from dotenv import load_dotenv
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).parent.parent
load_dotenv(ROOT_DIR / '.env')

# MongoDB
MONGO_URL = os.environ['MONGO_URL']
DB_NAME = os.environ['DB_NAME']

# JWT configuration
SECRET_KEY = os.environ['JWT_SECRET_KEY']
ALGORITHM = 'HS256'
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24 * 7

# Web push (VAPID) configuration
VAPID_PUBLIC_KEY = os.environ.get('VAPID_PUBLIC_KEY', '')
VAPID_PRIVATE_KEY = os.environ.get('VAPID_PRIVATE_KEY', '')
VAPID_SUBJECT = os.environ.get('VAPID_SUBJECT', 'mailto:admin@snacksshop.com')
PUSH_TIMEOUT_SECONDS = float(os.environ.get('PUSH_TIMEOUT_SECONDS', '10'))
PUSH_ICON = os.environ.get('PUSH_ICON', '/icons/icon-192x192.png')
PUSH_BADGE = os.environ.get('PUSH_BADGE', '/icons/icon-72x72.png')

# Push services reject payloads above ~4KB
MAX_PUSH_PAYLOAD_BYTES = 4000

# Notification listing
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Expired notification reaper interval (seconds)
NOTIFICATION_REAPER_INTERVAL = int(os.environ.get('NOTIFICATION_REAPER_INTERVAL', str(60 * 60)))

CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')

# ============================================
# NOTIFICATION CONSTANTS
# ============================================

ROLE_ADMIN = "admin"

# Realtime event name pushed to connected clients
REALTIME_EVENT_NEW_NOTIFICATION = "new-notification"

# Order status -> customer notification content
ORDER_STATUS_MESSAGES = {
    "confirmed": {
        "title": "Order Confirmed!",
        "message": "Your order #{order_number} has been confirmed and is being prepared.",
        "priority": "high",
    },
    "processing": {
        "title": "Order Processing!",
        "message": "Your order #{order_number} is being processed and will ship soon.",
        "priority": "medium",
    },
    "shipped": {
        "title": "Order Shipped!",
        "message": "Your order #{order_number} has been shipped. Tracking: {tracking_number}",
        "priority": "high",
    },
    "delivered": {
        "title": "Order Delivered!",
        "message": "Your order #{order_number} has been delivered successfully.",
        "priority": "high",
    },
    "cancelled": {
        "title": "Order Cancelled",
        "message": "Your order #{order_number} has been cancelled.",
        "priority": "high",
    },
}
