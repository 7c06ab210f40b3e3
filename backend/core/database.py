"""
Database connection and initialization
"""
from motor.motor_asyncio import AsyncIOMotorClient

from .config import MONGO_URL, DB_NAME

# Optimized MongoDB connection with connection pooling
client = AsyncIOMotorClient(
    MONGO_URL,
    maxPoolSize=100,
    minPoolSize=10,
    maxIdleTimeMS=30000,
    connectTimeoutMS=5000,
    serverSelectionTimeoutMS=5000,
    waitQueueTimeoutMS=10000
)

db = client[DB_NAME]


async def create_database_indexes(database=None):
    """Create necessary indexes for optimal query performance"""
    database = database if database is not None else db

    # Users collection indexes
    await database.users.create_index("id", unique=True)
    await database.users.create_index("email", unique=True)
    await database.users.create_index([("role", 1), ("is_active", 1)])

    # Orders / products are looked up by id when composing notifications
    await database.orders.create_index("id", unique=True)
    await database.products.create_index("id", unique=True)

    # Notifications indexes
    await database.notifications.create_index("id", unique=True)
    await database.notifications.create_index([("recipient_id", 1), ("is_read", 1), ("created_at", -1)])
    await database.notifications.create_index([("type", 1), ("created_at", -1)])
    await database.notifications.create_index("expires_at")
