"""
Shared fixtures for notification service tests
"""
import os

# core.config reads these at import time
os.environ.setdefault('MONGO_URL', 'mongodb://localhost:27017')
os.environ.setdefault('DB_NAME', 'notifications_test')
os.environ.setdefault('JWT_SECRET_KEY', 'test-secret-key')

import pytest
from fastapi import FastAPI
from mongomock_motor import AsyncMongoMockClient

from core.dependencies import get_current_user
from routes import health_router, notifications_router, push_router
from routes import notifications as notification_routes
from routes import push as push_routes
from services import ConnectionRegistry, VapidConfig, build_notification_service

from helpers import FakePushTransport, make_user


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def db():
    return AsyncMongoMockClient()["notifications_test"]


@pytest.fixture
def vapid():
    return VapidConfig(public_key="BPublicVapidKey", private_key="private-vapid-key",
                       subject="mailto:admin@example.com")


@pytest.fixture
def push_transport():
    return FakePushTransport()


@pytest.fixture
def connections():
    return ConnectionRegistry()


@pytest.fixture
def service(db, connections, vapid, push_transport):
    return build_notification_service(db, connections=connections, vapid=vapid, transport=push_transport)


@pytest.fixture
async def seeded(db, anyio_backend):
    """Customer, two admins, one inactive admin, an order and a product"""
    await db.users.insert_many([
        make_user("customer-1"),
        make_user("admin-1", role="admin"),
        make_user("admin-2", role="admin"),
        make_user("admin-retired", role="admin", is_active=False),
    ])
    await db.orders.insert_one({
        "id": "order-1",
        "order_number": "ORD-1001",
        "customer_id": "customer-1",
        "items": [{"product_id": "product-1", "quantity": 2}],
        "total_amount": 42.5,
        "tracking_number": "TRK-778",
        "status": "pending",
        "notifications": [],
    })
    await db.products.insert_one({"id": "product-1", "name": "Salted Pretzels", "stock": 3})
    return db


@pytest.fixture
def app(service, connections):
    """FastAPI app with the notification routers wired to the test service"""
    notification_routes.set_notification_service(service, connections)
    push_routes.set_notification_service(service)

    application = FastAPI()
    application.include_router(health_router)
    application.include_router(notifications_router)
    application.include_router(push_router)
    return application


@pytest.fixture
def current_user(app):
    """Mutable holder for the user returned by the auth dependency"""
    holder = {"user": make_user("customer-1")}
    app.dependency_overrides[get_current_user] = lambda: holder["user"]
    yield holder
    app.dependency_overrides.clear()
