from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import asyncio
import logging

from core.config import CORS_ORIGINS, NOTIFICATION_REAPER_INTERVAL
from core.database import db, client, create_database_indexes
from routes import health_router, notifications_router, push_router
from routes import notifications as notification_routes
from routes import push as push_routes
from services import ConnectionRegistry, build_notification_service, load_vapid_config
from tasks import init_tasks, stop_tasks, purge_expired_notifications

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Process-wide: VAPID keys are read once, the connection registry is shared by
# the websocket route and the realtime channel
connections = ConnectionRegistry()
notification_service = build_notification_service(db, connections=connections, vapid=load_vapid_config())

notification_routes.set_notification_service(notification_service, connections)
push_routes.set_notification_service(notification_service)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown"""
    try:
        await create_database_indexes()
        logger.info("Database indexes created successfully")
    except Exception as e:
        logger.error(f"Error creating indexes (may already exist): {e}")

    init_tasks(notification_service.store, logger, reaper_interval=NOTIFICATION_REAPER_INTERVAL)
    reaper = asyncio.create_task(purge_expired_notifications())
    yield
    stop_tasks()
    reaper.cancel()
    client.close()


app = FastAPI(lifespan=lifespan)

app.include_router(health_router)
app.include_router(notifications_router)
app.include_router(push_router)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
