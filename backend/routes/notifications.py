"""
Notification routes: listing, read state and the realtime websocket
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect

from core.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from core.dependencies import get_current_user, get_admin_user, decode_access_token
from models.notification import (
    NotificationType, NotificationCreate, NotificationList, Notification, AdminNotificationCreate
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["notifications"])

# Injected from server.py
notification_service = None
connection_registry = None


def set_notification_service(service, connections):
    global notification_service, connection_registry
    notification_service = service
    connection_registry = connections


@router.get("", response_model=NotificationList)
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    unread_only: bool = False,
    type: Optional[NotificationType] = None,
    user: dict = Depends(get_current_user),
):
    """Get the current user's notifications, newest first"""
    return await notification_service.get_user_notifications(
        user["id"],
        page=page,
        limit=limit,
        unread_only=unread_only,
        notification_type=type.value if type else None,
    )


@router.get("/unread-count")
async def unread_count(user: dict = Depends(get_current_user)):
    return {"success": True, "count": await notification_service.get_unread_count(user["id"])}


@router.put("/read-all")
async def mark_all_read(user: dict = Depends(get_current_user)):
    modified = await notification_service.mark_all_as_read(user["id"])
    return {"success": True, "modified": modified}


@router.put("/{notification_id}/read", response_model=Notification)
async def mark_read(notification_id: str, user: dict = Depends(get_current_user)):
    notification = await notification_service.mark_as_read(notification_id, user["id"])
    if notification is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification


@router.post("/send", response_model=Notification)
async def send_notification(data: AdminNotificationCreate, admin: dict = Depends(get_admin_user)):
    """Admin: send a general notification to one user"""
    recipient = await notification_service.db.users.find_one({"id": data.recipient_id}, {"_id": 0, "id": 1})
    if recipient is None:
        raise HTTPException(status_code=404, detail="Recipient not found")

    return await notification_service.create_notification(NotificationCreate(
        recipient_id=data.recipient_id,
        type=NotificationType.GENERAL,
        title=data.title,
        message=data.message,
        data={"url": data.url or "/dashboard"},
        priority=data.priority,
    ))


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket):
    """Stream new notifications to the authenticated user"""
    user_id = decode_access_token(websocket.query_params.get("token") or "")
    if not user_id:
        logger.warning("Rejected notification websocket: invalid token")
        await websocket.close(code=1008)
        return

    user = await notification_service.db.users.find_one({"id": user_id}, {"_id": 0, "id": 1, "is_active": 1})
    if not user or user.get("is_active") is False:
        logger.warning(f"Rejected notification websocket for user {user_id}: unknown or inactive")
        await websocket.close(code=1008)
        return

    await connection_registry.connect(user_id, websocket)
    try:
        pending = await notification_service.store.find_unread(user_id)
        await websocket.send_json({
            "type": "init",
            "data": {
                "notifications": pending,
                "unread_count": await notification_service.get_unread_count(user_id),
            },
        })
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                continue
            if not isinstance(message, dict):
                continue

            message_type = message.get("type")
            if message_type == "ping":
                await websocket.send_json({"type": "pong"})
            elif message_type == "ack":
                ids = message.get("ids")
                if isinstance(ids, list) and ids:
                    await notification_service.store.mark_many_read([str(i) for i in ids], user_id)
                    await websocket.send_json({
                        "type": "unread-count",
                        "data": {"unread_count": await notification_service.get_unread_count(user_id)},
                    })
    except WebSocketDisconnect:
        pass
    finally:
        connection_registry.disconnect(user_id, websocket)
