"""
Web push routes: VAPID key, subscription and preference management
"""
import logging

from fastapi import APIRouter, Depends, HTTPException

from core.dependencies import get_current_user
from core.errors import ConfigurationError, NotFoundError
from models.user import PushSubscribeRequest, PushPreferenceUpdate, PushStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/push", tags=["push"])

# Injected from server.py
notification_service = None


def set_notification_service(service):
    global notification_service
    notification_service = service


@router.get("/vapid-key")
async def get_vapid_key():
    try:
        public_key = notification_service.get_public_key()
    except ConfigurationError as e:
        logger.error(f"Error getting VAPID key: {e}")
        raise HTTPException(status_code=500, detail="VAPID keys not configured")
    return {"success": True, "public_key": public_key}


@router.post("/subscribe")
async def subscribe(body: PushSubscribeRequest, user: dict = Depends(get_current_user)):
    try:
        await notification_service.save_push_subscription(user["id"], body.subscription)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "message": "Push subscription saved successfully"}


@router.delete("/unsubscribe")
async def unsubscribe(user: dict = Depends(get_current_user)):
    await notification_service.remove_push_subscription(user["id"])
    return {"success": True, "message": "Push subscription removed successfully"}


@router.post("/test")
async def send_test_push(user: dict = Depends(get_current_user)):
    result = await notification_service.send_test_push(user["id"])
    if not result.ok:
        raise HTTPException(status_code=400, detail=result.reason or "Failed to send test notification")
    return {"success": True, "message": "Test push notification sent successfully"}


@router.get("/status", response_model=PushStatus)
async def push_status(user: dict = Depends(get_current_user)):
    try:
        return await notification_service.get_push_status(user["id"])
    except NotFoundError:
        raise HTTPException(status_code=404, detail="User not found")


@router.put("/preferences")
async def update_preferences(body: PushPreferenceUpdate, user: dict = Depends(get_current_user)):
    try:
        await notification_service.set_push_preference(user["id"], body.push_enabled)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "message": "Push preferences updated successfully"}
