import logging
from typing import List

from fastapi import APIRouter, HTTPException, Depends

from domain.notifications import Notification
from errors import NotFound, UpstreamFailure
from routers.deps import get_storage
from services.storage import StorageGateway

logger = logging.getLogger('uvicorn.error')

router = APIRouter(
    prefix="/notifications",
    tags=["notifications"]
)


@router.get("/{user_id}", response_model=List[Notification])
async def get_unread_notifications(
    user_id: str,
    storage: StorageGateway = Depends(get_storage),
):
    try:
        return await storage.fetch_unread_notifications_for_user(user_id)
    except UpstreamFailure as e:
        logger.exception(f"Error fetching notifications for user {user_id}: {e}")
        raise HTTPException(status_code=502, detail="Database error while fetching notifications.")


@router.put("/{notification_id}/read")
async def mark_notification_read(
    notification_id: str,
    storage: StorageGateway = Depends(get_storage),
):
    try:
        await storage.mark_notification_read(notification_id)
    except NotFound:
        logger.warning(f"Notification {notification_id} not found.")
        raise HTTPException(status_code=404, detail=f"Notification with id {notification_id} not found.")
    except UpstreamFailure as e:
        logger.exception(f"Error marking notification {notification_id} as read: {e}")
        raise HTTPException(status_code=502, detail="Failed to mark notification as read")
    return {"message": "Notification marked as read"}
