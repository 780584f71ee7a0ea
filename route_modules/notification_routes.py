"""
Notification Routes - API endpoints for user notifications.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from auth import Identity, trainee_only
from responses import ok, paginated
from service_modules.notification_service import NotificationService, get_notification_service

router = APIRouter()


@router.get("/trainee/notifications")
async def get_notifications(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    unread_only: bool = Query(False, alias="unreadOnly"),
    notification_type: Optional[str] = Query(None, alias="type"),
    identity: Identity = Depends(trainee_only),
    service: NotificationService = Depends(get_notification_service),
):
    """Get notifications for the current user, newest first."""
    items, total, unread = service.list_notifications(
        identity.user_id, page, page_size, unread_only, notification_type
    )
    return paginated(items, page, page_size, total, unreadCount=unread)


@router.get("/trainee/notifications/unread-count")
async def get_unread_count(
    identity: Identity = Depends(trainee_only),
    service: NotificationService = Depends(get_notification_service),
):
    """Get count of unread notifications."""
    return ok({"unreadCount": service.get_unread_count(identity.user_id)})


@router.put("/trainee/notifications/read-all")
async def mark_all_as_read(
    identity: Identity = Depends(trainee_only),
    service: NotificationService = Depends(get_notification_service),
):
    """Mark all notifications as read."""
    updated = service.mark_all_as_read(identity.user_id)
    return ok({"updatedCount": updated}, "All notifications marked as read")


@router.put("/trainee/notifications/{notification_id}/read")
async def mark_as_read(
    notification_id: int,
    identity: Identity = Depends(trainee_only),
    service: NotificationService = Depends(get_notification_service),
):
    """Mark a notification as read."""
    return ok(service.mark_as_read(notification_id, identity.user_id), "Notification marked as read")


@router.delete("/trainee/notifications/{notification_id}")
async def delete_notification(
    notification_id: int,
    identity: Identity = Depends(trainee_only),
    service: NotificationService = Depends(get_notification_service),
):
    """Delete a notification."""
    service.delete_notification(notification_id, identity.user_id)
    return ok(message="Notification deleted")
