from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from jobboard.config import settings
from jobboard.dependencies import get_current_user, get_notification_store
from jobboard.models.user import User
from jobboard.schemas.common import ApiResponse
from jobboard.schemas.notification import NotificationListData, UnreadCount
from jobboard.services.notification_store import NotificationStore

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=ApiResponse[NotificationListData])
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.notifications_default_limit, ge=1, le=settings.notifications_max_limit),
    read: bool | None = None,
    user: User = Depends(get_current_user),
    store: NotificationStore = Depends(get_notification_store),
):
    data = store.get_notifications(user.id, user.user_type, page=page, limit=limit, read=read)
    return ApiResponse(data=data)


@router.get("/unread-count", response_model=ApiResponse[UnreadCount])
async def unread_count(
    user: User = Depends(get_current_user),
    store: NotificationStore = Depends(get_notification_store),
):
    return ApiResponse(data=UnreadCount(unread_count=store.unread_count(user.id, user.user_type)))


@router.put("/read-all", response_model=ApiResponse[None])
async def mark_all_read(
    user: User = Depends(get_current_user),
    store: NotificationStore = Depends(get_notification_store),
):
    store.mark_all_read(user.id)
    return ApiResponse(message="All notifications marked as read")


@router.put("/{notification_id}/read", response_model=ApiResponse[None])
async def mark_read(
    notification_id: UUID,
    user: User = Depends(get_current_user),
    store: NotificationStore = Depends(get_notification_store),
):
    if not store.mark_read(str(notification_id), user.id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return ApiResponse(message="Notification marked as read")


@router.delete("/{notification_id}", response_model=ApiResponse[None])
async def delete_notification(
    notification_id: UUID,
    user: User = Depends(get_current_user),
    store: NotificationStore = Depends(get_notification_store),
):
    if not store.delete(str(notification_id), user.id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return ApiResponse(message="Notification deleted")
