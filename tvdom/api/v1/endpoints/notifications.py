"""
Notification API endpoints.

Broadcast notifications (user_id "all") are shared; marking one read or
deleting it only affects the calling user.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, status

from tvdom.core.security import ensure_acting_user
from tvdom.dependencies import (
    PaginationParams,
    get_current_user,
    get_notification_pagination,
    get_notification_service,
)
from tvdom.schemas.common import APIError, SuccessResponse
from tvdom.schemas.social import (
    NotificationCreate,
    NotificationResponse,
    NotificationUpdate,
    NotificationUpdateResponse,
)
from tvdom.services.notification_service import NotificationService

router = APIRouter(
    prefix="/notifications",
    tags=["Notifications"],
    responses={404: {"model": APIError, "description": "Notification not found"}},
)


@router.get("", summary="List a user's notifications")
async def list_notifications(
    user_id: int = Query(...),
    unread_only: bool = Query(False),
    pagination: PaginationParams = Depends(get_notification_pagination),
    current_user: dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> Dict[str, Any]:
    """Personal and broadcast notifications from the last 90 days, newest first."""
    ensure_acting_user(current_user, user_id)
    notifications = await service.list_notifications(
        user_id, limit=pagination.limit, offset=pagination.offset, unread_only=unread_only
    )
    return {"notifications": [NotificationResponse(**n) for n in notifications]}


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a notification")
async def create_notification(
    payload: NotificationCreate,
    current_user: dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> Dict[str, Any]:
    notification = await service.create_notification(payload)
    return {"success": True, "notification": NotificationResponse(**notification)}


@router.patch("", response_model=NotificationUpdateResponse, summary="Mark notifications read")
async def update_notifications(
    payload: NotificationUpdate,
    current_user: dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationUpdateResponse:
    ensure_acting_user(current_user, payload.user_id)
    if payload.action == "markAllRead":
        modified = await service.mark_all_as_read(payload.user_id)
    else:
        modified = await service.mark_as_read(payload.user_id, payload.notification_ids)
    return NotificationUpdateResponse(modified_count=modified)


@router.delete("", response_model=SuccessResponse, summary="Delete a notification")
async def delete_notification(
    notification_id: int = Query(...),
    user_id: int = Query(...),
    current_user: dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> SuccessResponse:
    ensure_acting_user(current_user, user_id)
    await service.delete_notification(notification_id, user_id)
    return SuccessResponse()
