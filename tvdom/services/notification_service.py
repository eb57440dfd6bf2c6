"""
Notification Service - Business logic for notifications.

This provides:
1. Listing a user's notifications, including broadcasts, newest first
2. Read/dismiss state per user for broadcasts
3. The 90 day retention window
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from tvdom.config import settings
from tvdom.core.exceptions import NotFoundError
from tvdom.database import utcnow
from tvdom.models.social import BROADCAST_AUDIENCE, Notification
from tvdom.repositories.notification_repository import NotificationRepository
from tvdom.repositories.user_repository import UserRepository
from tvdom.schemas.social import NotificationCreate
from tvdom.services.base import BaseService


def serialize_notification(notification: Notification, read: bool) -> Dict[str, Any]:
    return {
        "id": notification.id,
        "user_id": notification.audience,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "data": notification.data or {},
        "read": read,
        "created_at": notification.created_at,
    }


class NotificationService(BaseService):
    def __init__(self, db: AsyncSession, **kwargs):
        super().__init__(db, **kwargs)
        self.repo = NotificationRepository(db)
        self.user_repo = UserRepository(db)

    def retention_cutoff(self, now: Optional[datetime] = None) -> datetime:
        return (now or utcnow()) - timedelta(days=settings.notification_retention_days)

    async def list_notifications(
        self, user_id: int, limit: int = 50, offset: int = 0, unread_only: bool = False
    ) -> List[Dict[str, Any]]:
        rows = await self.repo.list_for_user(
            user_id,
            since=self.retention_cutoff(),
            limit=limit,
            offset=offset,
            unread_only=unread_only,
        )
        return [serialize_notification(notification, read) for notification, read in rows]

    async def create_notification(self, payload: NotificationCreate) -> Dict[str, Any]:
        """
        Create a notification for one user or for everyone ("all").

        Raises:
            NotFoundError: If the addressed user does not exist
        """
        self._log_operation("create_notification", audience=payload.user_id, type=payload.type)

        async def _create():
            user_id = None
            if payload.user_id != BROADCAST_AUDIENCE:
                user_id = int(payload.user_id)
                if not await self.user_repo.exists(user_id):
                    raise NotFoundError("User not found")

            return await self.repo.create(
                {
                    "user_id": user_id,
                    "type": payload.type,
                    "title": payload.title,
                    "message": payload.message,
                    "data": payload.data,
                    "read": payload.read if user_id is not None else False,
                }
            )

        try:
            notification = await self._execute_in_transaction(_create)
        except Exception as error:
            await self._handle_service_error(error, "create notification")

        return serialize_notification(notification, notification.read)

    async def mark_as_read(self, user_id: int, notification_ids: List[int]) -> int:
        self._log_operation("mark_as_read", user_id=user_id, count=len(notification_ids))
        try:
            return await self._execute_in_transaction(
                self.repo.mark_read, user_id, self.retention_cutoff(), notification_ids
            )
        except Exception as error:
            await self._handle_service_error(error, "mark notifications read")

    async def mark_all_as_read(self, user_id: int) -> int:
        self._log_operation("mark_all_as_read", user_id=user_id)
        try:
            return await self._execute_in_transaction(
                self.repo.mark_read, user_id, self.retention_cutoff(), None
            )
        except Exception as error:
            await self._handle_service_error(error, "mark all notifications read")

    async def delete_notification(self, notification_id: int, user_id: int) -> None:
        """
        Delete a personal notification, or hide a broadcast for this user.

        Raises:
            NotFoundError: If the notification is not visible to the user
        """
        self._log_operation("delete_notification", user_id=user_id, notification_id=notification_id)

        async def _delete():
            visible = await self.repo.get_visible(
                notification_id, user_id, self.retention_cutoff()
            )
            if visible is None:
                raise NotFoundError("Notification not found")
            await self.repo.remove_for_user(visible[0], user_id)

        try:
            await self._execute_in_transaction(_delete)
        except Exception as error:
            await self._handle_service_error(error, "delete notification")

    async def purge_expired(self) -> int:
        """Delete notifications past the retention window."""
        cutoff = self.retention_cutoff()
        try:
            deleted = await self._execute_in_transaction(self.repo.delete_older_than, cutoff)
        except Exception as error:
            await self._handle_service_error(error, "purge expired notifications")

        self.logger.info(f"Purged {deleted} notifications older than {cutoff.isoformat()}")
        return deleted
