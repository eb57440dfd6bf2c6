"""
Notification Repository - Data access for notifications and receipts.

Personal notifications carry their own read flag. Broadcast notifications
(user_id NULL) are shared rows, so each user's read/dismissed state lives in
NotificationReceipt and is joined in at query time.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import and_, case, delete, false, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tvdom.models.social import Notification, NotificationReceipt
from tvdom.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    def __init__(self, db: AsyncSession):
        super().__init__(Notification, db)

    def _visible_query(self, user_id: int, since: datetime):
        """
        Select (notification, effective_read) visible to user_id.

        Visible means addressed to the user, or a broadcast the user has not
        dismissed, and created inside the retention window.
        """
        receipt = NotificationReceipt
        effective_read = case(
            (Notification.user_id.is_(None), func.coalesce(receipt.read, false())),
            else_=Notification.read,
        ).label("effective_read")

        query = (
            select(Notification, effective_read)
            .outerjoin(
                receipt,
                and_(receipt.notification_id == Notification.id, receipt.user_id == user_id),
            )
            .where(
                Notification.created_at >= since,
                or_(
                    Notification.user_id == user_id,
                    and_(
                        Notification.user_id.is_(None),
                        func.coalesce(receipt.dismissed, false()).is_(False),
                    ),
                ),
            )
        )
        return query, effective_read

    async def list_for_user(
        self,
        user_id: int,
        since: datetime,
        limit: int = 50,
        offset: int = 0,
        unread_only: bool = False,
    ) -> List[Tuple[Notification, bool]]:
        """Newest first, paired with the read state as seen by user_id."""
        query, effective_read = self._visible_query(user_id, since)
        if unread_only:
            query = query.where(effective_read.is_(False))
        query = (
            query.order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(offset)
            .limit(limit)
        )

        result = await self.db.execute(query)
        return [(notification, bool(read)) for notification, read in result.all()]

    async def get_visible(
        self, notification_id: int, user_id: int, since: datetime
    ) -> Optional[Tuple[Notification, bool]]:
        query, _ = self._visible_query(user_id, since)
        result = await self.db.execute(query.where(Notification.id == notification_id))
        row = result.first()
        if row is None:
            return None
        return row[0], bool(row[1])

    async def _upsert_receipt(self, notification_id: int, user_id: int, **values) -> None:
        result = await self.db.execute(
            select(NotificationReceipt).where(
                NotificationReceipt.notification_id == notification_id,
                NotificationReceipt.user_id == user_id,
            )
        )
        receipt = result.scalar_one_or_none()
        if receipt is None:
            receipt = NotificationReceipt(
                notification_id=notification_id, user_id=user_id, **values
            )
            self.db.add(receipt)
        else:
            for field, value in values.items():
                setattr(receipt, field, value)
        await self.db.flush()

    async def mark_read(
        self, user_id: int, since: datetime, notification_ids: Optional[Iterable[int]] = None
    ) -> int:
        """
        Mark notifications read for user_id.

        With notification_ids None every visible unread notification is marked.

        Returns:
            Number of notifications that went from unread to read
        """
        query, effective_read = self._visible_query(user_id, since)
        query = query.where(effective_read.is_(False))
        if notification_ids is not None:
            ids = list(notification_ids)
            if not ids:
                return 0
            query = query.where(Notification.id.in_(ids))

        result = await self.db.execute(query)
        unread = [notification for notification, _ in result.all()]

        personal_ids = [n.id for n in unread if not n.is_broadcast]
        if personal_ids:
            await self.db.execute(
                update(Notification)
                .where(Notification.id.in_(personal_ids))
                .values(read=True)
                .execution_options(synchronize_session=False)
            )
        for notification in unread:
            if notification.is_broadcast:
                await self._upsert_receipt(notification.id, user_id, read=True)

        return len(unread)

    async def remove_for_user(self, notification: Notification, user_id: int) -> None:
        """Delete a personal notification, or dismiss a broadcast for this user only."""
        if notification.is_broadcast:
            await self._upsert_receipt(notification.id, user_id, dismissed=True)
            return
        await self.db.execute(delete(Notification).where(Notification.id == notification.id))

    async def delete_older_than(self, cutoff: datetime) -> int:
        expired_ids = select(Notification.id).where(Notification.created_at < cutoff)
        await self.db.execute(
            delete(NotificationReceipt).where(
                NotificationReceipt.notification_id.in_(expired_ids)
            )
        )
        result = await self.db.execute(
            delete(Notification).where(Notification.created_at < cutoff)
        )
        return result.rowcount

    async def delete_all_for_user(self, user_id: int) -> int:
        """Remove a user's personal notifications and broadcast receipts."""
        own_ids = select(Notification.id).where(Notification.user_id == user_id)
        await self.db.execute(
            delete(NotificationReceipt).where(
                or_(
                    NotificationReceipt.user_id == user_id,
                    NotificationReceipt.notification_id.in_(own_ids),
                )
            )
        )
        result = await self.db.execute(
            delete(Notification).where(Notification.user_id == user_id)
        )
        return result.rowcount
