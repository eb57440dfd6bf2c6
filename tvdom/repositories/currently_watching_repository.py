"""
Currently Watching Repository - presence records with staleness expiry.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tvdom.models.library import CurrentlyWatching
from tvdom.models.user import User
from tvdom.repositories.base import UserItemRepository


class CurrentlyWatchingRepository(UserItemRepository[CurrentlyWatching]):
    subject_field = "media_id"
    order_field = "last_active_at"

    def __init__(self, db: AsyncSession):
        super().__init__(CurrentlyWatching, db)

    async def purge_stale(self, cutoff: datetime) -> int:
        """Delete presence rows with no activity since cutoff."""
        result = await self.db.execute(
            delete(CurrentlyWatching).where(CurrentlyWatching.last_active_at < cutoff)
        )
        return result.rowcount

    async def list_with_owners(
        self, user_ids: Optional[List[int]] = None, limit: int = 50
    ) -> List[Tuple[CurrentlyWatching, User]]:
        """
        Presence rows with their owner, most recently active first.

        user_ids None means every user.
        """
        query = select(CurrentlyWatching, User).join(User, User.id == CurrentlyWatching.user_id)
        if user_ids is not None:
            if not user_ids:
                return []
            query = query.where(CurrentlyWatching.user_id.in_(user_ids))
        query = query.order_by(
            CurrentlyWatching.last_active_at.desc(), CurrentlyWatching.id.desc()
        ).limit(limit)

        result = await self.db.execute(query)
        return [(row, user) for row, user in result.all()]
