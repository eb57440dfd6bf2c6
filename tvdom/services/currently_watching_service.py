"""
Currently Watching Service - ephemeral "watching now" presence.

Rows with no activity for the staleness window are purged on every read,
and again by the hourly maintenance task.
"""

from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from tvdom.config import settings
from tvdom.core.exceptions import NotFoundError
from tvdom.database import utcnow
from tvdom.models.library import CurrentlyWatching
from tvdom.repositories.currently_watching_repository import CurrentlyWatchingRepository
from tvdom.repositories.follow_repository import FollowRepository
from tvdom.repositories.user_repository import UserRepository
from tvdom.services.base import BaseService

MAX_PRESENCE_ROWS = 50


class CurrentlyWatchingService(BaseService):
    def __init__(self, db: AsyncSession, **kwargs):
        super().__init__(db, **kwargs)
        self.repo = CurrentlyWatchingRepository(db)
        self.follow_repo = FollowRepository(db)
        self.user_repo = UserRepository(db)

    def stale_cutoff(self):
        return utcnow() - timedelta(hours=settings.currently_watching_stale_hours)

    async def purge_stale(self) -> int:
        try:
            purged = await self._execute_in_transaction(self.repo.purge_stale, self.stale_cutoff())
        except Exception as error:
            await self._handle_service_error(error, "purge stale presence")

        if purged:
            self.logger.info(f"Purged {purged} stale currently-watching rows")
        return purged

    async def list_presence(
        self, user_id: Optional[int] = None, following: bool = False
    ) -> List[Dict[str, Any]]:
        """
        Presence rows with their owner.

        With following=True, rows of the users user_id follows; with only
        user_id, that user's rows; with neither, everyone's.
        """
        await self.purge_stale()

        if user_id is not None and following:
            owner_ids = await self.follow_repo.get_following_ids(user_id)
        elif user_id is not None:
            owner_ids = [user_id]
        else:
            owner_ids = None

        pairs = await self.repo.list_with_owners(owner_ids, limit=MAX_PRESENCE_ROWS)
        return [{"row": row, "user": owner} for row, owner in pairs]

    async def update_presence(self, user_id: int, values: Dict[str, Any]) -> CurrentlyWatching:
        """Upsert the row for (user, media) and bump last_active_at."""
        media_id = values["media_id"]
        self._log_operation("update_presence", user_id=user_id, media_id=media_id)

        async def _upsert():
            if not await self.user_repo.exists(user_id):
                raise NotFoundError("User not found")

            now = utcnow()
            row = await self.repo.get_for_user(user_id, media_id)
            if row is None:
                return await self.repo.create(
                    {"user_id": user_id, **values, "started_at": now, "last_active_at": now}
                )
            for field, value in values.items():
                setattr(row, field, value)
            row.last_active_at = now
            await self.db.flush()
            await self.db.refresh(row)
            return row

        try:
            return await self._execute_in_transaction(_upsert)
        except Exception as error:
            await self._handle_service_error(error, "update currently watching")

    async def stop_watching(self, user_id: int, media_id: str) -> None:
        """Remove the presence row; stopping twice is not an error."""
        self._log_operation("stop_watching", user_id=user_id, media_id=media_id)
        try:
            await self._execute_in_transaction(self.repo.delete_for_user, user_id, media_id)
        except Exception as error:
            await self._handle_service_error(error, "stop watching")
