"""
Library Service - watchlist, watched history and favorite people.

Business rules:
1. One entry per (user, subject); adding a duplicate is a conflict
2. Marking a watched item again counts a rewatch instead of duplicating
3. A first watch supersedes the pending watchlist entry for the same media
4. watchlist_count / watched_count move in the same transaction as the rows
"""

from typing import Any, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from tvdom.core.exceptions import ConflictError, NotFoundError
from tvdom.database import utcnow
from tvdom.models.library import PersonFavorite, WatchedItem, WatchlistItem
from tvdom.repositories.library_repository import (
    PersonFavoriteRepository,
    WatchedRepository,
    WatchlistRepository,
)
from tvdom.repositories.user_repository import UserRepository
from tvdom.services.base import BaseService


class LibraryService(BaseService):
    def __init__(self, db: AsyncSession, **kwargs):
        super().__init__(db, **kwargs)
        self.user_repo = UserRepository(db)
        self.watchlist_repo = WatchlistRepository(db)
        self.watched_repo = WatchedRepository(db)
        self.favorite_repo = PersonFavoriteRepository(db)

    async def _require_user(self, user_id: int) -> None:
        if not await self.user_repo.exists(user_id):
            raise NotFoundError("User not found")

    # Watchlist

    async def list_watchlist(self, user_id: int) -> List[WatchlistItem]:
        return await self.watchlist_repo.list_for_user(user_id)

    async def add_to_watchlist(self, user_id: int, values: Dict[str, Any]) -> WatchlistItem:
        """
        Raises:
            ConflictError: If the media is already on the watchlist
        """
        media_id = values["media_id"]
        self._log_operation("add_to_watchlist", user_id=user_id, media_id=media_id)

        async def _add():
            await self._require_user(user_id)
            if await self.watchlist_repo.get_for_user(user_id, media_id):
                raise ConflictError("Item already in watchlist")
            item = await self.watchlist_repo.create({"user_id": user_id, **values})
            await self.user_repo.adjust_counters(user_id, watchlist_count=1)
            return item

        try:
            item = await self._execute_in_transaction(_add)
        except Exception as error:
            await self._handle_service_error(error, "add to watchlist")

        await self._invalidate_users(user_id)
        return item

    async def remove_from_watchlist(self, user_id: int, media_id: str) -> None:
        self._log_operation("remove_from_watchlist", user_id=user_id, media_id=media_id)

        async def _remove():
            if await self.watchlist_repo.delete_for_user(user_id, media_id) is None:
                raise NotFoundError("Item not found in watchlist")
            await self.user_repo.adjust_counters(user_id, watchlist_count=-1)

        try:
            await self._execute_in_transaction(_remove)
        except Exception as error:
            await self._handle_service_error(error, "remove from watchlist")

        await self._invalidate_users(user_id)

    # Watched

    async def list_watched(self, user_id: int) -> List[WatchedItem]:
        return await self.watched_repo.list_for_user(user_id)

    async def mark_as_watched(self, user_id: int, values: Dict[str, Any]) -> Dict[str, Any]:
        """
        Record a watch.

        Returns:
            Dict with the item, is_rewatch, and removed_from_watchlist
        """
        media_id = values["media_id"]
        self._log_operation("mark_as_watched", user_id=user_id, media_id=media_id)

        async def _mark():
            await self._require_user(user_id)
            existing = await self.watched_repo.get_for_user(user_id, media_id)
            deltas = {}
            if existing is not None:
                existing.rewatch_count += 1
                existing.last_rewatched_at = utcnow()
                if values.get("rating") is not None:
                    existing.rating = values["rating"]
                if values.get("is_favorite") is not None:
                    existing.is_favorite = values["is_favorite"]
                await self.db.flush()
                await self.db.refresh(existing)
                item = existing
            else:
                item_values = {k: v for k, v in values.items() if v is not None}
                item = await self.watched_repo.create({"user_id": user_id, **item_values})
                deltas["watched_count"] = 1

            # Any watch supersedes a pending watchlist entry, rewatches included
            removed = await self.watchlist_repo.delete_for_user(user_id, media_id)
            if removed is not None:
                deltas["watchlist_count"] = -1
            if deltas:
                await self.user_repo.adjust_counters(user_id, **deltas)

            return {
                "item": item,
                "is_rewatch": existing is not None,
                "removed_from_watchlist": removed is not None,
            }

        try:
            result = await self._execute_in_transaction(_mark)
        except Exception as error:
            await self._handle_service_error(error, "mark as watched")

        await self._invalidate_users(user_id)
        return result

    async def remove_from_watched(self, user_id: int, media_id: str) -> None:
        self._log_operation("remove_from_watched", user_id=user_id, media_id=media_id)

        async def _remove():
            if await self.watched_repo.delete_for_user(user_id, media_id) is None:
                raise NotFoundError("Item not found in watched list")
            await self.user_repo.adjust_counters(user_id, watched_count=-1)

        try:
            await self._execute_in_transaction(_remove)
        except Exception as error:
            await self._handle_service_error(error, "remove from watched")

        await self._invalidate_users(user_id)

    # Favorite people

    async def list_person_favorites(self, user_id: int) -> List[PersonFavorite]:
        return await self.favorite_repo.list_for_user(user_id)

    async def add_person_favorite(self, user_id: int, values: Dict[str, Any]) -> PersonFavorite:
        person_id = values["person_id"]
        self._log_operation("add_person_favorite", user_id=user_id, person_id=person_id)

        async def _add():
            await self._require_user(user_id)
            if await self.favorite_repo.get_for_user(user_id, person_id):
                raise ConflictError("Person already in favorites")
            return await self.favorite_repo.create({"user_id": user_id, **values})

        try:
            return await self._execute_in_transaction(_add)
        except Exception as error:
            await self._handle_service_error(error, "add person favorite")

    async def remove_person_favorite(self, user_id: int, person_id: str) -> None:
        self._log_operation("remove_person_favorite", user_id=user_id, person_id=person_id)

        async def _remove():
            if await self.favorite_repo.delete_for_user(user_id, person_id) is None:
                raise NotFoundError("Person not found in favorites")

        try:
            await self._execute_in_transaction(_remove)
        except Exception as error:
            await self._handle_service_error(error, "remove person favorite")
