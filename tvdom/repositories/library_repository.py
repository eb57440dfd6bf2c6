"""
Library Repositories - watchlist, watched history and favorite people.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from tvdom.models.library import PersonFavorite, WatchedItem, WatchlistItem
from tvdom.repositories.base import UserItemRepository


class WatchlistRepository(UserItemRepository[WatchlistItem]):
    subject_field = "media_id"
    order_field = "added_at"

    def __init__(self, db: AsyncSession):
        super().__init__(WatchlistItem, db)


class WatchedRepository(UserItemRepository[WatchedItem]):
    subject_field = "media_id"
    order_field = "watched_at"

    def __init__(self, db: AsyncSession):
        super().__init__(WatchedItem, db)


class PersonFavoriteRepository(UserItemRepository[PersonFavorite]):
    subject_field = "person_id"
    order_field = "added_at"

    def __init__(self, db: AsyncSession):
        super().__init__(PersonFavorite, db)
