"""
Rating Repository - Data access for media and person ratings.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tvdom.models.rating import PersonRating, Rating
from tvdom.models.user import User
from tvdom.repositories.base import UserItemRepository


class RatingRepository(UserItemRepository[Rating]):
    subject_field = "media_id"
    order_field = "created_at"

    def __init__(self, db: AsyncSession):
        super().__init__(Rating, db)

    async def upsert(
        self, user_id: int, media_id: str, values: Dict[str, Any]
    ) -> Tuple[Rating, bool]:
        """
        Insert a rating or overwrite the existing one for (user, media).

        Returns:
            (rating, created) - created is False when an existing row was updated
        """
        existing = await self.get_for_user(user_id, media_id)
        if existing is not None:
            for field, value in values.items():
                setattr(existing, field, value)
            await self.db.flush()
            await self.db.refresh(existing)
            return existing, False

        rating = await self.create({"user_id": user_id, "media_id": media_id, **values})
        return rating, True

    async def recent(
        self, since: datetime, user_ids: Optional[List[int]] = None, limit: int = 20
    ) -> List[Tuple[Rating, User]]:
        """Ratings created since a point in time, with their author, newest first."""
        query = (
            select(Rating, User)
            .join(User, User.id == Rating.user_id)
            .where(Rating.created_at >= since)
        )
        if user_ids is not None:
            if not user_ids:
                return []
            query = query.where(Rating.user_id.in_(user_ids))
        query = query.order_by(Rating.created_at.desc(), Rating.id.desc()).limit(limit)

        result = await self.db.execute(query)
        return [(rating, user) for rating, user in result.all()]


class PersonRatingRepository(UserItemRepository[PersonRating]):
    subject_field = "person_id"
    order_field = "created_at"

    def __init__(self, db: AsyncSession):
        super().__init__(PersonRating, db)

    async def upsert(
        self, user_id: int, person_id: str, values: Dict[str, Any]
    ) -> Tuple[PersonRating, bool]:
        existing: Optional[PersonRating] = await self.get_for_user(user_id, person_id)
        if existing is not None:
            for field, value in values.items():
                setattr(existing, field, value)
            await self.db.flush()
            await self.db.refresh(existing)
            return existing, False

        rating = await self.create({"user_id": user_id, "person_id": person_id, **values})
        return rating, True
