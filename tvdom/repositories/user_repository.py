"""
User Repository - Specialized data access for User model.

This provides:
1. Lookups by email / username for authentication
2. Atomic maintenance of the denormalized counters
3. Average rating recomputation
"""

from typing import Dict, Iterable, List, Optional

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tvdom.models.rating import Rating
from tvdom.models.user import User
from tvdom.repositories.base import BaseRepository

COUNTER_FIELDS = (
    "follower_count",
    "following_count",
    "total_ratings",
    "watchlist_count",
    "watched_count",
)


class UserRepository(BaseRepository[User]):
    """User-specific repository extending BaseRepository."""

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User)
            .where(func.lower(User.email) == email.lower().strip())
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def find_existing(self, email: str, username: str) -> Optional[User]:
        """Find a user clashing on either unique identity field."""
        result = await self.db.execute(
            select(User).where(
                or_(
                    func.lower(User.email) == email.lower().strip(),
                    User.username == username,
                )
            )
        )
        return result.scalars().first()

    async def get_many(self, user_ids: Iterable[int]) -> Dict[int, User]:
        """Load several users at once, keyed by id."""
        ids = set(user_ids)
        if not ids:
            return {}
        result = await self.db.execute(select(User).where(User.id.in_(ids)))
        return {user.id: user for user in result.scalars().all()}

    async def adjust_counters(self, user_id: int, **deltas: int) -> bool:
        """
        Atomically add deltas to counter columns.

        Negative results are clamped to zero so client/server drift can
        never produce negative counters.

        Usage:
            await repo.adjust_counters(user_id, follower_count=1)

        Returns:
            True if the user row exists
        """
        values = {}
        for field, delta in deltas.items():
            if field not in COUNTER_FIELDS:
                raise ValueError(f"Unknown counter field: {field}")
            if delta == 0:
                continue
            column = getattr(User, field)
            if delta > 0:
                values[field] = column + delta
            else:
                values[field] = case((column + delta > 0, column + delta), else_=0)

        if not values:
            return await self.exists(user_id)

        result = await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def recompute_average_rating(self, user_id: int) -> float:
        """
        Recompute and store the user's average rating from their ratings.

        Rounded to one decimal; 0 when the user has no ratings.
        """
        result = await self.db.execute(
            select(func.avg(Rating.rating)).where(Rating.user_id == user_id)
        )
        average = result.scalar()
        average = round(float(average), 1) if average is not None else 0.0

        await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(average_rating=average)
            .execution_options(synchronize_session=False)
        )
        return average
