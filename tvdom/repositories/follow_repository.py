"""
Follow Repository - Data access for the follow graph.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from tvdom.models.social import Follow
from tvdom.models.user import User
from tvdom.repositories.base import BaseRepository


class FollowRepository(BaseRepository[Follow]):
    """Directed follow edges and follower/following listings."""

    def __init__(self, db: AsyncSession):
        super().__init__(Follow, db)

    async def get_edge(self, follower_id: int, following_id: int) -> Optional[Follow]:
        result = await self.db.execute(
            select(Follow).where(
                Follow.follower_id == follower_id,
                Follow.following_id == following_id,
            )
        )
        return result.scalar_one_or_none()

    async def is_following(self, follower_id: int, following_id: int) -> bool:
        return await self.get_edge(follower_id, following_id) is not None

    async def delete_edge(self, follower_id: int, following_id: int) -> bool:
        result = await self.db.execute(
            delete(Follow).where(
                Follow.follower_id == follower_id,
                Follow.following_id == following_id,
            )
        )
        return result.rowcount > 0

    async def list_following(self, user_id: int) -> List[Tuple[Follow, User]]:
        """Edges where user_id is the follower, paired with the followed user."""
        result = await self.db.execute(
            select(Follow, User)
            .join(User, User.id == Follow.following_id)
            .where(Follow.follower_id == user_id)
            .order_by(Follow.created_at.desc(), Follow.id.desc())
        )
        return [(follow, user) for follow, user in result.all()]

    async def list_followers(self, user_id: int) -> List[Tuple[Follow, User]]:
        """Edges where user_id is followed, paired with the follower."""
        result = await self.db.execute(
            select(Follow, User)
            .join(User, User.id == Follow.follower_id)
            .where(Follow.following_id == user_id)
            .order_by(Follow.created_at.desc(), Follow.id.desc())
        )
        return [(follow, user) for follow, user in result.all()]

    async def get_following_ids(self, user_id: int) -> List[int]:
        result = await self.db.execute(
            select(Follow.following_id).where(Follow.follower_id == user_id)
        )
        return list(result.scalars().all())

    async def edges_touching(self, user_id: int) -> List[Follow]:
        """All edges where the user is on either side."""
        result = await self.db.execute(
            select(Follow).where(
                or_(Follow.follower_id == user_id, Follow.following_id == user_id)
            )
        )
        return list(result.scalars().all())

    async def delete_touching(self, user_id: int) -> int:
        result = await self.db.execute(
            delete(Follow).where(
                or_(Follow.follower_id == user_id, Follow.following_id == user_id)
            )
        )
        return result.rowcount

    async def recent(
        self, since: datetime, follower_ids: Optional[List[int]] = None, limit: int = 20
    ) -> List[Tuple[Follow, User, User]]:
        """Edges created since a point in time as (edge, follower, followed), newest first."""
        follower = aliased(User)
        followed = aliased(User)
        query = (
            select(Follow, follower, followed)
            .join(follower, follower.id == Follow.follower_id)
            .join(followed, followed.id == Follow.following_id)
            .where(Follow.created_at >= since)
        )
        if follower_ids is not None:
            if not follower_ids:
                return []
            query = query.where(Follow.follower_id.in_(follower_ids))
        query = query.order_by(Follow.created_at.desc(), Follow.id.desc()).limit(limit)

        result = await self.db.execute(query)
        return [(edge, a, b) for edge, a, b in result.all()]
