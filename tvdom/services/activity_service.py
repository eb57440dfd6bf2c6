"""
Activity Service - the social feed.

The "following" feed shows ratings and follows by people the user follows
over the last 7 days; the "all" feed shows everyone's over the last 24 hours.
"""

from datetime import timedelta
from typing import Any, Dict, List, Literal

from sqlalchemy.ext.asyncio import AsyncSession

from tvdom.config import settings
from tvdom.database import utcnow
from tvdom.repositories.follow_repository import FollowRepository
from tvdom.repositories.rating_repository import RatingRepository
from tvdom.services.base import BaseService

FeedType = Literal["following", "all"]


class ActivityService(BaseService):
    def __init__(self, db: AsyncSession, **kwargs):
        super().__init__(db, **kwargs)
        self.rating_repo = RatingRepository(db)
        self.follow_repo = FollowRepository(db)

    async def get_feed(
        self, user_id: int, feed_type: FeedType = "following", limit: int = 20, offset: int = 0
    ) -> List[Dict[str, Any]]:
        """
        Merge recent ratings and follows, newest first, then page.

        Each source is read up to offset + limit rows so the merged page
        is complete.
        """
        now = utcnow()
        window = limit + offset

        if feed_type == "following":
            since = now - timedelta(days=settings.activity_following_window_days)
            actor_ids = await self.follow_repo.get_following_ids(user_id)
        else:
            since = now - timedelta(hours=settings.activity_public_window_hours)
            actor_ids = None

        ratings = await self.rating_repo.recent(since, actor_ids, limit=window)
        follows = await self.follow_repo.recent(since, actor_ids, limit=window)

        activities = [
            {
                "id": f"rating-{rating.id}",
                "type": "rating",
                "user_id": author.id,
                "actor_name": author.display_name,
                "actor_avatar": author.avatar_url,
                "media_id": rating.media_id,
                "media_title": rating.media_title,
                "media_type": rating.media_type,
                "rating": rating.rating,
                "review": rating.review,
                "created_at": rating.created_at,
            }
            for rating, author in ratings
        ]
        activities.extend(
            {
                "id": f"follow-{edge.id}",
                "type": "follow",
                "user_id": follower.id,
                "actor_name": follower.display_name,
                "actor_avatar": follower.avatar_url,
                "target_id": followed.id,
                "target_name": followed.display_name,
                "target_avatar": followed.avatar_url,
                "created_at": edge.created_at,
            }
            for edge, follower, followed in follows
        )

        activities.sort(key=lambda activity: activity["created_at"], reverse=True)
        return activities[offset:offset + limit]
