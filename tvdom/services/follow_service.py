"""
Follow Service - the follow graph and its counters.

Following someone touches three tables: the edge, both users' counters,
and a notification for the followed user. All of it happens in one
database transaction, so a failure at any step leaves nothing behind.
"""

from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from tvdom.core.exceptions import ConflictError, NotFoundError, ValidationError
from tvdom.models.enums import NotificationType
from tvdom.models.social import Follow
from tvdom.models.user import User
from tvdom.repositories.follow_repository import FollowRepository
from tvdom.repositories.notification_repository import NotificationRepository
from tvdom.repositories.user_repository import UserRepository
from tvdom.services.base import BaseService


class FollowService(BaseService):
    def __init__(self, db: AsyncSession, **kwargs):
        super().__init__(db, **kwargs)
        self.user_repo = UserRepository(db)
        self.follow_repo = FollowRepository(db)
        self.notification_repo = NotificationRepository(db)

    async def list_following(self, user_id: int) -> List[Tuple[Follow, User]]:
        return await self.follow_repo.list_following(user_id)

    async def list_followers(self, user_id: int) -> List[Tuple[Follow, User]]:
        return await self.follow_repo.list_followers(user_id)

    async def is_following(self, follower_id: int, following_id: int) -> bool:
        return await self.follow_repo.is_following(follower_id, following_id)

    def _actor_data(self, actor: User, follow: Optional[Follow] = None) -> dict:
        data = {
            "actor_id": actor.id,
            "actor_name": actor.display_name,
            "actor_avatar": actor.avatar_url,
        }
        if follow is not None:
            data["follow_id"] = follow.id
        return data

    async def follow_user(self, follower_id: int, following_id: int) -> Follow:
        """
        Create a follow edge.

        Raises:
            ValidationError: On self-follow
            ConflictError: If the edge already exists, including a concurrent
                insert caught by the unique constraint
            NotFoundError: If either user does not exist
        """
        self._log_operation("follow_user", follower_id=follower_id, following_id=following_id)

        if follower_id == following_id:
            raise ValidationError("Cannot follow yourself")

        async def _follow():
            if await self.follow_repo.is_following(follower_id, following_id):
                raise ConflictError("Already following this user")

            users = await self.user_repo.get_many([follower_id, following_id])
            follower = users.get(follower_id)
            if follower is None or following_id not in users:
                raise NotFoundError("User not found")

            follow = await self.follow_repo.create(
                {"follower_id": follower_id, "following_id": following_id}
            )
            await self.user_repo.adjust_counters(follower_id, following_count=1)
            await self.user_repo.adjust_counters(following_id, follower_count=1)

            await self.notification_repo.create(
                {
                    "user_id": following_id,
                    "type": NotificationType.FOLLOW,
                    "title": "New Follower",
                    "message": f"{follower.display_name} started following you",
                    "data": self._actor_data(follower, follow),
                    "read": False,
                }
            )
            return follow

        try:
            follow = await self._execute_in_transaction(_follow)
        except Exception as error:
            await self._handle_service_error(error, "follow user")

        await self._invalidate_users(follower_id, following_id)
        self.logger.info(f"User {follower_id} now follows {following_id}")
        return follow

    async def unfollow_user(self, follower_id: int, following_id: int) -> None:
        """
        Remove a follow edge; counters are decremented floored at zero.

        Raises:
            NotFoundError: If the edge does not exist
        """
        self._log_operation("unfollow_user", follower_id=follower_id, following_id=following_id)

        async def _unfollow():
            if not await self.follow_repo.delete_edge(follower_id, following_id):
                raise NotFoundError("Follow relationship not found")

            await self.user_repo.adjust_counters(follower_id, following_count=-1)
            await self.user_repo.adjust_counters(following_id, follower_count=-1)

            follower = await self.user_repo.get(follower_id)
            if follower is not None:
                await self.notification_repo.create(
                    {
                        "user_id": following_id,
                        "type": NotificationType.UNFOLLOW,
                        "title": "Unfollowed",
                        "message": f"{follower.display_name} unfollowed you",
                        "data": self._actor_data(follower),
                        "read": False,
                    }
                )

        try:
            await self._execute_in_transaction(_unfollow)
        except Exception as error:
            await self._handle_service_error(error, "unfollow user")

        await self._invalidate_users(follower_id, following_id)
        self.logger.info(f"User {follower_id} unfollowed {following_id}")
