"""
User Service - Business logic for user accounts.

This provides:
1. Account creation and credential checks
2. Cached profile reads
3. Profile updates and image uploads
4. Account deletion with cascading cleanup
"""

from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from tvdom.core.exceptions import ConflictError, NotFoundError, ValidationError
from tvdom.core.security import security_manager
from tvdom.core.storage import S3StorageService, storage_service
from tvdom.database import utcnow
from tvdom.models.user import User
from tvdom.repositories.currently_watching_repository import CurrentlyWatchingRepository
from tvdom.repositories.follow_repository import FollowRepository
from tvdom.repositories.library_repository import (
    PersonFavoriteRepository,
    WatchedRepository,
    WatchlistRepository,
)
from tvdom.repositories.notification_repository import NotificationRepository
from tvdom.repositories.rating_repository import PersonRatingRepository, RatingRepository
from tvdom.repositories.user_repository import UserRepository
from tvdom.schemas.users import UserResponse
from tvdom.services.base import BaseService

PROFILE_CACHE_NAMESPACE = "users"

IMAGE_FIELDS = {"avatar": "avatar_url", "banner": "banner_url"}


class UserService(BaseService):
    """
    User service handling account-level business logic.

    - Coordinates every per-user repository on deletion
    - Serves profiles through the Redis cache
    """

    def __init__(self, db: AsyncSession, storage: Optional[S3StorageService] = None, **kwargs):
        super().__init__(db, **kwargs)
        self.user_repo = UserRepository(db)
        self.storage = storage or storage_service

    async def create_user(
        self, username: str, email: str, display_name: str, password: str
    ) -> User:
        """
        Create a new user.

        Business rules:
        1. Email and username must be unique
        2. Password is at least 8 characters and stored hashed
        3. Counters start at zero

        Raises:
            ValidationError: If the password is too short
            ConflictError: If email or username is taken
        """
        self._log_operation("create_user", username=username)

        if len(password) < 8:
            raise ValidationError("Password must be at least 8 characters")

        existing_user = await self.user_repo.find_existing(email, username)
        if existing_user:
            if existing_user.email.lower() == email.lower().strip():
                raise ConflictError("User with this email already exists")
            raise ConflictError("Username is already taken")

        user = await self.user_repo.create(
            {
                "username": username,
                "email": email.lower().strip(),
                "display_name": display_name.strip(),
                "hashed_password": security_manager.create_password_hash(password),
                "is_active": True,
                "is_verified": False,
            }
        )
        self.logger.info(f"User created successfully: {user.id}")
        return user

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Check credentials.

        Returns:
            The user when the password matches and the account is active
        """
        user = await self.user_repo.get_by_email(email)
        if not user or not user.is_active or not user.hashed_password:
            return None
        if not security_manager.verify_password(password, user.hashed_password):
            return None

        user.last_active_at = utcnow()
        await self.db.flush()
        return user

    async def get_user(self, user_id: int) -> User:
        user = await self.user_repo.get(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    async def get_profile(self, user_id: int) -> Dict[str, Any]:
        """
        Public profile, served from the hot cache layer when available.
        """
        cache_key = f"user_profile:{user_id}"
        cached = await self.invalidator.cache.get(cache_key, PROFILE_CACHE_NAMESPACE)
        if cached is not None:
            return cached

        user = await self.get_user(user_id)
        profile = UserResponse.model_validate(user).model_dump(mode="json")
        await self.invalidator.cache.set(
            cache_key, profile, namespace=PROFILE_CACHE_NAMESPACE, cache_layer="hot"
        )
        return profile

    async def update_profile(self, user_id: int, changes: Dict[str, Any]) -> User:
        """Apply profile field changes; None values are ignored."""
        self._log_operation("update_profile", user_id=user_id, fields=",".join(changes))

        async def _update():
            updates = {k: v for k, v in changes.items() if v is not None}
            user = await self.user_repo.update(user_id, updates)
            if not user:
                raise NotFoundError("User not found")
            return user

        try:
            user = await self._execute_in_transaction(_update)
        except Exception as error:
            await self._handle_service_error(error, "update profile")

        await self.invalidator.invalidate_for_event("user_update", user_id=user_id)
        return user

    async def upload_image(
        self, user_id: int, kind: str, content: bytes, content_type: Optional[str]
    ) -> User:
        """
        Upload an avatar or banner and store only its URL on the user.
        """
        field = IMAGE_FIELDS.get(kind)
        if field is None:
            raise ValidationError(f"Unknown image kind: {kind}")

        await self.get_user(user_id)
        url = await self.storage.upload_image(user_id, kind, content, content_type)
        return await self.update_profile(user_id, {field: url})

    async def delete_user(self, user_id: int) -> None:
        """
        Delete an account and everything it owns, in one transaction.

        Users on the other side of the account's follow edges get their
        follower/following counters decremented.
        """
        self._log_operation("delete_user", user_id=user_id)
        affected_users = []

        async def _delete():
            if not await self.user_repo.exists(user_id):
                raise NotFoundError("User not found")

            follow_repo = FollowRepository(self.db)
            for edge in await follow_repo.edges_touching(user_id):
                if edge.follower_id == user_id:
                    await self.user_repo.adjust_counters(edge.following_id, follower_count=-1)
                    affected_users.append(edge.following_id)
                else:
                    await self.user_repo.adjust_counters(edge.follower_id, following_count=-1)
                    affected_users.append(edge.follower_id)
            await follow_repo.delete_touching(user_id)

            for repo_class in (
                RatingRepository,
                PersonRatingRepository,
                WatchlistRepository,
                WatchedRepository,
                PersonFavoriteRepository,
                CurrentlyWatchingRepository,
            ):
                await repo_class(self.db).delete_all_for_user(user_id)
            await NotificationRepository(self.db).delete_all_for_user(user_id)

            await self.user_repo.delete(user_id)

        try:
            await self._execute_in_transaction(_delete)
        except Exception as error:
            await self._handle_service_error(error, "delete user")

        await self.invalidator.invalidate_for_event("user_delete", user_id=user_id)
        await self._invalidate_users(*affected_users)
        self.logger.info(f"User {user_id} deleted, {len(affected_users)} related counters updated")
