"""
Rating Service - Business logic for media and person ratings.

This provides:
1. Upsert of one rating per (user, media) and per (user, person)
2. total_ratings maintenance in the same transaction
3. average_rating recomputation after every media rating change
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from tvdom.core.exceptions import NotFoundError
from tvdom.models.rating import PersonRating, Rating
from tvdom.repositories.rating_repository import PersonRatingRepository, RatingRepository
from tvdom.repositories.user_repository import UserRepository
from tvdom.services.base import BaseService


class RatingService(BaseService):
    """
    Ratings for media. Re-rating overwrites in place and does not count
    twice towards total_ratings.
    """

    def __init__(self, db: AsyncSession, **kwargs):
        super().__init__(db, **kwargs)
        self.user_repo = UserRepository(db)
        self.rating_repo = RatingRepository(db)

    async def list_ratings(self, user_id: int) -> List[Rating]:
        return await self.rating_repo.list_for_user(user_id)

    async def rate_media(
        self, user_id: int, media_id: str, values: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Create or overwrite a rating.

        Returns:
            Dict with the rating, whether it was created, and the owner's
            refreshed average_rating and total_ratings
        """
        self._log_operation("rate_media", user_id=user_id, media_id=media_id)

        async def _rate():
            if not await self.user_repo.exists(user_id):
                raise NotFoundError("User not found")

            rating, created = await self.rating_repo.upsert(user_id, media_id, values)
            if created:
                await self.user_repo.adjust_counters(user_id, total_ratings=1)
            average = await self.user_repo.recompute_average_rating(user_id)
            total = await self.rating_repo.count({"user_id": user_id})
            return {
                "rating": rating,
                "created": created,
                "average_rating": average,
                "total_ratings": total,
            }

        try:
            result = await self._execute_in_transaction(_rate)
        except Exception as error:
            await self._handle_service_error(error, "rate media")

        await self._invalidate_users(user_id)
        return result

    async def delete_rating(self, user_id: int, media_id: str) -> Dict[str, Any]:
        """
        Remove a rating.

        Raises:
            NotFoundError: If the user has not rated this media
        """
        self._log_operation("delete_rating", user_id=user_id, media_id=media_id)

        async def _delete():
            deleted = await self.rating_repo.delete_for_user(user_id, media_id)
            if deleted is None:
                raise NotFoundError("Rating not found")
            await self.user_repo.adjust_counters(user_id, total_ratings=-1)
            average = await self.user_repo.recompute_average_rating(user_id)
            return {"average_rating": average}

        try:
            result = await self._execute_in_transaction(_delete)
        except Exception as error:
            await self._handle_service_error(error, "delete rating")

        await self._invalidate_users(user_id)
        return result


class PersonRatingService(BaseService):
    """Ratings for actors and crew. They do not affect the media counters."""

    def __init__(self, db: AsyncSession, **kwargs):
        super().__init__(db, **kwargs)
        self.user_repo = UserRepository(db)
        self.repo = PersonRatingRepository(db)

    async def list_ratings(
        self, user_id: int, person_id: Optional[str] = None
    ) -> List[PersonRating]:
        return await self.repo.list_for_user(user_id, person_id)

    async def rate_person(
        self, user_id: int, person_id: str, values: Dict[str, Any]
    ) -> Dict[str, Any]:
        self._log_operation("rate_person", user_id=user_id, person_id=person_id)

        async def _rate():
            if not await self.user_repo.exists(user_id):
                raise NotFoundError("User not found")
            rating, created = await self.repo.upsert(user_id, person_id, values)
            return {"rating": rating, "created": created}

        try:
            return await self._execute_in_transaction(_rate)
        except Exception as error:
            await self._handle_service_error(error, "rate person")

    async def delete_rating(self, user_id: int, person_id: str) -> None:
        self._log_operation("delete_person_rating", user_id=user_id, person_id=person_id)

        async def _delete():
            if await self.repo.delete_for_user(user_id, person_id) is None:
                raise NotFoundError("Person rating not found")

        try:
            await self._execute_in_transaction(_delete)
        except Exception as error:
            await self._handle_service_error(error, "delete person rating")
