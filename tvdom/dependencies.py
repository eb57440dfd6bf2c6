"""
FastAPI dependencies for dependency injection.

This provides:
1. Service layer dependency injection (one service per request session)
2. Current-user dependencies
3. Pagination parameters
"""

from typing import Any, Dict

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tvdom.config import settings
from tvdom.core.security import get_current_user_token
from tvdom.database import get_db
from tvdom.services.activity_service import ActivityService
from tvdom.services.auth_service import AuthService
from tvdom.services.currently_watching_service import CurrentlyWatchingService
from tvdom.services.follow_service import FollowService
from tvdom.services.library_service import LibraryService
from tvdom.services.notification_service import NotificationService
from tvdom.services.rating_service import PersonRatingService, RatingService
from tvdom.services.user_service import UserService


# Service Dependencies
def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


def get_rating_service(db: AsyncSession = Depends(get_db)) -> RatingService:
    return RatingService(db)


def get_person_rating_service(db: AsyncSession = Depends(get_db)) -> PersonRatingService:
    return PersonRatingService(db)


def get_library_service(db: AsyncSession = Depends(get_db)) -> LibraryService:
    return LibraryService(db)


def get_follow_service(db: AsyncSession = Depends(get_db)) -> FollowService:
    return FollowService(db)


def get_notification_service(db: AsyncSession = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


def get_activity_service(db: AsyncSession = Depends(get_db)) -> ActivityService:
    return ActivityService(db)


def get_currently_watching_service(
    db: AsyncSession = Depends(get_db),
) -> CurrentlyWatchingService:
    return CurrentlyWatchingService(db)


# Current user dependencies
async def get_current_user(
    token_data: Dict[str, Any] = Depends(get_current_user_token),
) -> Dict[str, Any]:
    """
    Authenticated caller, as decoded from the session token.

    Usage:
        @router.post("")
        async def create(current_user: dict = Depends(get_current_user)):
            ensure_acting_user(current_user, payload.user_id)
    """
    return token_data


# Common pagination dependency
class PaginationParams:
    """Pagination parameters for list endpoints."""

    def __init__(self, limit: int = 20, offset: int = 0):
        self.offset = max(0, offset)
        self.limit = min(max(1, limit), settings.max_page_size)


def get_pagination_params(limit: int = 20, offset: int = 0) -> PaginationParams:
    """Limit is clamped to 1..max_page_size, offset to >= 0."""
    return PaginationParams(limit, offset)


def get_notification_pagination(limit: int = 50, offset: int = 0) -> PaginationParams:
    return PaginationParams(limit, offset)
