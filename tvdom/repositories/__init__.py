"""
Repository layer - Data access patterns for the application.

This module exports all repositories for easy importing:
- BaseRepository / UserItemRepository: Generic CRUD operations
- UserRepository: Users and their denormalized counters
- Rating, library, follow, notification and presence repositories
"""

from .base import BaseRepository, UserItemRepository
from .currently_watching_repository import CurrentlyWatchingRepository
from .follow_repository import FollowRepository
from .library_repository import PersonFavoriteRepository, WatchedRepository, WatchlistRepository
from .notification_repository import NotificationRepository
from .rating_repository import PersonRatingRepository, RatingRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "UserItemRepository",
    "UserRepository",
    "RatingRepository",
    "PersonRatingRepository",
    "WatchlistRepository",
    "WatchedRepository",
    "PersonFavoriteRepository",
    "FollowRepository",
    "NotificationRepository",
    "CurrentlyWatchingRepository",
]
