"""
Shared enumerations and column helpers for the catalogue models.
"""

from enum import Enum

from sqlalchemy import Enum as SQLEnum


class MediaType(str, Enum):
    """Kinds of media tracked by the catalogue"""

    MOVIE = "movie"
    TV = "tv"


class WatchlistPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class NotificationType(str, Enum):
    """Typed payloads a notification can carry"""

    FOLLOW = "follow"
    UNFOLLOW = "unfollow"
    RATING = "rating"
    REVIEW = "review"
    SYSTEM = "system"
    API_CHANGE = "api_change"


def enum_column(enum_cls) -> SQLEnum:
    """Store enum values (not member names) in a portable VARCHAR column."""
    return SQLEnum(
        enum_cls,
        values_callable=lambda members: [member.value for member in members],
        native_enum=False,
        length=32,
    )
