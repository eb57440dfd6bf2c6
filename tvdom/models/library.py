"""
Library models - a user's lists of media and people.

This handles:
1. Watchlist (media the user intends to watch)
2. Watched history with rewatch tracking
3. Favorite people
4. Currently-watching presence
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tvdom.database import Base, utcnow
from tvdom.models.enums import MediaType, WatchlistPriority, enum_column


class WatchlistItem(Base):
    """
    Media a user wants to watch.

    Carries the media title, poster, year and genres so lists render
    without a metadata lookup.
    """

    __tablename__ = "watchlist_items"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    media_id: Mapped[str] = mapped_column(String(64))
    media_type: Mapped[MediaType] = mapped_column(enum_column(MediaType))
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    priority: Mapped[WatchlistPriority] = mapped_column(
        enum_column(WatchlistPriority), default=WatchlistPriority.MEDIUM
    )
    notes: Mapped[Optional[str]] = mapped_column(Text)
    reminder_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    media_title: Mapped[str] = mapped_column(String(500))
    media_poster: Mapped[Optional[str]] = mapped_column(String(500))
    media_year: Mapped[Optional[int]] = mapped_column()
    media_genres: Mapped[List[str]] = mapped_column(JSON, default=list)

    __table_args__ = (
        UniqueConstraint("user_id", "media_id", name="unique_user_watchlist_media"),
    )


class WatchedItem(Base):
    """
    Media a user has watched.

    A repeat watch bumps rewatch_count instead of adding a row.
    """

    __tablename__ = "watched_items"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    media_id: Mapped[str] = mapped_column(String(64))
    media_type: Mapped[MediaType] = mapped_column(enum_column(MediaType))
    watched_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    rating: Mapped[Optional[int]] = mapped_column()
    is_favorite: Mapped[bool] = mapped_column(Boolean, default=False)
    rewatch_count: Mapped[int] = mapped_column(default=0)
    last_rewatched_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    media_title: Mapped[str] = mapped_column(String(500))
    media_poster: Mapped[Optional[str]] = mapped_column(String(500))
    season_number: Mapped[Optional[int]] = mapped_column()
    episode_number: Mapped[Optional[int]] = mapped_column()
    progress: Mapped[int] = mapped_column(default=100)  # percent

    __table_args__ = (
        UniqueConstraint("user_id", "media_id", name="unique_user_watched_media"),
    )


class PersonFavorite(Base):
    __tablename__ = "person_favorites"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    person_id: Mapped[str] = mapped_column(String(64))
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    person_name: Mapped[str] = mapped_column(String(255))
    person_image: Mapped[Optional[str]] = mapped_column(String(500))
    person_known_for: Mapped[Optional[str]] = mapped_column(String(100))

    __table_args__ = (
        UniqueConstraint("user_id", "person_id", name="unique_user_person_favorite"),
    )


class CurrentlyWatching(Base):
    """
    Presence record: what a user is watching right now.

    Rows whose last_active_at is older than the staleness window are
    purged on the next read.
    """

    __tablename__ = "currently_watching"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    media_id: Mapped[str] = mapped_column(String(64))
    media_type: Mapped[MediaType] = mapped_column(enum_column(MediaType))
    media_title: Mapped[str] = mapped_column(String(500))
    media_poster: Mapped[Optional[str]] = mapped_column(String(500))
    season: Mapped[Optional[int]] = mapped_column()
    episode: Mapped[Optional[int]] = mapped_column()
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    last_active_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    __table_args__ = (
        UniqueConstraint("user_id", "media_id", name="unique_user_currently_watching"),
        Index("idx_currently_watching_active", "last_active_at"),
    )
