"""
Rating models - scores and reviews for media and for people.

Both tables allow exactly one row per (user, subject); re-rating updates
the existing row in place.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tvdom.database import Base
from tvdom.models.enums import MediaType, enum_column


class Rating(Base):
    """A user's 1-10 score (and optional review) for a movie or show."""

    __tablename__ = "ratings"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    media_id: Mapped[str] = mapped_column(String(64))
    media_type: Mapped[MediaType] = mapped_column(enum_column(MediaType))

    rating: Mapped[int] = mapped_column()
    review: Mapped[Optional[str]] = mapped_column(Text)
    is_spoiler: Mapped[bool] = mapped_column(Boolean, default=False)

    # Engagement
    likes: Mapped[int] = mapped_column(default=0)
    dislikes: Mapped[int] = mapped_column(default=0)
    tags: Mapped[List[str]] = mapped_column(JSON, default=list)
    rewatched: Mapped[bool] = mapped_column(Boolean, default=False)
    watched_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # Denormalized media metadata
    media_title: Mapped[str] = mapped_column(String(500))
    media_poster: Mapped[Optional[str]] = mapped_column(String(500))

    __table_args__ = (
        UniqueConstraint("user_id", "media_id", name="unique_user_media_rating"),
        Index("idx_rating_media", "media_id"),
    )

    def __repr__(self) -> str:
        return f"<Rating(id={self.id}, user_id={self.user_id}, media_id='{self.media_id}', rating={self.rating})>"


class PersonRating(Base):
    """A user's 1-10 score for an actor or crew member."""

    __tablename__ = "person_ratings"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    person_id: Mapped[str] = mapped_column(String(64))

    rating: Mapped[int] = mapped_column()
    review: Mapped[Optional[str]] = mapped_column(Text)
    is_spoiler: Mapped[bool] = mapped_column(Boolean, default=False)
    likes: Mapped[int] = mapped_column(default=0)
    dislikes: Mapped[int] = mapped_column(default=0)
    tags: Mapped[List[str]] = mapped_column(JSON, default=list)

    person_name: Mapped[str] = mapped_column(String(255))
    person_image: Mapped[Optional[str]] = mapped_column(String(500))

    __table_args__ = (
        UniqueConstraint("user_id", "person_id", name="unique_user_person_rating"),
    )
