"""
User model - Represents users in the system.

This model handles:
1. Authentication data (email, password hash)
2. Public profile information
3. Denormalized counters for followers, ratings and lists
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tvdom.database import Base, utcnow


class User(Base):
    """
    User model representing system users.

    Design decisions:
    - Username and email both unique (login by email, profile URLs by username)
    - Counters are denormalized and maintained by atomic increments in the
      same transaction as the mutation that changes them
    - JSON list for favorite genres
    """

    __tablename__ = "users"

    # Authentication
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    hashed_password: Mapped[Optional[str]] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    is_private: Mapped[bool] = mapped_column(Boolean, default=False)

    # Profile
    display_name: Mapped[str] = mapped_column(String(100))
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500))
    banner_url: Mapped[Optional[str]] = mapped_column(String(500))
    bio: Mapped[Optional[str]] = mapped_column(Text)
    location: Mapped[Optional[str]] = mapped_column(String(100))
    website: Mapped[Optional[str]] = mapped_column(String(255))
    favorite_genres: Mapped[List[str]] = mapped_column(JSON, default=list)
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    last_active_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    # Denormalized counters
    follower_count: Mapped[int] = mapped_column(default=0)
    following_count: Mapped[int] = mapped_column(default=0)
    total_ratings: Mapped[int] = mapped_column(default=0)
    average_rating: Mapped[float] = mapped_column(Float, default=0.0)
    watchlist_count: Mapped[int] = mapped_column(default=0)
    watched_count: Mapped[int] = mapped_column(default=0)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
