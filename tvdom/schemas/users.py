"""
User schemas for request/response validation.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserSummary(BaseModel):
    """Compact user reference embedded in follows, activities and presence."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    display_name: str
    avatar_url: Optional[str] = None
    is_verified: bool = False


class UserResponse(BaseModel):
    """Public user profile with denormalized counters."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    display_name: str
    avatar_url: Optional[str] = None
    banner_url: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    favorite_genres: List[str] = Field(default_factory=list)
    is_verified: bool = False
    is_private: bool = False
    joined_at: datetime
    last_active_at: datetime

    follower_count: int = 0
    following_count: int = 0
    total_ratings: int = 0
    average_rating: float = 0.0
    watchlist_count: int = 0
    watched_count: int = 0


class UserUpdateRequest(BaseModel):
    """Editable profile fields. Omitted fields are left unchanged."""

    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = Field(None, max_length=100)
    website: Optional[str] = Field(None, max_length=255)
    favorite_genres: Optional[List[str]] = Field(None, max_length=20)
    is_private: Optional[bool] = None
    avatar_url: Optional[str] = Field(None, max_length=500)
    banner_url: Optional[str] = Field(None, max_length=500)

    @field_validator("display_name")
    @classmethod
    def strip_display_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Display name cannot be empty")
        return v

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "display_name": "Jane Doe",
                "bio": "Horror and sci-fi, mostly.",
                "favorite_genres": ["Horror", "Science Fiction"],
            }
        }
    )


class ImageUploadResponse(BaseModel):
    url: str
    user: UserResponse
