"""
Schemas for ratings, lists and presence.

Requests carry the acting user_id (checked against the session token)
and the already-resolved media or person metadata.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tvdom.models.enums import MediaType, WatchlistPriority
from tvdom.schemas.users import UserSummary


class MediaFields(BaseModel):
    user_id: int
    media_id: str = Field(..., min_length=1, max_length=64)
    media_type: MediaType
    media_title: str = Field(..., min_length=1, max_length=500)
    media_poster: Optional[str] = Field(None, max_length=500)


class RatingCreate(MediaFields):
    """Create or overwrite the user's rating for a media item."""

    rating: int = Field(..., ge=1, le=10, description="Score from 1 to 10")
    review: Optional[str] = Field(None, max_length=10000)
    is_spoiler: bool = False
    tags: List[str] = Field(default_factory=list, max_length=20)
    rewatched: bool = False
    watched_date: Optional[datetime] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "user_id": 1,
                "media_id": "550",
                "media_type": "movie",
                "media_title": "Fight Club",
                "rating": 9,
                "review": "Still holds up.",
            }
        }
    )


class RatingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    media_id: str
    media_type: MediaType
    rating: int
    review: Optional[str] = None
    is_spoiler: bool = False
    likes: int = 0
    dislikes: int = 0
    tags: List[str] = Field(default_factory=list)
    rewatched: bool = False
    watched_date: Optional[datetime] = None
    media_title: str
    media_poster: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class RatingMutationResponse(BaseModel):
    success: bool = True
    rating: RatingResponse
    created: bool
    average_rating: float
    total_ratings: int


class PersonFields(BaseModel):
    user_id: int
    person_id: str = Field(..., min_length=1, max_length=64)
    person_name: str = Field(..., min_length=1, max_length=255)
    person_image: Optional[str] = Field(None, max_length=500)


class PersonRatingCreate(PersonFields):
    rating: int = Field(..., ge=1, le=10)
    review: Optional[str] = Field(None, max_length=10000)
    is_spoiler: bool = False
    tags: List[str] = Field(default_factory=list, max_length=20)


class PersonRatingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    person_id: str
    rating: int
    review: Optional[str] = None
    is_spoiler: bool = False
    likes: int = 0
    dislikes: int = 0
    tags: List[str] = Field(default_factory=list)
    person_name: str
    person_image: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PersonFavoriteCreate(PersonFields):
    person_known_for: Optional[str] = Field(None, max_length=100)


class PersonFavoriteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    person_id: str
    person_name: str
    person_image: Optional[str] = None
    person_known_for: Optional[str] = None
    added_at: datetime


class WatchlistCreate(MediaFields):
    priority: WatchlistPriority = WatchlistPriority.MEDIUM
    notes: Optional[str] = Field(None, max_length=1000)
    reminder_date: Optional[datetime] = None
    media_year: Optional[int] = Field(None, ge=1870, le=2100)
    media_genres: List[str] = Field(default_factory=list)


class WatchlistResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    media_id: str
    media_type: MediaType
    priority: WatchlistPriority
    notes: Optional[str] = None
    reminder_date: Optional[datetime] = None
    added_at: datetime
    media_title: str
    media_poster: Optional[str] = None
    media_year: Optional[int] = None
    media_genres: List[str] = Field(default_factory=list)


class WatchedCreate(MediaFields):
    rating: Optional[int] = Field(None, ge=1, le=10)
    is_favorite: Optional[bool] = None
    season_number: Optional[int] = Field(None, ge=0)
    episode_number: Optional[int] = Field(None, ge=0)
    progress: int = Field(100, ge=0, le=100)


class WatchedResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    media_id: str
    media_type: MediaType
    watched_at: datetime
    rating: Optional[int] = None
    is_favorite: bool = False
    rewatch_count: int = 0
    last_rewatched_at: Optional[datetime] = None
    media_title: str
    media_poster: Optional[str] = None
    season_number: Optional[int] = None
    episode_number: Optional[int] = None
    progress: int = 100


class WatchedMutationResponse(BaseModel):
    success: bool = True
    item: WatchedResponse
    is_rewatch: bool
    removed_from_watchlist: bool


class CurrentlyWatchingCreate(MediaFields):
    season: Optional[int] = Field(None, ge=0)
    episode: Optional[int] = Field(None, ge=0)


class CurrentlyWatchingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    media_id: str
    media_type: MediaType
    media_title: str
    media_poster: Optional[str] = None
    season: Optional[int] = None
    episode: Optional[int] = None
    started_at: datetime
    last_active_at: datetime
    user: Optional[UserSummary] = None
