"""
Schemas for follows, notifications and the activity feed.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from tvdom.config import settings
from tvdom.models.enums import MediaType, NotificationType
from tvdom.models.social import BROADCAST_AUDIENCE
from tvdom.schemas.users import UserSummary


class FollowCreate(BaseModel):
    follower_id: int
    following_id: int

    @model_validator(mode="after")
    def not_self(self):
        if self.follower_id == self.following_id:
            raise ValueError("Cannot follow yourself")
        return self


class FollowResponse(BaseModel):
    """A follow edge; `user` is the other side of the edge for listings."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    follower_id: int
    following_id: int
    created_at: datetime
    user: Optional[UserSummary] = None


class FollowStatusResponse(BaseModel):
    is_following: bool


class NotificationCreate(BaseModel):
    """
    A notification for one user, or for everyone when user_id is "all".
    """

    user_id: Union[int, Literal["all"]]
    type: NotificationType
    title: str = Field(..., min_length=1, max_length=100)
    message: str = Field(..., min_length=1, max_length=500)
    data: Dict[str, Any] = Field(default_factory=dict)
    read: bool = False

    @field_validator("data")
    @classmethod
    def limit_data_keys(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        if len(v) > settings.max_notification_data_keys:
            raise ValueError(
                f"Notification data may hold at most {settings.max_notification_data_keys} keys"
            )
        return v

    @property
    def is_broadcast(self) -> bool:
        return self.user_id == BROADCAST_AUDIENCE

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "user_id": "all",
                "type": "system",
                "title": "Scheduled maintenance",
                "message": "TVDom will be read-only for 10 minutes tonight.",
            }
        }
    )


class NotificationResponse(BaseModel):
    """A notification as seen by one user; `read` is that user's read state."""

    id: int
    user_id: str
    type: NotificationType
    title: str
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)
    read: bool
    created_at: datetime


class NotificationUpdate(BaseModel):
    action: Literal["markRead", "markAllRead"]
    user_id: int
    notification_ids: Optional[List[int]] = None

    @model_validator(mode="after")
    def ids_for_mark_read(self):
        if self.action == "markRead" and not self.notification_ids:
            raise ValueError("notification_ids is required for markRead")
        return self


class NotificationUpdateResponse(BaseModel):
    success: bool = True
    modified_count: int


class ActivityResponse(BaseModel):
    """One feed entry: a rating or a follow by someone."""

    id: str
    type: Literal["rating", "follow"]
    user_id: int
    actor_name: str
    actor_avatar: Optional[str] = None
    created_at: datetime

    media_id: Optional[str] = None
    media_title: Optional[str] = None
    media_type: Optional[MediaType] = None
    rating: Optional[int] = None
    review: Optional[str] = None

    target_id: Optional[int] = None
    target_name: Optional[str] = None
    target_avatar: Optional[str] = None
