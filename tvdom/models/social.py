"""
Social models - follows and notifications.

This handles:
1. Directed follow edges between users
2. Notifications addressed to one user or broadcast to everyone
3. Per-user read/dismiss receipts for broadcast notifications
"""

from typing import Any, Dict, Optional

from sqlalchemy import JSON, Boolean, CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tvdom.database import Base
from tvdom.models.enums import NotificationType, enum_column

# Sentinel recipient for notifications addressed to every user
BROADCAST_AUDIENCE = "all"


class Follow(Base):
    """
    User following relationships.

    Design decisions:
    - Unique constraint prevents duplicate edges even under concurrent inserts
    - Check constraint forbids self-follow at the storage level
    """

    __tablename__ = "follows"

    # The user who is following
    follower_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    # The user being followed
    following_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)

    __table_args__ = (
        UniqueConstraint(
            "follower_id", "following_id", name="unique_follow_relationship"
        ),
        CheckConstraint("follower_id <> following_id", name="no_self_follow"),
    )

    def __repr__(self) -> str:
        return f"<Follow(id={self.id}, follower_id={self.follower_id}, following_id={self.following_id})>"


class Notification(Base):
    """
    A notification for one user (user_id set) or for everyone (user_id NULL).

    Rows older than the retention window are never served and are deleted
    by the maintenance task.
    """

    __tablename__ = "notifications"

    user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), index=True)
    type: Mapped[NotificationType] = mapped_column(
        enum_column(NotificationType), index=True
    )
    title: Mapped[str] = mapped_column(String(100))
    message: Mapped[str] = mapped_column(String(500))
    data: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    read: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    __table_args__ = (
        Index("idx_notification_user_created", "user_id", "created_at"),
        Index("idx_notification_user_read", "user_id", "read", "created_at"),
    )

    @property
    def is_broadcast(self) -> bool:
        return self.user_id is None

    @property
    def audience(self) -> str:
        return BROADCAST_AUDIENCE if self.user_id is None else str(self.user_id)


class NotificationReceipt(Base):
    """One user's read/dismissed state for a broadcast notification."""

    __tablename__ = "notification_receipts"

    notification_id: Mapped[int] = mapped_column(
        ForeignKey("notifications.id", ondelete="CASCADE"), index=True
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    read: Mapped[bool] = mapped_column(Boolean, default=False)
    dismissed: Mapped[bool] = mapped_column(Boolean, default=False)

    __table_args__ = (
        UniqueConstraint("notification_id", "user_id", name="unique_notification_receipt"),
    )
