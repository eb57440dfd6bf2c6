"""Initial social catalogue schema

Revision ID: 001
Revises:
Create Date: 2026-10-16 12:00:00.000000

"""

from typing import List, Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _base_columns() -> List[sa.Column]:
    """id plus the created/updated timestamps every table carries."""
    return [
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    ]


def _user_fk() -> sa.Column:
    return sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False)


def _media_columns() -> List[sa.Column]:
    return [
        sa.Column("media_id", sa.String(length=64), nullable=False),
        sa.Column("media_type", sa.String(length=32), nullable=False),
        sa.Column("media_title", sa.String(length=500), nullable=False),
        sa.Column("media_poster", sa.String(length=500), nullable=True),
    ]


def _index_base(table: str) -> None:
    op.create_index(op.f(f"ix_{table}_id"), table, ["id"], unique=False)
    op.create_index(op.f(f"ix_{table}_created_at"), table, ["created_at"], unique=False)


def upgrade() -> None:
    # Users with denormalized counters
    op.create_table(
        "users",
        *_base_columns(),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_private", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("display_name", sa.String(length=100), nullable=False),
        sa.Column("avatar_url", sa.String(length=500), nullable=True),
        sa.Column("banner_url", sa.String(length=500), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("location", sa.String(length=100), nullable=True),
        sa.Column("website", sa.String(length=255), nullable=True),
        sa.Column("favorite_genres", sa.JSON(), nullable=True),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("follower_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("following_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_ratings", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("average_rating", sa.Float(), nullable=False, server_default="0"),
        sa.Column("watchlist_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("watched_count", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
    )
    _index_base("users")
    op.create_index(op.f("ix_users_username"), "users", ["username"], unique=True)
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    # Media ratings, one per (user, media)
    op.create_table(
        "ratings",
        *_base_columns(),
        _user_fk(),
        *_media_columns(),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("review", sa.Text(), nullable=True),
        sa.Column("is_spoiler", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("likes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("dislikes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("tags", sa.JSON(), nullable=True),
        sa.Column("rewatched", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("watched_date", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "media_id", name="unique_user_media_rating"),
    )
    _index_base("ratings")
    op.create_index(op.f("ix_ratings_user_id"), "ratings", ["user_id"], unique=False)
    op.create_index("idx_rating_media", "ratings", ["media_id"], unique=False)

    # Person ratings, one per (user, person)
    op.create_table(
        "person_ratings",
        *_base_columns(),
        _user_fk(),
        sa.Column("person_id", sa.String(length=64), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("review", sa.Text(), nullable=True),
        sa.Column("is_spoiler", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("likes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("dislikes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("tags", sa.JSON(), nullable=True),
        sa.Column("person_name", sa.String(length=255), nullable=False),
        sa.Column("person_image", sa.String(length=500), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "person_id", name="unique_user_person_rating"),
    )
    _index_base("person_ratings")
    op.create_index(
        op.f("ix_person_ratings_user_id"), "person_ratings", ["user_id"], unique=False
    )

    # Watchlist
    op.create_table(
        "watchlist_items",
        *_base_columns(),
        _user_fk(),
        *_media_columns(),
        sa.Column("added_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("priority", sa.String(length=32), nullable=False, server_default="medium"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("reminder_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("media_year", sa.Integer(), nullable=True),
        sa.Column("media_genres", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "media_id", name="unique_user_watchlist_media"),
    )
    _index_base("watchlist_items")
    op.create_index(
        op.f("ix_watchlist_items_user_id"), "watchlist_items", ["user_id"], unique=False
    )

    # Watched history
    op.create_table(
        "watched_items",
        *_base_columns(),
        _user_fk(),
        *_media_columns(),
        sa.Column("watched_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("is_favorite", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("rewatch_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_rewatched_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("season_number", sa.Integer(), nullable=True),
        sa.Column("episode_number", sa.Integer(), nullable=True),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="100"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "media_id", name="unique_user_watched_media"),
    )
    _index_base("watched_items")
    op.create_index(
        op.f("ix_watched_items_user_id"), "watched_items", ["user_id"], unique=False
    )

    # Favorite people
    op.create_table(
        "person_favorites",
        *_base_columns(),
        _user_fk(),
        sa.Column("person_id", sa.String(length=64), nullable=False),
        sa.Column("added_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("person_name", sa.String(length=255), nullable=False),
        sa.Column("person_image", sa.String(length=500), nullable=True),
        sa.Column("person_known_for", sa.String(length=100), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "person_id", name="unique_user_person_favorite"),
    )
    _index_base("person_favorites")
    op.create_index(
        op.f("ix_person_favorites_user_id"), "person_favorites", ["user_id"], unique=False
    )

    # Currently-watching presence
    op.create_table(
        "currently_watching",
        *_base_columns(),
        _user_fk(),
        *_media_columns(),
        sa.Column("season", sa.Integer(), nullable=True),
        sa.Column("episode", sa.Integer(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "media_id", name="unique_user_currently_watching"),
    )
    _index_base("currently_watching")
    op.create_index(
        op.f("ix_currently_watching_user_id"), "currently_watching", ["user_id"], unique=False
    )
    op.create_index(
        "idx_currently_watching_active", "currently_watching", ["last_active_at"], unique=False
    )

    # Follow graph
    op.create_table(
        "follows",
        *_base_columns(),
        sa.Column("follower_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("following_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("follower_id", "following_id", name="unique_follow_relationship"),
        sa.CheckConstraint("follower_id <> following_id", name="no_self_follow"),
    )
    _index_base("follows")
    op.create_index(op.f("ix_follows_follower_id"), "follows", ["follower_id"], unique=False)
    op.create_index(op.f("ix_follows_following_id"), "follows", ["following_id"], unique=False)

    # Notifications; user_id NULL means broadcast
    op.create_table(
        "notifications",
        *_base_columns(),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("message", sa.String(length=500), nullable=False),
        sa.Column("data", sa.JSON(), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("id"),
    )
    _index_base("notifications")
    op.create_index(op.f("ix_notifications_user_id"), "notifications", ["user_id"], unique=False)
    op.create_index(op.f("ix_notifications_type"), "notifications", ["type"], unique=False)
    op.create_index(op.f("ix_notifications_read"), "notifications", ["read"], unique=False)
    op.create_index(
        "idx_notification_user_created", "notifications", ["user_id", "created_at"], unique=False
    )
    op.create_index(
        "idx_notification_user_read",
        "notifications",
        ["user_id", "read", "created_at"],
        unique=False,
    )

    # Per-user read/dismiss state for broadcasts
    op.create_table(
        "notification_receipts",
        *_base_columns(),
        sa.Column(
            "notification_id",
            sa.Integer(),
            sa.ForeignKey("notifications.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _user_fk(),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("dismissed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("notification_id", "user_id", name="unique_notification_receipt"),
    )
    _index_base("notification_receipts")
    op.create_index(
        op.f("ix_notification_receipts_notification_id"),
        "notification_receipts",
        ["notification_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_notification_receipts_user_id"),
        "notification_receipts",
        ["user_id"],
        unique=False,
    )


def downgrade() -> None:
    # Dependent tables first; indexes go with their tables
    for table in (
        "notification_receipts",
        "notifications",
        "follows",
        "currently_watching",
        "person_favorites",
        "watched_items",
        "watchlist_items",
        "person_ratings",
        "ratings",
        "users",
    ):
        op.drop_table(table)
