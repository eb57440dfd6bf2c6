"""
Fixtures for client store tests: a mocked Resource API and payload builders.
"""

import itertools
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from tvdom.client.api_client import ResourceAPIClient
from tvdom.client.notification_store import NotificationStore
from tvdom.client.session_storage import MemorySessionStorage
from tvdom.client.user_store import UserStore
from tvdom.core.cache import TTLCache

NOW = "2026-01-01T12:00:00Z"


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Payloads:
    """Builders for JSON bodies as the Resource API returns them."""

    def __init__(self):
        self._ids = itertools.count(100)

    def user(self, user_id: int = 1, **overrides) -> dict:
        user = {
            "id": user_id,
            "username": f"user{user_id}",
            "email": f"user{user_id}@example.com",
            "display_name": f"User {user_id}",
            "avatar_url": None,
            "banner_url": None,
            "bio": None,
            "location": None,
            "website": None,
            "favorite_genres": [],
            "is_verified": False,
            "is_private": False,
            "joined_at": NOW,
            "last_active_at": NOW,
            "follower_count": 0,
            "following_count": 0,
            "total_ratings": 0,
            "average_rating": 0.0,
            "watchlist_count": 0,
            "watched_count": 0,
        }
        user.update(overrides)
        return user

    def session(self, user_id: int = 1, expires_in: timedelta = timedelta(days=30)) -> dict:
        return {
            "user_id": user_id,
            "access_token": f"token-{user_id}",
            "token_type": "bearer",
            "expires_at": (datetime.now(timezone.utc) + expires_in).isoformat(),
        }

    def auth(self, user_id: int = 1, **user_overrides) -> dict:
        return {"user": self.user(user_id, **user_overrides), "session": self.session(user_id)}

    def rating(self, media_id: str, score: int, rating_id: int = None, user_id: int = 1) -> dict:
        return {
            "id": rating_id or next(self._ids),
            "user_id": user_id,
            "media_id": media_id,
            "media_type": "movie",
            "rating": score,
            "review": None,
            "is_spoiler": False,
            "likes": 0,
            "dislikes": 0,
            "tags": [],
            "rewatched": False,
            "watched_date": None,
            "media_title": f"Movie {media_id}",
            "media_poster": None,
            "created_at": NOW,
            "updated_at": NOW,
        }

    def watchlist_item(self, media_id: str, user_id: int = 1) -> dict:
        return {
            "id": next(self._ids),
            "user_id": user_id,
            "media_id": media_id,
            "media_type": "movie",
            "priority": "medium",
            "notes": None,
            "reminder_date": None,
            "added_at": NOW,
            "media_title": f"Movie {media_id}",
            "media_poster": None,
            "media_year": None,
            "media_genres": [],
        }

    def watched_item(self, media_id: str, rewatch_count: int = 0, user_id: int = 1) -> dict:
        return {
            "id": next(self._ids),
            "user_id": user_id,
            "media_id": media_id,
            "media_type": "movie",
            "watched_at": NOW,
            "rating": None,
            "is_favorite": False,
            "rewatch_count": rewatch_count,
            "last_rewatched_at": None,
            "media_title": f"Movie {media_id}",
            "media_poster": None,
            "season_number": None,
            "episode_number": None,
            "progress": 100,
        }

    def follow(self, follower_id: int, following_id: int) -> dict:
        return {
            "id": next(self._ids),
            "follower_id": follower_id,
            "following_id": following_id,
            "created_at": NOW,
            "user": None,
        }

    def person_rating(self, person_id: str, score: int, user_id: int = 1) -> dict:
        return {
            "id": next(self._ids),
            "user_id": user_id,
            "person_id": person_id,
            "rating": score,
            "review": None,
            "is_spoiler": False,
            "likes": 0,
            "dislikes": 0,
            "tags": [],
            "person_name": f"Person {person_id}",
            "person_image": None,
            "created_at": NOW,
            "updated_at": NOW,
        }

    def person_favorite(self, person_id: str, user_id: int = 1) -> dict:
        return {
            "id": next(self._ids),
            "user_id": user_id,
            "person_id": person_id,
            "person_name": f"Person {person_id}",
            "person_image": None,
            "person_known_for": "Acting",
            "added_at": NOW,
        }

    def notification(self, notification_id: int, read: bool = False, user_id: str = "1") -> dict:
        return {
            "id": notification_id,
            "user_id": user_id,
            "type": "system",
            "title": "Hello",
            "message": "Welcome to TVDom",
            "data": {},
            "read": read,
            "created_at": NOW,
        }

    def activity(self, activity_id: str, user_id: int = 2) -> dict:
        return {
            "id": activity_id,
            "type": "rating",
            "user_id": user_id,
            "actor_name": f"User {user_id}",
            "actor_avatar": None,
            "created_at": NOW,
            "media_id": "550",
            "media_title": "Fight Club",
            "media_type": "movie",
            "rating": 9,
        }


@pytest.fixture
def payloads():
    return Payloads()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def api():
    """ResourceAPIClient double; every list endpoint returns an empty list."""
    mock_api = MagicMock(spec=ResourceAPIClient)
    mock_api.token = "token-1"
    for name in (
        "list_ratings",
        "list_watchlist",
        "list_watched",
        "list_follows",
        "list_person_ratings",
        "list_person_favorites",
        "list_notifications",
        "list_activities",
    ):
        getattr(mock_api, name).return_value = []
    return mock_api


@pytest.fixture
def storage():
    return MemorySessionStorage()


@pytest.fixture
def notification_store(api, clock):
    return NotificationStore(api, poll_interval=30, min_fetch_interval=10, clock=clock)


@pytest.fixture
def user_store(api, storage, notification_store, clock):
    return UserStore(
        api,
        storage,
        notifications=notification_store,
        follow_cache=TTLCache(ttl=30, clock=clock),
    )


@pytest.fixture
def logged_in(user_store, api, payloads):
    """Coroutine factory logging user 1 in through the mocked API."""

    async def _login(**user_overrides):
        api.login.return_value = payloads.auth(1, **user_overrides)
        await user_store.login("user1@example.com", "secret-password")
        api.reset_mock()
        return user_store

    return _login
