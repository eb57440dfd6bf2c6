"""
Session/user store: the logged-in user and their collections.

This provides:
1. login/register/rehydrate/logout with durable session storage
2. Concurrent loading of ratings, lists, follows and person data
3. Mutations that mirror server-confirmed changes into local state
4. Follow status checks through a short-lived TTL cache

Local state changes only after the server confirms a write, and every
change is one pure reducer from tvdom.client.state swapped in whole.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, Type

from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

from tvdom.client import state as reducers
from tvdom.client.api_client import ResourceAPIClient
from tvdom.client.notification_store import NotificationStore
from tvdom.client.observable import Observable
from tvdom.client.session_storage import (
    SESSION_STORAGE_KEY,
    USER_STORAGE_KEY,
    SessionStorage,
)
from tvdom.client.state import AuthStatus, MediaRef, PersonRef, UserState
from tvdom.config import settings
from tvdom.core.cache import TTLCache
from tvdom.core.exceptions import (
    AppException,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    UnavailableError,
    ValidationError,
)
from tvdom.models.enums import WatchlistPriority
from tvdom.schemas.auth import SessionInfo
from tvdom.schemas.library import (
    PersonFavoriteResponse,
    PersonRatingResponse,
    RatingResponse,
    WatchedResponse,
    WatchlistResponse,
)
from tvdom.schemas.social import FollowResponse
from tvdom.schemas.users import UserResponse

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8

FollowKey = Tuple[int, int]


def _validate_score(score: int) -> None:
    if not 1 <= score <= 10:
        raise ValidationError("Rating must be between 1 and 10")


class UserStore(Observable[UserState]):
    """
    Mirrors the authenticated user and their per-user collections.

    Usage:
        store = UserStore(api, MemorySessionStorage())
        await store.login("user@example.com", "secret123")
        await store.add_rating(MediaRef("550", MediaType.MOVIE, "Fight Club"), 9)
        store.logout()
    """

    def __init__(
        self,
        api: ResourceAPIClient,
        storage: SessionStorage,
        notifications: Optional[NotificationStore] = None,
        follow_cache: Optional[TTLCache] = None,
    ):
        super().__init__(UserState())
        self.api = api
        self.storage = storage
        self.notifications = notifications
        self.follow_cache: TTLCache[FollowKey, bool] = follow_cache or TTLCache(
            ttl=settings.follow_status_cache_ttl
        )
        # Bumped on every session change; responses from an older session are dropped
        self._epoch = 0

    # Read-only views

    @property
    def status(self) -> AuthStatus:
        return self._state.status

    @property
    def user(self) -> Optional[UserResponse]:
        return self._state.user

    @property
    def is_authenticated(self) -> bool:
        return self._state.is_authenticated

    @property
    def is_loading(self) -> bool:
        return self._state.loading

    @property
    def error(self) -> Optional[str]:
        return self._state.error

    @property
    def ratings(self) -> Tuple[RatingResponse, ...]:
        return self._state.ratings

    @property
    def reviews(self) -> Tuple[RatingResponse, ...]:
        return tuple(r for r in self._state.ratings if r.review)

    @property
    def watchlist(self) -> Tuple[WatchlistResponse, ...]:
        return self._state.watchlist

    @property
    def watched(self) -> Tuple[WatchedResponse, ...]:
        return self._state.watched

    @property
    def following(self) -> Tuple[FollowResponse, ...]:
        return self._state.following

    @property
    def followers(self) -> Tuple[FollowResponse, ...]:
        return self._state.followers

    @property
    def person_ratings(self) -> Tuple[PersonRatingResponse, ...]:
        return self._state.person_ratings

    @property
    def person_favorites(self) -> Tuple[PersonFavoriteResponse, ...]:
        return self._state.person_favorites

    def get_rating(self, media_id: str) -> Optional[RatingResponse]:
        return next((r for r in self._state.ratings if r.media_id == media_id), None)

    def is_in_watchlist(self, media_id: str) -> bool:
        return any(w.media_id == media_id for w in self._state.watchlist)

    def has_watched(self, media_id: str) -> bool:
        return any(w.media_id == media_id for w in self._state.watched)

    def get_person_rating(self, person_id: str) -> Optional[PersonRatingResponse]:
        return next((r for r in self._state.person_ratings if r.person_id == person_id), None)

    def is_person_favorite(self, person_id: str) -> bool:
        return any(f.person_id == person_id for f in self._state.person_favorites)

    # Internals

    def _require_user(self) -> UserResponse:
        if not self._state.is_authenticated:
            raise AuthenticationError("You must be logged in")
        return self._state.user

    def _apply(self, epoch: int, reducer: Callable[..., UserState], *args: Any) -> bool:
        """Apply a reducer unless the session changed while the request was in flight."""
        if epoch != self._epoch:
            logger.debug(f"Dropping {reducer.__name__}: session changed during request")
            return False
        self._set_state(reducer(self._state, *args))
        return True

    def _persist_user(self) -> None:
        user = self._state.user
        if user is None:
            return
        user_data = user.model_dump(mode="json")
        self.storage.set(USER_STORAGE_KEY, user_data)
        if self.api.token:
            self.api.set_session_cookies(user_data, self.api.token)

    def _start_session(self, payload: Dict[str, Any]) -> UserResponse:
        user = UserResponse.model_validate(payload["user"])
        session = SessionInfo.model_validate(payload["session"])

        self._epoch += 1
        self.follow_cache.clear()
        self.api.set_token(session.access_token)
        self.storage.set(SESSION_STORAGE_KEY, session.model_dump(mode="json"))
        if self.notifications is not None:
            self.notifications.set_user(user.id)
        self._set_state(reducers.authenticated(self._state, user))
        self._persist_user()
        return user

    async def _authenticate(self, request: Awaitable[Dict[str, Any]]) -> UserResponse:
        epoch = self._epoch
        self._set_state(reducers.authentication_started(self._state))
        try:
            payload = await request
            if epoch != self._epoch:
                raise AuthenticationError("Login was cancelled")
            user = self._start_session(payload)
        except (AppException, SchemaValidationError, KeyError) as e:
            message = e.message if isinstance(e, AppException) else "Invalid server response"
            self._set_state(reducers.authentication_failed(self._state, message))
            if isinstance(e, AppException):
                raise
            raise UnavailableError(message) from e

        logger.info(f"User {user.id} logged in")
        await self.load_user_data()
        return user

    # Session lifecycle

    async def login(self, email: str, password: str) -> UserResponse:
        """
        Log in with email and password.

        Raises AuthenticationError for bad credentials and UnavailableError
        when the server cannot be reached; status returns to anonymous.
        """
        if not email or not password:
            raise ValidationError("Email and password are required")
        return await self._authenticate(self.api.login(email, password))

    async def register(
        self,
        username: str,
        email: str,
        display_name: str,
        password: str,
        confirm_password: Optional[str] = None,
    ) -> UserResponse:
        if not username or not email or not display_name:
            raise ValidationError("Username, email and display name are required")
        if confirm_password is not None and password != confirm_password:
            raise ValidationError("Passwords do not match")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

        return await self._authenticate(
            self.api.register(username, email, display_name, password, confirm_password)
        )

    async def rehydrate(self) -> bool:
        """
        Restore a session saved by an earlier login.

        The stored token is checked against the server. A rejected token
        or a deleted user logs out; an unreachable server keeps the stored
        profile. Returns True when a session is active afterwards.
        """
        stored_user = self.storage.get(USER_STORAGE_KEY)
        stored_session = self.storage.get(SESSION_STORAGE_KEY)
        if not stored_user or not stored_session:
            return False

        try:
            user = UserResponse.model_validate(stored_user)
            session = SessionInfo.model_validate(stored_session)
        except SchemaValidationError as e:
            logger.warning(f"Discarding unreadable stored session: {e}")
            self.logout()
            return False

        expires_at = session.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        if expires_at <= datetime.now(timezone.utc) or session.user_id != user.id:
            logger.info("Stored session expired")
            self.logout()
            return False

        self._epoch += 1
        epoch = self._epoch
        self.api.set_token(session.access_token)
        if self.notifications is not None:
            self.notifications.set_user(user.id)
        self._set_state(reducers.authenticated(self._state, user))

        try:
            fresh = UserResponse.model_validate(await self.api.get_session_user())
        except (AuthenticationError, AuthorizationError, NotFoundError) as e:
            logger.info(f"Stored session rejected by server: {e.message}")
            self.logout()
            return False
        except UnavailableError as e:
            logger.warning(f"Server unreachable, keeping stored profile: {e.message}")
            return True

        if not self._apply(epoch, reducers.user_refreshed, fresh):
            return self.is_authenticated
        self._persist_user()
        await self.load_user_data()
        return True

    def logout(self) -> None:
        """Clear everything locally. Never waits for the network."""
        user = self._state.user
        self._epoch += 1
        self.follow_cache.clear()
        if self.notifications is not None:
            self.notifications.reset()
        self.storage.clear_session()
        self.api.clear_cookies()
        self.api.clear_token()
        self._set_state(reducers.logged_out(self._state))
        if user is not None:
            logger.info(f"User {user.id} logged out")

    async def _load_collection(
        self,
        name: str,
        fetch: Awaitable[List[Dict[str, Any]]],
        schema: Type[BaseModel],
    ) -> Tuple[Any, ...]:
        try:
            items = await fetch
            return tuple(schema.model_validate(item) for item in items)
        except (AppException, SchemaValidationError) as e:
            logger.warning(f"Failed to load {name}: {e}")
            return ()

    async def load_user_data(self) -> None:
        """
        Load every collection concurrently.

        A collection that fails to load is logged and left empty; this
        never raises.
        """
        user = self._state.user
        if user is None:
            return

        epoch = self._epoch
        self._set_state(reducers.loading_changed(self._state, True))
        try:
            loaded = await asyncio.gather(
                self._load_collection("ratings", self.api.list_ratings(user.id), RatingResponse),
                self._load_collection("watchlist", self.api.list_watchlist(user.id), WatchlistResponse),
                self._load_collection("watched", self.api.list_watched(user.id), WatchedResponse),
                self._load_collection(
                    "following", self.api.list_follows(user.id, "following"), FollowResponse
                ),
                self._load_collection(
                    "followers", self.api.list_follows(user.id, "followers"), FollowResponse
                ),
                self._load_collection(
                    "person ratings", self.api.list_person_ratings(user.id), PersonRatingResponse
                ),
                self._load_collection(
                    "person favorites",
                    self.api.list_person_favorites(user.id),
                    PersonFavoriteResponse,
                ),
            )
        finally:
            if epoch == self._epoch:
                self._set_state(reducers.loading_changed(self._state, False))

        ratings, watchlist, watched, following, followers, person_ratings, person_favorites = loaded
        self._apply(
            epoch,
            lambda state: reducers.collections_loaded(
                state,
                ratings=ratings,
                watchlist=watchlist,
                watched=watched,
                following=following,
                followers=followers,
                person_ratings=person_ratings,
                person_favorites=person_favorites,
            ),
        )

    async def refresh_user(self) -> Optional[UserResponse]:
        """Re-fetch the canonical user record, counters included."""
        user = self._require_user()
        epoch = self._epoch
        fresh = UserResponse.model_validate(await self.api.get_user(user.id))
        if self._apply(epoch, reducers.user_refreshed, fresh):
            self._persist_user()
        return self._state.user

    async def _refresh_average_rating(self, epoch: int) -> None:
        """The server owns average_rating; never recompute it locally."""
        user = self._state.user
        if user is None:
            return
        try:
            fresh = await self.api.get_user(user.id)
        except AppException as e:
            logger.warning(f"Failed to refresh average rating: {e.message}")
            return
        if self._apply(epoch, reducers.average_rating_refreshed, float(fresh["average_rating"])):
            self._persist_user()

    # Profile

    async def update_profile(self, **changes: Any) -> UserResponse:
        user = self._require_user()
        changes = {key: value for key, value in changes.items() if value is not None}
        if not changes:
            return user
        epoch = self._epoch
        updated = UserResponse.model_validate(await self.api.update_user(user.id, changes))
        if self._apply(epoch, reducers.user_refreshed, updated):
            self._persist_user()
        return updated

    async def _upload_image(
        self, kind: str, content: bytes, content_type: str, filename: Optional[str]
    ) -> str:
        user = self._require_user()
        epoch = self._epoch
        result = await self.api.upload_image(user.id, kind, content, content_type, filename)
        if self._apply(epoch, reducers.user_refreshed, UserResponse.model_validate(result["user"])):
            self._persist_user()
        return result["url"]

    async def upload_avatar(
        self, content: bytes, content_type: str, filename: Optional[str] = None
    ) -> str:
        """Upload a new avatar. Returns its URL."""
        return await self._upload_image("avatar", content, content_type, filename)

    async def upload_banner(
        self, content: bytes, content_type: str, filename: Optional[str] = None
    ) -> str:
        return await self._upload_image("banner", content, content_type, filename)

    # Ratings

    async def add_rating(
        self,
        media: MediaRef,
        score: int,
        review: Optional[str] = None,
        is_spoiler: bool = False,
        tags: Optional[Iterable[str]] = None,
    ) -> RatingResponse:
        """
        Rate a movie or show, replacing any earlier rating for it.

        A new rating is prepended and bumps total_ratings; a re-rate is
        replaced in place. average_rating is then re-fetched from the server.
        """
        user = self._require_user()
        _validate_score(score)

        epoch = self._epoch
        result = await self.api.rate_media(
            {
                "user_id": user.id,
                **media.as_fields(),
                "rating": score,
                "review": review,
                "is_spoiler": is_spoiler,
                "tags": list(tags or []),
            }
        )
        rating = RatingResponse.model_validate(result["rating"])
        self._apply(epoch, reducers.rating_saved, rating)
        await self._refresh_average_rating(epoch)
        return rating

    async def update_rating(
        self, rating_id: int, score: int, review: Optional[str] = None
    ) -> RatingResponse:
        existing = next((r for r in self._state.ratings if r.id == rating_id), None)
        if existing is None:
            raise NotFoundError("Rating not found")
        media = MediaRef(
            media_id=existing.media_id,
            media_type=existing.media_type,
            title=existing.media_title,
            poster=existing.media_poster,
        )
        return await self.add_rating(
            media,
            score,
            review=review if review is not None else existing.review,
            is_spoiler=existing.is_spoiler,
            tags=existing.tags,
        )

    async def delete_rating(self, rating_id: int) -> bool:
        """
        Delete one of the user's ratings.

        A rating that is not in the local list is ignored (returns False).
        """
        user = self._require_user()
        rating = next((r for r in self._state.ratings if r.id == rating_id), None)
        if rating is None:
            return False

        epoch = self._epoch
        await self.api.delete_rating(user.id, rating.media_id)
        self._apply(epoch, reducers.rating_removed, rating_id)
        await self._refresh_average_rating(epoch)
        return True

    # Watchlist and watched

    async def add_to_watchlist(
        self,
        media: MediaRef,
        priority: WatchlistPriority = WatchlistPriority.MEDIUM,
        notes: Optional[str] = None,
    ) -> WatchlistResponse:
        """Raises ConflictError when the media is already on the watchlist."""
        user = self._require_user()
        epoch = self._epoch
        payload = await self.api.add_to_watchlist(
            {
                "user_id": user.id,
                **media.as_fields(),
                "priority": WatchlistPriority(priority).value,
                "notes": notes,
                "media_year": media.year,
                "media_genres": list(media.genres),
            }
        )
        item = WatchlistResponse.model_validate(payload)
        self._apply(epoch, reducers.watchlist_added, item)
        return item

    async def remove_from_watchlist(self, media_id: str) -> None:
        user = self._require_user()
        epoch = self._epoch
        await self.api.remove_from_watchlist(user.id, media_id)
        self._apply(epoch, reducers.watchlist_removed, media_id)

    async def mark_as_watched(
        self,
        media: MediaRef,
        rating: Optional[int] = None,
        is_favorite: Optional[bool] = None,
        season_number: Optional[int] = None,
        episode_number: Optional[int] = None,
    ) -> WatchedResponse:
        """
        Record a watch of the media.

        A first watch bumps watched_count; a repeat watch only moves the
        entry to the front. Either one drops the media from the watchlist
        when the server reports it removed.
        """
        user = self._require_user()
        if rating is not None:
            _validate_score(rating)

        epoch = self._epoch
        result = await self.api.mark_as_watched(
            {
                "user_id": user.id,
                **media.as_fields(),
                "rating": rating,
                "is_favorite": is_favorite,
                "season_number": season_number,
                "episode_number": episode_number,
            }
        )
        item = WatchedResponse.model_validate(result["item"])
        self._apply(
            epoch,
            reducers.watched_marked,
            item,
            bool(result.get("is_rewatch")),
            bool(result.get("removed_from_watchlist")),
        )
        return item

    async def remove_from_watched(self, media_id: str) -> None:
        user = self._require_user()
        epoch = self._epoch
        await self.api.remove_from_watched(user.id, media_id)
        self._apply(epoch, reducers.watched_removed, media_id)

    # People

    async def add_person_rating(
        self, person: PersonRef, score: int, review: Optional[str] = None
    ) -> PersonRatingResponse:
        user = self._require_user()
        _validate_score(score)
        epoch = self._epoch
        result = await self.api.rate_person(
            {"user_id": user.id, **person.as_fields(), "rating": score, "review": review}
        )
        rating = PersonRatingResponse.model_validate(result["rating"])
        self._apply(epoch, reducers.person_rating_saved, rating)
        return rating

    async def delete_person_rating(self, person_id: str) -> bool:
        user = self._require_user()
        if self.get_person_rating(person_id) is None:
            return False
        epoch = self._epoch
        await self.api.delete_person_rating(user.id, person_id)
        self._apply(epoch, reducers.person_rating_removed, person_id)
        return True

    async def add_person_to_favorites(self, person: PersonRef) -> PersonFavoriteResponse:
        user = self._require_user()
        epoch = self._epoch
        payload = await self.api.add_person_favorite(
            {"user_id": user.id, **person.as_fields(), "person_known_for": person.known_for}
        )
        favorite = PersonFavoriteResponse.model_validate(payload)
        self._apply(epoch, reducers.person_favorite_added, favorite)
        return favorite

    async def remove_person_from_favorites(self, person_id: str) -> None:
        user = self._require_user()
        epoch = self._epoch
        await self.api.remove_person_favorite(user.id, person_id)
        self._apply(epoch, reducers.person_favorite_removed, person_id)

    # Follows

    async def follow_user(self, following_id: int) -> FollowResponse:
        """
        Follow another user.

        Self-follow is rejected locally. A duplicate follow surfaces the
        server's ConflictError and changes nothing locally.
        """
        user = self._require_user()
        if following_id == user.id:
            raise ValidationError("You cannot follow yourself")

        epoch = self._epoch
        follow = FollowResponse.model_validate(await self.api.follow(user.id, following_id))
        self.follow_cache.invalidate((user.id, following_id))
        self._apply(epoch, reducers.follow_added, follow)
        return follow

    async def unfollow_user(self, following_id: int) -> None:
        user = self._require_user()
        epoch = self._epoch
        await self.api.unfollow(user.id, following_id)
        self.follow_cache.invalidate((user.id, following_id))
        self._apply(epoch, reducers.follow_removed, following_id)

    async def check_if_following(self, following_id: int) -> bool:
        """
        Whether the current user follows `following_id`.

        Resolution order: cached answer younger than the TTL, then the
        loaded following list, then the server. Failed server checks are
        logged and answer False without caching.
        """
        user = self._state.user
        if user is None or following_id == user.id:
            return False

        key = (user.id, following_id)
        cached = self.follow_cache.get(key)
        if cached is not None:
            return cached

        if any(f.following_id == following_id for f in self._state.following):
            self.follow_cache.set(key, True)
            return True

        epoch = self._epoch
        try:
            is_following = await self.api.follow_status(user.id, following_id)
        except AppException as e:
            logger.warning(f"Failed to check follow status for {key}: {e.message}")
            return False

        if epoch == self._epoch:
            self.follow_cache.set(key, is_following)
        return is_following
