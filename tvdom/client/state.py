"""
Client-side session state and the pure reducers that evolve it.

Each store mutation computes its whole next state with one reducer and
swaps it in; a list and its counter always change together. Records are
the same pydantic models the Resource API responds with.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

from tvdom.models.enums import MediaType
from tvdom.schemas.library import (
    PersonFavoriteResponse,
    PersonRatingResponse,
    RatingResponse,
    WatchedResponse,
    WatchlistResponse,
)
from tvdom.schemas.social import ActivityResponse, FollowResponse, NotificationResponse
from tvdom.schemas.users import UserResponse

T = TypeVar("T")


class AuthStatus(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class MediaRef:
    """Already-resolved metadata for a movie or show."""

    media_id: str
    media_type: MediaType
    title: str
    poster: Optional[str] = None
    year: Optional[int] = None
    genres: Tuple[str, ...] = ()

    def as_fields(self) -> Dict[str, Any]:
        return {
            "media_id": self.media_id,
            "media_type": MediaType(self.media_type).value,
            "media_title": self.title,
            "media_poster": self.poster,
        }


@dataclass(frozen=True)
class PersonRef:
    """Already-resolved metadata for an actor or crew member."""

    person_id: str
    name: str
    image: Optional[str] = None
    known_for: Optional[str] = None

    def as_fields(self) -> Dict[str, Any]:
        return {
            "person_id": self.person_id,
            "person_name": self.name,
            "person_image": self.image,
        }


@dataclass(frozen=True)
class UserState:
    status: AuthStatus = AuthStatus.ANONYMOUS
    user: Optional[UserResponse] = None
    ratings: Tuple[RatingResponse, ...] = ()
    watchlist: Tuple[WatchlistResponse, ...] = ()
    watched: Tuple[WatchedResponse, ...] = ()
    following: Tuple[FollowResponse, ...] = ()
    followers: Tuple[FollowResponse, ...] = ()
    person_ratings: Tuple[PersonRatingResponse, ...] = ()
    person_favorites: Tuple[PersonFavoriteResponse, ...] = ()
    loading: bool = False
    error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.status == AuthStatus.AUTHENTICATED and self.user is not None


@dataclass(frozen=True)
class NotificationState:
    notifications: Tuple[NotificationResponse, ...] = ()
    activities: Tuple[ActivityResponse, ...] = ()
    unread_count: int = 0
    loading: bool = False
    last_fetched_at: Optional[float] = None


# Helpers


def _find_index(items: Iterable[T], predicate: Callable[[T], bool]) -> Optional[int]:
    for index, item in enumerate(items):
        if predicate(item):
            return index
    return None


def _without(items: Tuple[T, ...], predicate: Callable[[T], bool]) -> Tuple[T, ...]:
    return tuple(item for item in items if not predicate(item))


def _upsert(items: Tuple[T, ...], item: T, predicate: Callable[[T], bool]) -> Tuple[Tuple[T, ...], bool]:
    """Replace the first match in place, or prepend. Returns (items, replaced)."""
    index = _find_index(items, predicate)
    if index is None:
        return (item,) + items, False
    return items[:index] + (item,) + items[index + 1 :], True


def adjust_counters(user: Optional[UserResponse], **deltas: int) -> Optional[UserResponse]:
    """Apply counter deltas to a user record, flooring every counter at zero."""
    if user is None or not deltas:
        return user
    updates = {name: max(0, getattr(user, name) + delta) for name, delta in deltas.items() if delta}
    return user.model_copy(update=updates) if updates else user


# Session lifecycle


def authentication_started(state: UserState) -> UserState:
    return replace(state, status=AuthStatus.AUTHENTICATING, error=None)


def authentication_failed(state: UserState, message: Optional[str] = None) -> UserState:
    return UserState(error=message)


def authenticated(state: UserState, user: UserResponse) -> UserState:
    return UserState(status=AuthStatus.AUTHENTICATED, user=user)


def logged_out(state: UserState) -> UserState:
    return UserState()


def loading_changed(state: UserState, loading: bool) -> UserState:
    return replace(state, loading=loading)


def collections_loaded(state: UserState, **collections: Tuple[Any, ...]) -> UserState:
    return replace(state, **collections)


def user_refreshed(state: UserState, user: UserResponse) -> UserState:
    if state.user is None or state.user.id != user.id:
        return state
    return replace(state, user=user)


def average_rating_refreshed(state: UserState, average_rating: float) -> UserState:
    if state.user is None:
        return state
    return replace(state, user=state.user.model_copy(update={"average_rating": average_rating}))


# Ratings


def rating_saved(state: UserState, rating: RatingResponse) -> UserState:
    """Replace the rating for the same media in place, or prepend a new one."""
    ratings, replaced = _upsert(state.ratings, rating, lambda r: r.media_id == rating.media_id)
    user = state.user if replaced else adjust_counters(state.user, total_ratings=1)
    return replace(state, ratings=ratings, user=user)


def rating_removed(state: UserState, rating_id: int) -> UserState:
    if _find_index(state.ratings, lambda r: r.id == rating_id) is None:
        return state
    return replace(
        state,
        ratings=_without(state.ratings, lambda r: r.id == rating_id),
        user=adjust_counters(state.user, total_ratings=-1),
    )


# Watchlist and watched


def watchlist_added(state: UserState, item: WatchlistResponse) -> UserState:
    watchlist, replaced = _upsert(state.watchlist, item, lambda w: w.media_id == item.media_id)
    user = state.user if replaced else adjust_counters(state.user, watchlist_count=1)
    return replace(state, watchlist=watchlist, user=user)


def watchlist_removed(state: UserState, media_id: str) -> UserState:
    return replace(
        state,
        watchlist=_without(state.watchlist, lambda w: w.media_id == media_id),
        user=adjust_counters(state.user, watchlist_count=-1),
    )


def watched_marked(
    state: UserState,
    item: WatchedResponse,
    is_rewatch: bool,
    removed_from_watchlist: bool = False,
) -> UserState:
    """
    Record a watch event.

    The entry moves to the front of the watched list. A first watch bumps
    watched_count; the watchlist entry goes only when the server removed it.
    """
    watched = (item,) + _without(state.watched, lambda w: w.media_id == item.media_id)
    watchlist = state.watchlist

    deltas: Dict[str, int] = {}
    if not is_rewatch:
        deltas["watched_count"] = 1
    if removed_from_watchlist:
        deltas["watchlist_count"] = -1
        watchlist = _without(watchlist, lambda w: w.media_id == item.media_id)

    return replace(
        state,
        watched=watched,
        watchlist=watchlist,
        user=adjust_counters(state.user, **deltas),
    )


def watched_removed(state: UserState, media_id: str) -> UserState:
    return replace(
        state,
        watched=_without(state.watched, lambda w: w.media_id == media_id),
        user=adjust_counters(state.user, watched_count=-1),
    )


# People


def person_rating_saved(state: UserState, rating: PersonRatingResponse) -> UserState:
    person_ratings, _ = _upsert(
        state.person_ratings, rating, lambda r: r.person_id == rating.person_id
    )
    return replace(state, person_ratings=person_ratings)


def person_rating_removed(state: UserState, person_id: str) -> UserState:
    return replace(
        state, person_ratings=_without(state.person_ratings, lambda r: r.person_id == person_id)
    )


def person_favorite_added(state: UserState, favorite: PersonFavoriteResponse) -> UserState:
    favorites, _ = _upsert(
        state.person_favorites, favorite, lambda f: f.person_id == favorite.person_id
    )
    return replace(state, person_favorites=favorites)


def person_favorite_removed(state: UserState, person_id: str) -> UserState:
    return replace(
        state,
        person_favorites=_without(state.person_favorites, lambda f: f.person_id == person_id),
    )


# Follows


def follow_added(state: UserState, follow: FollowResponse) -> UserState:
    following, replaced = _upsert(
        state.following, follow, lambda f: f.following_id == follow.following_id
    )
    user = state.user if replaced else adjust_counters(state.user, following_count=1)
    return replace(state, following=following, user=user)


def follow_removed(state: UserState, following_id: int) -> UserState:
    return replace(
        state,
        following=_without(state.following, lambda f: f.following_id == following_id),
        user=adjust_counters(state.user, following_count=-1),
    )


# Notifications


def _count_unread(notifications: Iterable[NotificationResponse]) -> int:
    return sum(1 for n in notifications if not n.read)


def notifications_loaded(
    state: NotificationState, notifications: List[NotificationResponse], fetched_at: float
) -> NotificationState:
    """A full fetch recomputes the unread count from the fetched set."""
    items = tuple(notifications)
    return replace(
        state, notifications=items, unread_count=_count_unread(items), last_fetched_at=fetched_at
    )


def notification_fetch_started(state: NotificationState, fetched_at: float) -> NotificationState:
    return replace(state, last_fetched_at=fetched_at)


def notification_loading_changed(state: NotificationState, loading: bool) -> NotificationState:
    return replace(state, loading=loading)


def activities_loaded(state: NotificationState, activities: List[ActivityResponse]) -> NotificationState:
    return replace(state, activities=tuple(activities))


def notifications_marked_read(state: NotificationState, notification_ids: Iterable[int]) -> NotificationState:
    ids = set(notification_ids)
    newly_read = 0
    notifications = []
    for n in state.notifications:
        if n.id in ids and not n.read:
            newly_read += 1
            n = n.model_copy(update={"read": True})
        notifications.append(n)
    return replace(
        state,
        notifications=tuple(notifications),
        unread_count=max(0, state.unread_count - newly_read),
    )


def all_notifications_marked_read(state: NotificationState) -> NotificationState:
    notifications = tuple(
        n if n.read else n.model_copy(update={"read": True}) for n in state.notifications
    )
    return replace(state, notifications=notifications, unread_count=0)


def notification_removed(state: NotificationState, notification_id: int) -> NotificationState:
    index = _find_index(state.notifications, lambda n: n.id == notification_id)
    if index is None:
        return state
    was_unread = not state.notifications[index].read
    return replace(
        state,
        notifications=state.notifications[:index] + state.notifications[index + 1 :],
        unread_count=max(0, state.unread_count - 1) if was_unread else state.unread_count,
    )


def notification_added(state: NotificationState, notification: NotificationResponse) -> NotificationState:
    if _find_index(state.notifications, lambda n: n.id == notification.id) is not None:
        return state
    return replace(
        state,
        notifications=(notification,) + state.notifications,
        unread_count=state.unread_count + (0 if notification.read else 1),
    )


def notifications_cleared(state: NotificationState) -> NotificationState:
    return NotificationState()
