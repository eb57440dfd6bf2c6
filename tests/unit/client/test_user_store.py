"""
Unit tests for the UserStore against a mocked Resource API.
"""

import asyncio
from datetime import timedelta

import pytest

from tvdom.client.session_storage import SESSION_STORAGE_KEY, USER_STORAGE_KEY
from tvdom.client.state import AuthStatus, MediaRef, PersonRef
from tvdom.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    UnavailableError,
    ValidationError,
)
from tvdom.models.enums import MediaType

FIGHT_CLUB = MediaRef("550", MediaType.MOVIE, "Fight Club", poster="/fc.jpg", year=1999)
INCEPTION = MediaRef("27205", MediaType.MOVIE, "Inception")


@pytest.mark.unit
@pytest.mark.client
class TestLogin:
    @pytest.mark.asyncio
    async def test_login_persists_session_and_loads_data(self, user_store, api, storage, payloads):
        api.login.return_value = payloads.auth(1)
        api.list_ratings.return_value = [payloads.rating("550", 8)]
        api.list_follows.side_effect = lambda user_id, type: (
            [payloads.follow(1, 2)] if type == "following" else []
        )

        user = await user_store.login("user1@example.com", "secret-password")

        assert user.id == 1
        assert user_store.status == AuthStatus.AUTHENTICATED
        assert storage.get(USER_STORAGE_KEY)["id"] == 1
        assert storage.get(SESSION_STORAGE_KEY)["access_token"] == "token-1"
        api.set_token.assert_called_once_with("token-1")
        api.set_session_cookies.assert_called()
        assert [r.media_id for r in user_store.ratings] == ["550"]
        assert [f.following_id for f in user_store.following] == [2]
        assert user_store.notifications.user_id == 1
        assert not user_store.is_loading

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [AuthenticationError("Invalid email or password"), UnavailableError()])
    async def test_failed_login_returns_to_anonymous(self, user_store, api, storage, error):
        statuses = []
        user_store.subscribe(lambda state: statuses.append(state.status))
        api.login.side_effect = error

        with pytest.raises(type(error)):
            await user_store.login("user1@example.com", "wrong-password")

        assert user_store.status == AuthStatus.ANONYMOUS
        assert user_store.error == error.message
        assert storage.get(SESSION_STORAGE_KEY) is None
        assert AuthStatus.AUTHENTICATING in statuses
        api.set_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_register_validates_locally(self, user_store, api):
        with pytest.raises(ValidationError):
            await user_store.register("bob", "bob@example.com", "Bob", "password1", "password2")
        with pytest.raises(ValidationError):
            await user_store.register("bob", "bob@example.com", "Bob", "short", "short")

        api.register.assert_not_called()

    @pytest.mark.asyncio
    async def test_register_logs_in(self, user_store, api, payloads):
        api.register.return_value = payloads.auth(1)

        await user_store.register("user1", "user1@example.com", "User 1", "password1", "password1")

        assert user_store.is_authenticated
        api.register.assert_awaited_once_with(
            "user1", "user1@example.com", "User 1", "password1", "password1"
        )

    @pytest.mark.asyncio
    async def test_failed_collection_load_falls_back_to_empty(self, user_store, api, payloads):
        api.login.return_value = payloads.auth(1)
        api.list_ratings.side_effect = UnavailableError()
        api.list_watchlist.return_value = [payloads.watchlist_item("550")]

        await user_store.login("user1@example.com", "secret-password")

        assert user_store.ratings == ()
        assert [w.media_id for w in user_store.watchlist] == ["550"]

    @pytest.mark.asyncio
    async def test_logout_clears_everything_without_network(self, user_store, api, storage, logged_in):
        await logged_in()
        user_store.follow_cache.set((1, 2), True)

        user_store.logout()

        assert user_store.status == AuthStatus.ANONYMOUS
        assert user_store.user is None
        assert storage.get(USER_STORAGE_KEY) is None
        assert storage.get(SESSION_STORAGE_KEY) is None
        assert len(user_store.follow_cache) == 0
        assert user_store.notifications.user_id is None
        api.clear_token.assert_called_once()
        api.clear_cookies.assert_called_once()

    @pytest.mark.asyncio
    async def test_mutations_require_login(self, user_store):
        with pytest.raises(AuthenticationError):
            await user_store.add_rating(FIGHT_CLUB, 8)
        with pytest.raises(AuthenticationError):
            await user_store.follow_user(2)


@pytest.mark.unit
@pytest.mark.client
class TestRehydrate:
    @pytest.mark.asyncio
    async def test_restores_and_refreshes_user(self, user_store, api, storage, payloads):
        storage.set(USER_STORAGE_KEY, payloads.user(1, follower_count=1))
        storage.set(SESSION_STORAGE_KEY, payloads.session(1))
        api.get_session_user.return_value = payloads.user(1, follower_count=5)

        assert await user_store.rehydrate() is True

        assert user_store.user.follower_count == 5
        assert storage.get(USER_STORAGE_KEY)["follower_count"] == 5
        api.set_token.assert_called_with("token-1")
        api.list_ratings.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rejected_token_logs_out(self, user_store, api, storage, payloads):
        storage.set(USER_STORAGE_KEY, payloads.user(1))
        storage.set(SESSION_STORAGE_KEY, payloads.session(1))
        api.get_session_user.side_effect = AuthenticationError("Could not validate token")

        assert await user_store.rehydrate() is False

        assert user_store.status == AuthStatus.ANONYMOUS
        assert storage.get(USER_STORAGE_KEY) is None

    @pytest.mark.asyncio
    async def test_deleted_user_logs_out(self, user_store, api, storage, payloads):
        storage.set(USER_STORAGE_KEY, payloads.user(1))
        storage.set(SESSION_STORAGE_KEY, payloads.session(1))
        api.get_session_user.side_effect = NotFoundError("User not found")

        assert await user_store.rehydrate() is False
        assert not user_store.is_authenticated

    @pytest.mark.asyncio
    async def test_unreachable_server_keeps_stored_user(self, user_store, api, storage, payloads):
        storage.set(USER_STORAGE_KEY, payloads.user(1, display_name="Stored"))
        storage.set(SESSION_STORAGE_KEY, payloads.session(1))
        api.get_session_user.side_effect = UnavailableError()

        assert await user_store.rehydrate() is True

        assert user_store.is_authenticated
        assert user_store.user.display_name == "Stored"
        assert storage.get(USER_STORAGE_KEY) is not None

    @pytest.mark.asyncio
    async def test_expired_session_logs_out_without_network(self, user_store, api, storage, payloads):
        storage.set(USER_STORAGE_KEY, payloads.user(1))
        storage.set(SESSION_STORAGE_KEY, payloads.session(1, expires_in=timedelta(minutes=-1)))

        assert await user_store.rehydrate() is False

        api.get_session_user.assert_not_called()
        assert storage.get(SESSION_STORAGE_KEY) is None

    @pytest.mark.asyncio
    async def test_nothing_stored(self, user_store, api):
        assert await user_store.rehydrate() is False
        api.get_session_user.assert_not_called()


@pytest.mark.unit
@pytest.mark.client
class TestRatings:
    @pytest.mark.asyncio
    async def test_rerating_replaces_and_counts_once(self, user_store, api, payloads, logged_in):
        await logged_in()
        api.rate_media.side_effect = [
            {"rating": payloads.rating("550", 7, rating_id=1), "created": True},
            {"rating": payloads.rating("550", 9, rating_id=1), "created": False},
        ]
        api.get_user.side_effect = [
            payloads.user(1, average_rating=7.0, total_ratings=1),
            payloads.user(1, average_rating=9.0, total_ratings=1),
        ]

        await user_store.add_rating(FIGHT_CLUB, 7)
        await user_store.add_rating(FIGHT_CLUB, 9)

        assert [(r.media_id, r.rating) for r in user_store.ratings] == [("550", 9)]
        assert user_store.user.total_ratings == 1
        assert user_store.user.average_rating == 9.0
        assert api.get_user.await_count == 2

    @pytest.mark.asyncio
    async def test_new_rating_is_prepended(self, user_store, api, payloads, logged_in):
        await logged_in()
        api.rate_media.side_effect = [
            {"rating": payloads.rating("550", 7), "created": True},
            {"rating": payloads.rating("27205", 8), "created": True},
        ]
        api.get_user.return_value = payloads.user(1, average_rating=7.5)

        await user_store.add_rating(FIGHT_CLUB, 7)
        await user_store.add_rating(INCEPTION, 8, review="Dreamy")

        assert [r.media_id for r in user_store.ratings] == ["27205", "550"]
        assert user_store.user.total_ratings == 2
        body = api.rate_media.await_args.args[0]
        assert body["media_title"] == "Inception"
        assert body["review"] == "Dreamy"

    @pytest.mark.asyncio
    async def test_score_out_of_range_rejected_locally(self, user_store, api, logged_in):
        await logged_in()

        with pytest.raises(ValidationError):
            await user_store.add_rating(FIGHT_CLUB, 11)

        api.rate_media.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_unknown_rating_is_noop(self, user_store, api, logged_in):
        await logged_in(total_ratings=3)

        assert await user_store.delete_rating(12345) is False

        api.delete_rating.assert_not_called()
        assert user_store.user.total_ratings == 3

    @pytest.mark.asyncio
    async def test_delete_rating_refreshes_average(self, user_store, api, payloads, logged_in):
        api.list_ratings.return_value = [payloads.rating("550", 7, rating_id=1)]
        await logged_in(total_ratings=1, average_rating=7.0)
        api.delete_rating.return_value = {"success": True, "average_rating": 0.0}
        api.get_user.return_value = payloads.user(1, average_rating=0.0)

        assert await user_store.delete_rating(1) is True

        api.delete_rating.assert_awaited_once_with(1, "550")
        assert user_store.ratings == ()
        assert user_store.user.total_ratings == 0
        assert user_store.user.average_rating == 0.0

    @pytest.mark.asyncio
    async def test_update_rating_delegates_to_add(self, user_store, api, payloads, logged_in):
        api.list_ratings.return_value = [payloads.rating("550", 7, rating_id=1)]
        await logged_in(total_ratings=1)
        api.rate_media.return_value = {"rating": payloads.rating("550", 4, rating_id=1), "created": False}
        api.get_user.return_value = payloads.user(1, average_rating=4.0)

        await user_store.update_rating(1, 4)

        assert api.rate_media.await_args.args[0]["media_id"] == "550"
        assert user_store.get_rating("550").rating == 4

    @pytest.mark.asyncio
    async def test_update_unknown_rating(self, user_store, logged_in):
        await logged_in()

        with pytest.raises(NotFoundError):
            await user_store.update_rating(999, 5)

    @pytest.mark.asyncio
    async def test_failed_average_refresh_keeps_rating(self, user_store, api, payloads, logged_in):
        await logged_in()
        api.rate_media.return_value = {"rating": payloads.rating("550", 7), "created": True}
        api.get_user.side_effect = UnavailableError()

        await user_store.add_rating(FIGHT_CLUB, 7)

        assert len(user_store.ratings) == 1
        assert user_store.user.total_ratings == 1


@pytest.mark.unit
@pytest.mark.client
class TestLists:
    @pytest.mark.asyncio
    async def test_mark_as_watched_supersedes_watchlist(self, user_store, api, payloads, logged_in):
        await logged_in()
        api.add_to_watchlist.return_value = payloads.watchlist_item("550")
        api.mark_as_watched.return_value = {
            "item": payloads.watched_item("550"),
            "is_rewatch": False,
            "removed_from_watchlist": True,
        }

        await user_store.add_to_watchlist(FIGHT_CLUB, priority="high")
        assert user_store.user.watchlist_count == 1

        await user_store.mark_as_watched(FIGHT_CLUB)

        assert user_store.has_watched("550")
        assert not user_store.is_in_watchlist("550")
        assert user_store.user.watched_count == 1
        assert user_store.user.watchlist_count == 0

    @pytest.mark.asyncio
    async def test_rewatch_does_not_count(self, user_store, api, payloads, logged_in):
        api.list_watched.return_value = [payloads.watched_item("550")]
        await logged_in(watched_count=1)
        api.mark_as_watched.return_value = {
            "item": payloads.watched_item("550", rewatch_count=1),
            "is_rewatch": True,
            "removed_from_watchlist": False,
        }

        await user_store.mark_as_watched(FIGHT_CLUB)

        assert len(user_store.watched) == 1
        assert user_store.watched[0].rewatch_count == 1
        assert user_store.user.watched_count == 1

    @pytest.mark.asyncio
    async def test_watchlist_conflict_leaves_state(self, user_store, api, payloads, logged_in):
        api.list_watchlist.return_value = [payloads.watchlist_item("550")]
        await logged_in(watchlist_count=1)
        api.add_to_watchlist.side_effect = ConflictError("Item already in watchlist")

        with pytest.raises(ConflictError):
            await user_store.add_to_watchlist(FIGHT_CLUB)

        assert len(user_store.watchlist) == 1
        assert user_store.user.watchlist_count == 1

    @pytest.mark.asyncio
    async def test_remove_from_watchlist(self, user_store, api, payloads, logged_in):
        api.list_watchlist.return_value = [payloads.watchlist_item("550")]
        await logged_in(watchlist_count=1)

        await user_store.remove_from_watchlist("550")

        api.remove_from_watchlist.assert_awaited_once_with(1, "550")
        assert user_store.watchlist == ()
        assert user_store.user.watchlist_count == 0

    @pytest.mark.asyncio
    async def test_person_rating_upsert(self, user_store, api, payloads, logged_in):
        await logged_in()
        person = PersonRef("287", "Brad Pitt")
        api.rate_person.side_effect = [
            {"rating": payloads.person_rating("287", 8), "created": True},
            {"rating": payloads.person_rating("287", 10), "created": False},
        ]

        await user_store.add_person_rating(person, 8)
        await user_store.add_person_rating(person, 10)

        assert len(user_store.person_ratings) == 1
        assert user_store.get_person_rating("287").rating == 10

        assert await user_store.delete_person_rating("287") is True
        assert await user_store.delete_person_rating("287") is False
        api.delete_person_rating.assert_awaited_once_with(1, "287")

    @pytest.mark.asyncio
    async def test_person_favorites(self, user_store, api, payloads, logged_in):
        await logged_in()
        api.add_person_favorite.return_value = payloads.person_favorite("287")

        await user_store.add_person_to_favorites(PersonRef("287", "Brad Pitt", known_for="Acting"))
        assert user_store.is_person_favorite("287")
        assert api.add_person_favorite.await_args.args[0]["person_known_for"] == "Acting"

        await user_store.remove_person_from_favorites("287")
        assert not user_store.is_person_favorite("287")

    @pytest.mark.asyncio
    async def test_upload_avatar_stores_url(self, user_store, api, payloads, storage, logged_in):
        await logged_in()
        url = "https://cdn.example.com/tvdom/avatars/1/a.png"
        api.upload_image.return_value = {"url": url, "user": payloads.user(1, avatar_url=url)}

        assert await user_store.upload_avatar(b"png-bytes", "image/png") == url

        assert user_store.user.avatar_url == url
        assert storage.get(USER_STORAGE_KEY)["avatar_url"] == url

    @pytest.mark.asyncio
    async def test_update_profile_skips_none(self, user_store, api, payloads, logged_in):
        await logged_in()
        api.update_user.return_value = payloads.user(1, bio="Horror fan")

        await user_store.update_profile(bio="Horror fan", location=None)

        api.update_user.assert_awaited_once_with(1, {"bio": "Horror fan"})
        assert user_store.user.bio == "Horror fan"


@pytest.mark.unit
@pytest.mark.client
class TestFollowConsistency:
    @pytest.mark.asyncio
    async def test_follow_then_check_without_network(self, user_store, api, payloads, logged_in, clock):
        await logged_in()
        api.follow.return_value = payloads.follow(1, 2)

        await user_store.follow_user(2)

        assert user_store.user.following_count == 1
        for _ in range(3):
            assert await user_store.check_if_following(2) is True
            clock.advance(9)
        api.follow_status.assert_not_called()

    @pytest.mark.asyncio
    async def test_follow_invalidates_cached_negative(self, user_store, api, payloads, logged_in):
        await logged_in()
        api.follow_status.return_value = False
        assert await user_store.check_if_following(2) is False

        api.follow.return_value = payloads.follow(1, 2)
        await user_store.follow_user(2)

        assert await user_store.check_if_following(2) is True
        api.follow_status.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unfollow_forces_requery(self, user_store, api, payloads, logged_in):
        await logged_in()
        api.follow.return_value = payloads.follow(1, 2)
        await user_store.follow_user(2)
        assert await user_store.check_if_following(2) is True

        await user_store.unfollow_user(2)
        api.follow_status.return_value = False

        assert await user_store.check_if_following(2) is False
        api.follow_status.assert_awaited_once_with(1, 2)
        assert user_store.user.following_count == 0

    @pytest.mark.asyncio
    async def test_network_answer_cached_for_ttl(self, user_store, api, logged_in, clock):
        await logged_in()
        api.follow_status.return_value = True

        assert await user_store.check_if_following(3) is True
        clock.advance(29)
        assert await user_store.check_if_following(3) is True
        assert api.follow_status.await_count == 1

        clock.advance(1)
        assert await user_store.check_if_following(3) is True
        assert api.follow_status.await_count == 2

    @pytest.mark.asyncio
    async def test_self_follow_rejected_locally(self, user_store, api, logged_in):
        await logged_in()

        with pytest.raises(ValidationError):
            await user_store.follow_user(1)

        api.follow.assert_not_called()
        assert user_store.user.following_count == 0

    @pytest.mark.asyncio
    async def test_duplicate_follow_surfaces_conflict(self, user_store, api, payloads, logged_in):
        await logged_in()
        api.follow.side_effect = [payloads.follow(1, 2), ConflictError("Already following this user")]

        await user_store.follow_user(2)
        with pytest.raises(ConflictError):
            await user_store.follow_user(2)

        assert api.follow.await_count == 2
        assert len(user_store.following) == 1
        assert user_store.user.following_count == 1

    @pytest.mark.asyncio
    async def test_network_failure_leaves_state(self, user_store, api, logged_in):
        await logged_in()
        api.follow.side_effect = UnavailableError()

        with pytest.raises(UnavailableError):
            await user_store.follow_user(2)

        assert user_store.following == ()
        assert user_store.user.following_count == 0

    @pytest.mark.asyncio
    async def test_unfollow_missing_edge(self, user_store, api, logged_in):
        await logged_in()
        api.unfollow.side_effect = NotFoundError("Follow relationship not found")

        with pytest.raises(NotFoundError):
            await user_store.unfollow_user(2)

        assert user_store.user.following_count == 0

    @pytest.mark.asyncio
    async def test_failed_status_check_is_not_cached(self, user_store, api, logged_in):
        await logged_in()
        api.follow_status.side_effect = [UnavailableError(), True]

        assert await user_store.check_if_following(2) is False
        assert await user_store.check_if_following(2) is True

    @pytest.mark.asyncio
    async def test_check_self_is_false(self, user_store, api, logged_in):
        await logged_in()

        assert await user_store.check_if_following(1) is False
        api.follow_status.assert_not_called()


@pytest.mark.unit
@pytest.mark.client
class TestInFlightRequests:
    @pytest.mark.asyncio
    async def test_response_after_logout_is_dropped(self, user_store, api, payloads, logged_in):
        await logged_in()
        release = asyncio.Event()

        async def slow_follow(follower_id, following_id):
            await release.wait()
            return payloads.follow(follower_id, following_id)

        api.follow.side_effect = slow_follow
        task = asyncio.create_task(user_store.follow_user(2))
        await asyncio.sleep(0)

        user_store.logout()
        release.set()
        await task

        assert user_store.status == AuthStatus.ANONYMOUS
        assert user_store.following == ()

    @pytest.mark.asyncio
    async def test_subscribers_see_each_change(self, user_store, api, payloads, logged_in):
        await logged_in()
        seen = []
        unsubscribe = user_store.subscribe(lambda state: seen.append(state.user.following_count))
        api.follow.return_value = payloads.follow(1, 2)

        await user_store.follow_user(2)
        unsubscribe()
        await user_store.unfollow_user(2)

        assert seen == [0, 1]
