"""
End-to-end tests: client stores talking to the real app over ASGI.
"""

import pytest
import pytest_asyncio

from tvdom.client import ClientSession, MediaRef, MemorySessionStorage
from tvdom.core.exceptions import ConflictError
from tvdom.models.enums import MediaType

BASE_URL = "http://testserver/api/v1"

FIGHT_CLUB = MediaRef("550", MediaType.MOVIE, "Fight Club", year=1999)
INCEPTION = MediaRef("27205", MediaType.MOVIE, "Inception", year=2010)


@pytest.fixture
def open_session(asgi_transport):
    """Factory for client sessions against the in-process app."""

    def _open(storage=None) -> ClientSession:
        return ClientSession(
            BASE_URL, storage=storage, transport=asgi_transport, poll_notifications=False
        )

    return _open


@pytest_asyncio.fixture
async def alice(open_session, make_user, user_password):
    await make_user("alice")
    session = open_session()
    await session.users.login("alice@example.com", user_password)
    yield session
    await session.close()


@pytest_asyncio.fixture
async def bob(open_session, make_user, user_password):
    await make_user("bob")
    session = open_session()
    await session.users.login("bob@example.com", user_password)
    yield session
    await session.close()


@pytest.mark.integration
@pytest.mark.client
class TestClientFlow:
    @pytest.mark.asyncio
    async def test_follow_updates_both_sides(self, alice, bob):
        bob_id = bob.users.user.id

        await alice.users.follow_user(bob_id)

        assert alice.users.user.following_count == 1
        assert await alice.users.check_if_following(bob_id) is True
        with pytest.raises(ConflictError):
            await alice.users.follow_user(bob_id)
        assert alice.users.user.following_count == 1

        await bob.users.refresh_user()
        assert bob.users.user.follower_count == 1

        assert await bob.notifications.fetch_notifications(force=True) is True
        assert bob.notifications.unread_count == 1
        assert bob.notifications.notifications[0].data["actor_id"] == alice.users.user.id

        await bob.notifications.mark_all_as_read()
        await bob.notifications.fetch_notifications(force=True)
        assert bob.notifications.unread_count == 0

        await alice.users.unfollow_user(bob_id)
        assert await alice.users.check_if_following(bob_id) is False
        assert alice.users.user.following_count == 0

    @pytest.mark.asyncio
    async def test_rerating_keeps_one_rating(self, alice):
        await alice.users.add_rating(FIGHT_CLUB, 7)
        await alice.users.add_rating(FIGHT_CLUB, 9, review="Even better the second time")

        assert len(alice.users.ratings) == 1
        assert alice.users.get_rating("550").rating == 9
        assert alice.users.user.total_ratings == 1
        assert alice.users.user.average_rating == 9.0

        await alice.users.add_rating(INCEPTION, 6)
        assert alice.users.user.average_rating == 7.5

        rating_id = alice.users.get_rating("27205").id
        assert await alice.users.delete_rating(rating_id) is True
        assert alice.users.user.total_ratings == 1
        assert alice.users.user.average_rating == 9.0

    @pytest.mark.asyncio
    async def test_watchlist_to_watched(self, alice):
        await alice.users.add_to_watchlist(FIGHT_CLUB)
        with pytest.raises(ConflictError):
            await alice.users.add_to_watchlist(FIGHT_CLUB)

        await alice.users.mark_as_watched(FIGHT_CLUB, rating=8)
        await alice.users.mark_as_watched(FIGHT_CLUB)

        assert not alice.users.is_in_watchlist("550")
        assert alice.users.watched[0].rewatch_count == 1
        assert alice.users.user.watchlist_count == 0
        assert alice.users.user.watched_count == 1

        server_side = await alice.users.refresh_user()
        assert server_side.watched_count == 1
        assert server_side.watchlist_count == 0

    @pytest.mark.asyncio
    async def test_rewatch_clears_readded_watchlist_entry(self, alice):
        await alice.users.mark_as_watched(FIGHT_CLUB)
        await alice.users.add_to_watchlist(FIGHT_CLUB)
        assert alice.users.user.watchlist_count == 1

        await alice.users.mark_as_watched(FIGHT_CLUB)

        assert not alice.users.is_in_watchlist("550")
        assert alice.users.user.watchlist_count == 0
        assert alice.users.watched[0].rewatch_count == 1

        server_side = await alice.users.refresh_user()
        assert server_side.watchlist_count == 0
        assert server_side.watched_count == 1
        assert await alice.api.list_watchlist(server_side.id) == []

    @pytest.mark.asyncio
    async def test_session_survives_restart(self, open_session, make_user, user_password):
        await make_user("carol")
        storage = MemorySessionStorage()
        first = open_session(storage)
        await first.users.login("carol@example.com", user_password)
        await first.users.add_to_watchlist(INCEPTION)
        await first.close()

        second = open_session(storage)
        assert await second.start() is True

        assert second.users.user.username == "carol"
        assert second.users.is_in_watchlist("27205")

        second.users.logout()
        third = open_session(storage)
        assert await third.start() is False
        await second.close()
        await third.close()
