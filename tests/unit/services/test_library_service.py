"""
Unit tests for LibraryService and RatingService.
"""

import pytest

from tvdom.core.exceptions import ConflictError, NotFoundError
from tvdom.models.enums import MediaType, WatchlistPriority
from tvdom.services.library_service import LibraryService
from tvdom.services.rating_service import PersonRatingService, RatingService


def media(media_id: str = "550", **extra) -> dict:
    return {
        "media_id": media_id,
        "media_type": MediaType.MOVIE,
        "media_title": f"Movie {media_id}",
        **extra,
    }


@pytest.fixture
def library(db_session, invalidator):
    return LibraryService(db_session, invalidator=invalidator)


@pytest.fixture
def ratings(db_session, invalidator):
    return RatingService(db_session, invalidator=invalidator)


@pytest.mark.unit
class TestWatchlist:
    @pytest.mark.asyncio
    async def test_add_and_remove(self, library, make_user, reload_user):
        alice = await make_user("alice")

        item = await library.add_to_watchlist(alice.id, media(priority=WatchlistPriority.HIGH))

        assert item.media_id == "550"
        assert (await reload_user(alice.id)).watchlist_count == 1

        await library.remove_from_watchlist(alice.id, "550")

        assert await library.list_watchlist(alice.id) == []
        assert (await reload_user(alice.id)).watchlist_count == 0

    @pytest.mark.asyncio
    async def test_duplicate_conflicts(self, library, make_user, reload_user):
        alice = await make_user("alice")
        await library.add_to_watchlist(alice.id, media())

        with pytest.raises(ConflictError):
            await library.add_to_watchlist(alice.id, media())

        assert (await reload_user(alice.id)).watchlist_count == 1

    @pytest.mark.asyncio
    async def test_remove_missing(self, library, make_user):
        alice = await make_user("alice")

        with pytest.raises(NotFoundError):
            await library.remove_from_watchlist(alice.id, "550")

    @pytest.mark.asyncio
    async def test_unknown_user(self, library):
        with pytest.raises(NotFoundError):
            await library.add_to_watchlist(999, media())


@pytest.mark.unit
class TestWatched:
    @pytest.mark.asyncio
    async def test_first_watch_supersedes_watchlist(self, library, make_user, reload_user):
        alice = await make_user("alice")
        await library.add_to_watchlist(alice.id, media())

        result = await library.mark_as_watched(alice.id, media(rating=8))

        assert result["is_rewatch"] is False
        assert result["removed_from_watchlist"] is True
        assert result["item"].rating == 8
        assert await library.list_watchlist(alice.id) == []
        user = await reload_user(alice.id)
        assert user.watched_count == 1
        assert user.watchlist_count == 0

    @pytest.mark.asyncio
    async def test_rewatch_counts_rewatches_only(self, library, make_user, reload_user):
        alice = await make_user("alice")
        await library.mark_as_watched(alice.id, media())

        result = await library.mark_as_watched(alice.id, media(is_favorite=True))

        assert result["is_rewatch"] is True
        assert result["item"].rewatch_count == 1
        assert result["item"].is_favorite is True
        assert result["item"].last_rewatched_at is not None
        assert len(await library.list_watched(alice.id)) == 1
        assert (await reload_user(alice.id)).watched_count == 1

    @pytest.mark.asyncio
    async def test_rewatch_supersedes_readded_watchlist_entry(
        self, library, make_user, reload_user
    ):
        alice = await make_user("alice")
        await library.mark_as_watched(alice.id, media())
        await library.add_to_watchlist(alice.id, media())
        assert (await reload_user(alice.id)).watchlist_count == 1

        result = await library.mark_as_watched(alice.id, media())

        assert result["is_rewatch"] is True
        assert result["removed_from_watchlist"] is True
        assert await library.list_watchlist(alice.id) == []
        user = await reload_user(alice.id)
        assert user.watchlist_count == 0
        assert user.watched_count == 1

    @pytest.mark.asyncio
    async def test_remove_from_watched(self, library, make_user, reload_user):
        alice = await make_user("alice")
        await library.mark_as_watched(alice.id, media())

        await library.remove_from_watched(alice.id, "550")

        assert (await reload_user(alice.id)).watched_count == 0
        with pytest.raises(NotFoundError):
            await library.remove_from_watched(alice.id, "550")


@pytest.mark.unit
class TestPersonFavorites:
    @pytest.mark.asyncio
    async def test_add_duplicate_and_remove(self, library, make_user):
        alice = await make_user("alice")
        person = {"person_id": "287", "person_name": "Brad Pitt", "person_known_for": "Acting"}

        await library.add_person_favorite(alice.id, person)
        with pytest.raises(ConflictError):
            await library.add_person_favorite(alice.id, person)

        await library.remove_person_favorite(alice.id, "287")
        assert await library.list_person_favorites(alice.id) == []


@pytest.mark.unit
class TestRatings:
    @pytest.mark.asyncio
    async def test_rerate_overwrites(self, ratings, make_user, reload_user):
        alice = await make_user("alice")

        first = await ratings.rate_media(alice.id, "550", media(rating=7))
        second = await ratings.rate_media(alice.id, "550", media(rating=9))

        assert first["created"] is True
        assert second["created"] is False
        assert second["rating"].id == first["rating"].id
        assert second["total_ratings"] == 1
        assert second["average_rating"] == 9.0
        user = await reload_user(alice.id)
        assert user.total_ratings == 1
        assert user.average_rating == 9.0

    @pytest.mark.asyncio
    async def test_average_is_rounded(self, ratings, make_user):
        alice = await make_user("alice")
        await ratings.rate_media(alice.id, "1", media("1", rating=7))
        await ratings.rate_media(alice.id, "2", media("2", rating=8))
        result = await ratings.rate_media(alice.id, "3", media("3", rating=8))

        assert result["average_rating"] == 7.7
        assert result["total_ratings"] == 3

    @pytest.mark.asyncio
    async def test_delete_recomputes(self, ratings, make_user, reload_user, invalidator):
        alice = await make_user("alice")
        await ratings.rate_media(alice.id, "550", media(rating=7))

        result = await ratings.delete_rating(alice.id, "550")

        assert result == {"average_rating": 0.0}
        user = await reload_user(alice.id)
        assert user.total_ratings == 0
        assert user.average_rating == 0.0
        invalidator.invalidate_users.assert_awaited_with(alice.id)

        with pytest.raises(NotFoundError):
            await ratings.delete_rating(alice.id, "550")

    @pytest.mark.asyncio
    async def test_person_ratings_do_not_touch_counters(
        self, db_session, invalidator, make_user, reload_user
    ):
        service = PersonRatingService(db_session, invalidator=invalidator)
        alice = await make_user("alice")
        values = {"person_name": "Brad Pitt", "rating": 8}

        assert (await service.rate_person(alice.id, "287", values))["created"] is True
        result = await service.rate_person(alice.id, "287", {**values, "rating": 10})

        assert result["created"] is False
        assert result["rating"].rating == 10
        assert [r.person_id for r in await service.list_ratings(alice.id, "287")] == ["287"]
        assert (await reload_user(alice.id)).total_ratings == 0

        await service.delete_rating(alice.id, "287")
        with pytest.raises(NotFoundError):
            await service.delete_rating(alice.id, "287")
