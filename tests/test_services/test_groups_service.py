from datetime import datetime, timezone

import pytest

from titletrack.core.exceptions import (
    GroupDuplicatedName,
    GroupNameInvalid,
    GroupNotFound,
    GroupNotOwnedByUser,
    InvalidTitleUrl,
    NothingToUpdate,
    SeasonRequired,
    TitleAlreadyInGroup,
    TitleNotFound,
    TitleNotInGroup,
    UpdatingWatchedAtWhenWatchedIsFalse,
)
from titletrack.schemas.groups import UpdateGroupTitleRequest
from titletrack.schemas.ratings import NewRating
from titletrack.services import groups_service, ratings_service
from titletrack.services.groups_service import sort_group_entries
from tests.fixtures.mocks.imdb import MOVIE_ID

WATCHED_AT = datetime(2024, 5, 1, 20, 30, tzinfo=timezone.utc)


# ─────────────────────────────────────────────────────────────
# Groups & members
# ─────────────────────────────────────────────────────────────
@pytest.mark.anyio
async def test_create_group_adds_owner_as_member(db, create_user):
    owner = await create_user()
    group = await groups_service.create_group(db, "  Friday Films ", owner.id)

    assert group.name == "Friday Films"
    assert group.owner_id == owner.id
    assert group.users == [owner.id]
    assert group.titles == []
    assert group.id in (await db.users.get_by_id(owner.id))["groups"]


@pytest.mark.anyio
async def test_create_group_name_rules(db, create_user):
    owner = await create_user()
    with pytest.raises(GroupNameInvalid):
        await groups_service.create_group(db, "   ", owner.id)

    await groups_service.create_group(db, "Same", owner.id)
    with pytest.raises(GroupDuplicatedName):
        await groups_service.create_group(db, "Same", owner.id)

    other = await create_user()
    assert (await groups_service.create_group(db, "Same", other.id)).owner_id == other.id


@pytest.mark.anyio
async def test_only_owner_adds_members(db, create_user, create_group):
    owner = await create_user()
    member = await create_user()
    newcomer = await create_user()
    stranger = await create_user()
    gid = await create_group(owner.id)

    group = await groups_service.add_user_to_group(db, gid, owner.id, member.id)
    assert set(group.users) == {owner.id, member.id}

    with pytest.raises(GroupNotOwnedByUser):
        await groups_service.add_user_to_group(db, gid, member.id, newcomer.id)
    with pytest.raises(GroupNotFound):
        await groups_service.add_user_to_group(db, gid, stranger.id, newcomer.id)

    users = await groups_service.get_users_from_group(db, gid, member.id)
    assert {u.id for u in users.users} == {owner.id, member.id}


@pytest.mark.anyio
async def test_non_member_cannot_see_group(db, create_user, create_group):
    owner = await create_user()
    stranger = await create_user()
    gid = await create_group(owner.id)
    with pytest.raises(GroupNotFound):
        await groups_service.get_group(db, gid, stranger.id)


# ─────────────────────────────────────────────────────────────
# Adding / removing titles
# ─────────────────────────────────────────────────────────────
@pytest.mark.anyio
async def test_add_title_imports_it_once(db, fake_imdb, create_user, create_group):
    """✅ First group to add a title imports it; a second group reuses the stored one."""
    alice = await create_user()
    bob = await create_user()
    gid_a = await create_group(alice.id)
    gid_b = await create_group(bob.id)
    url = f"https://www.imdb.com/title/{MOVIE_ID}/"

    entry = await groups_service.add_title_to_group(db, fake_imdb, gid_a, alice.id, url)
    assert entry.title_id == MOVIE_ID
    assert entry.watched is False
    assert await db.titles.exists(MOVIE_ID)

    await groups_service.add_title_to_group(db, fake_imdb, gid_b, bob.id, url)
    assert [c for c in fake_imdb.calls if c[0] == "get_title"] == [("get_title", MOVIE_ID)]

    with pytest.raises(TitleAlreadyInGroup):
        await groups_service.add_title_to_group(db, fake_imdb, gid_a, alice.id, url)


@pytest.mark.anyio
async def test_add_title_errors(db, fake_imdb, create_user, create_group):
    owner = await create_user()
    stranger = await create_user()
    gid = await create_group(owner.id)

    with pytest.raises(InvalidTitleUrl):
        await groups_service.add_title_to_group(db, fake_imdb, gid, owner.id, "https://example.com/x")
    with pytest.raises(TitleNotFound):
        await groups_service.add_title_to_group(
            db, fake_imdb, gid, owner.id, "https://www.imdb.com/title/tt9999999/"
        )
    with pytest.raises(GroupNotFound):
        await groups_service.add_title_to_group(
            db, fake_imdb, gid, stranger.id, f"https://www.imdb.com/title/{MOVIE_ID}/"
        )


@pytest.mark.anyio
async def test_remove_title(db, create_user, create_group, movie):
    owner = await create_user()
    gid = await create_group(owner.id, title_ids=[movie["_id"]])

    await groups_service.remove_title_from_group(db, gid, movie["_id"], owner.id)
    assert not await groups_service.group_contains_title(db, gid, movie["_id"], owner.id)
    with pytest.raises(TitleNotInGroup):
        await groups_service.remove_title_from_group(db, gid, movie["_id"], owner.id)


# ─────────────────────────────────────────────────────────────
# Watched state
# ─────────────────────────────────────────────────────────────
@pytest.mark.anyio
async def test_watched_at_requires_watched(db, create_user, create_group, movie):
    owner = await create_user()
    gid = await create_group(owner.id, title_ids=[movie["_id"]])

    with pytest.raises(NothingToUpdate):
        await groups_service.update_group_title_watched(
            db, gid, owner.id, UpdateGroupTitleRequest(title_id=movie["_id"])
        )
    with pytest.raises(UpdatingWatchedAtWhenWatchedIsFalse):
        await groups_service.update_group_title_watched(
            db, gid, owner.id, UpdateGroupTitleRequest(title_id=movie["_id"], watched_at=WATCHED_AT)
        )

    entry = await groups_service.update_group_title_watched(
        db, gid, owner.id, UpdateGroupTitleRequest(title_id=movie["_id"], watched=True, watched_at=WATCHED_AT)
    )
    assert entry.watched is True
    assert entry.watched_at is not None

    # already watched: date alone is fine
    entry = await groups_service.update_group_title_watched(
        db, gid, owner.id, UpdateGroupTitleRequest(title_id=movie["_id"], watched_at=WATCHED_AT)
    )
    assert entry.watched is True


@pytest.mark.anyio
async def test_unwatching_clears_watched_at(db, create_user, create_group, movie):
    owner = await create_user()
    gid = await create_group(owner.id, title_ids=[movie["_id"]])
    await groups_service.update_group_title_watched(
        db, gid, owner.id, UpdateGroupTitleRequest(title_id=movie["_id"], watched=True, watched_at=WATCHED_AT)
    )

    entry = await groups_service.update_group_title_watched(
        db, gid, owner.id, UpdateGroupTitleRequest(title_id=movie["_id"], watched=False)
    )
    assert entry.watched is False
    assert entry.watched_at is None


@pytest.mark.anyio
async def test_series_watched_per_season(db, create_user, create_group, series):
    owner = await create_user()
    gid = await create_group(owner.id, title_ids=[series["_id"]])

    with pytest.raises(SeasonRequired):
        await groups_service.update_group_title_watched(
            db, gid, owner.id, UpdateGroupTitleRequest(title_id=series["_id"], watched=True)
        )
    with pytest.raises(UpdatingWatchedAtWhenWatchedIsFalse):
        await groups_service.update_group_title_watched(
            db, gid, owner.id, UpdateGroupTitleRequest(title_id=series["_id"], watched_at=WATCHED_AT, season=1)
        )

    entry = await groups_service.update_group_title_watched(
        db, gid, owner.id, UpdateGroupTitleRequest(title_id=series["_id"], watched=True, season=2)
    )
    assert entry.seasons_watched["2"].watched is True
    assert entry.seasons_watched["2"].added_at is not None
    assert "1" not in entry.seasons_watched


@pytest.mark.anyio
async def test_update_watched_outside_group(db, create_user, create_group, movie):
    owner = await create_user()
    stranger = await create_user()
    gid = await create_group(owner.id, title_ids=[movie["_id"]])
    with pytest.raises(TitleNotInGroup):
        await groups_service.update_group_title_watched(
            db, gid, stranger.id, UpdateGroupTitleRequest(title_id=movie["_id"], watched=True)
        )


# ─────────────────────────────────────────────────────────────
# Listing
# ─────────────────────────────────────────────────────────────
def test_sort_group_entries_puts_missing_last():
    entries = [
        {"titleId": "tt3", "watchedAt": datetime(2024, 1, 3)},
        {"titleId": "tt1"},
        {"titleId": "tt2", "watchedAt": datetime(2024, 1, 1)},
        {"titleId": "tt0"},
    ]
    assert sort_group_entries(entries, "watchedAt") == ["tt2", "tt3", "tt0", "tt1"]
    assert sort_group_entries(entries, "watchedAt", ascending=False) == ["tt3", "tt2", "tt0", "tt1"]


@pytest.mark.anyio
async def test_titles_listing_filters_and_paginates(db, create_user, create_group, seed_title):
    owner = await create_user()
    ids = ["tt0000001", "tt0000002", "tt0000003"]
    for i, tid in enumerate(ids):
        await seed_title(tid, primaryTitle=f"Film {i}")
    gid = await create_group(owner.id, title_ids=ids)
    await groups_service.update_group_title_watched(
        db, gid, owner.id, UpdateGroupTitleRequest(title_id="tt0000002", watched=True, watched_at=WATCHED_AT)
    )

    watched = await groups_service.get_titles_from_group(db, gid, owner.id, watched=True)
    assert [row.title.id for row in watched.content] == ["tt0000002"]
    assert watched.content[0].watched is True

    unwatched = await groups_service.get_titles_from_group(db, gid, owner.id, watched=False)
    assert {row.title.id for row in unwatched.content} == {"tt0000001", "tt0000003"}

    everything = await groups_service.get_titles_from_group(db, gid, owner.id, size=2, page=2)
    assert everything.total_results == 3
    assert everything.total_pages == 2
    assert len(everything.content) == 1


@pytest.mark.anyio
async def test_titles_listing_sorted_by_watched_at(db, create_user, create_group, seed_title):
    owner = await create_user()
    ids = ["tt0000001", "tt0000002", "tt0000003"]
    for tid in ids:
        await seed_title(tid)
    gid = await create_group(owner.id, title_ids=ids)
    for tid, day in (("tt0000003", 1), ("tt0000001", 2)):
        await groups_service.update_group_title_watched(
            db,
            gid,
            owner.id,
            UpdateGroupTitleRequest(title_id=tid, watched=True, watched_at=datetime(2024, 1, day, tzinfo=timezone.utc)),
        )

    page = await groups_service.get_titles_from_group(db, gid, owner.id, order_by="watchedAt")
    assert [row.title.id for row in page.content] == ["tt0000003", "tt0000001", "tt0000002"]

    page = await groups_service.get_titles_from_group(db, gid, owner.id, order_by="watchedAt", ascending=False)
    assert [row.title.id for row in page.content] == ["tt0000001", "tt0000003", "tt0000002"]


@pytest.mark.anyio
async def test_empty_group_listing(db, create_user, create_group):
    owner = await create_user()
    gid = await create_group(owner.id)
    page = await groups_service.get_titles_from_group(db, gid, owner.id)
    assert page.total_results == 0
    assert page.content == []


@pytest.mark.anyio
async def test_group_listing_attaches_member_ratings(db, create_user, create_group, movie):
    owner = await create_user()
    gid = await create_group(owner.id, title_ids=[movie["_id"]])
    await ratings_service.add_rating(db, owner.id, NewRating(group_id=gid, title_id=movie["_id"], note=9))

    page = await groups_service.get_titles_from_group(db, gid, owner.id)
    assert [r.note for r in page.content[0].ratings] == [9]
    assert page.content[0].title.id == MOVIE_ID
