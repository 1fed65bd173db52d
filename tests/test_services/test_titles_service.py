import pytest

from titletrack.core.exceptions import InvalidTitleUrl, TitleAlreadyExists, TitleNotFound, UpstreamError
from titletrack.repositories.base import new_id, utcnow
from titletrack.schemas.comments import NewComment
from titletrack.schemas.ratings import NewRating
from titletrack.services import comments_service, ratings_service, titles_service
from titletrack.services.titles_service import extract_title_id, normalize_paging
from tests.fixtures.mocks.imdb import MOVIE_ID, SERIES_ID


@pytest.mark.parametrize(
    "url",
    [
        "https://www.imdb.com/title/tt0111161/",
        "http://imdb.com/title/tt0111161",
        "https://www.imdb.com/title/tt0111161/?ref_=nv_sr_srsg_0",
    ],
)
def test_extract_title_id(url):
    assert extract_title_id(url) == "tt0111161"


@pytest.mark.parametrize("url", ["", "tt0111161", "https://example.com/title/tt0111161/", "https://www.imdb.com/name/nm0000151/"])
def test_extract_title_id_rejects_other_urls(url):
    with pytest.raises(InvalidTitleUrl):
        extract_title_id(url)


def test_normalize_paging_clamps():
    assert normalize_paging(None, None) == (20, 1)
    assert normalize_paging(0, 0) == (1, 1)
    assert normalize_paging(500, 3) == (100, 3)


# ─────────────────────────────────────────────────────────────
# Import
# ─────────────────────────────────────────────────────────────
@pytest.mark.anyio
async def test_import_movie(db, fake_imdb):
    title = await titles_service.add_new_title(db, fake_imdb, MOVIE_ID)
    assert title.primary_title == "The Shawshank Redemption"
    assert title.directors_names == ["Frank Darabont"]
    assert title.origin_countries == ["United States"]
    assert title.seasons is None
    assert ("get_seasons", MOVIE_ID) not in fake_imdb.calls

    with pytest.raises(TitleAlreadyExists):
        await titles_service.add_new_title(db, fake_imdb, MOVIE_ID)


@pytest.mark.anyio
async def test_import_series_fetches_seasons(db, fake_imdb):
    title = await titles_service.add_new_title(db, fake_imdb, SERIES_ID)
    assert [s.season for s in title.seasons] == ["1", "2"]
    assert title.episodes is None


@pytest.mark.anyio
async def test_import_upstream_errors(db, fake_imdb):
    with pytest.raises(TitleNotFound):
        await titles_service.add_new_title(db, fake_imdb, "tt0000404")

    fake_imdb.broken.add(MOVIE_ID)
    with pytest.raises(UpstreamError):
        await titles_service.add_new_title(db, fake_imdb, MOVIE_ID)
    assert not await db.titles.exists(MOVIE_ID)


# ─────────────────────────────────────────────────────────────
# Listing
# ─────────────────────────────────────────────────────────────
@pytest.mark.anyio
async def test_page_of_titles_sorting(db, seed_title):
    await seed_title("tt0000001", primaryTitle="Charlie", startYear=2001)
    await seed_title("tt0000002", primaryTitle="Alpha", startYear=1999)
    await seed_title("tt0000003", primaryTitle="Bravo", startYear=2010)

    page = await titles_service.get_page_of_titles(db, order_by="primaryTitle")
    assert [t.primary_title for t in page.content] == ["Alpha", "Bravo", "Charlie"]
    assert page.total_results == 3
    assert page.total_pages == 1

    page = await titles_service.get_page_of_titles(db, order_by="startYear", ascending=False, size=2)
    assert [t.start_year for t in page.content] == [2010, 2001]
    assert page.total_pages == 2


@pytest.mark.anyio
async def test_page_of_titles_ignores_unknown_sort(db, seed_title):
    await seed_title("tt0000001")
    await seed_title("tt0000002")
    page = await titles_service.get_page_of_titles(db, order_by="$where")
    assert page.total_results == 2


@pytest.mark.anyio
async def test_page_of_titles_empty(db):
    page = await titles_service.get_page_of_titles(db)
    assert page.total_pages == 0
    assert page.content == []


@pytest.mark.anyio
async def test_ordered_page_counts_only_stored_titles(db, seed_title):
    """✅ Ids with no stored title are neither counted nor leave holes in a page."""
    for title_id in ("tt0000001", "tt0000002", "tt0000003"):
        await seed_title(title_id)
    ids = ["tt0000003", "tt0000404", "tt0000001", "tt0000405", "tt0000002"]

    first = await titles_service.get_page_of_titles(db, size=2, page=1, ids=ids, preserve_order=True)
    assert [t.id for t in first.content] == ["tt0000003", "tt0000001"]
    assert first.total_results == 3
    assert first.total_pages == 2

    second = await titles_service.get_page_of_titles(db, size=2, page=2, ids=ids, preserve_order=True)
    assert [t.id for t in second.content] == ["tt0000002"]


# ─────────────────────────────────────────────────────────────
# Cascade delete
# ─────────────────────────────────────────────────────────────
@pytest.mark.anyio
async def test_cascade_delete_removes_every_reference(db, create_user, create_group, movie, seed_title):
    """✅ Title, its ratings and comments, and its group entries go; others stay."""
    alice = await create_user()
    bob = await create_user()
    await seed_title("tt0000777")
    gid_a = await create_group(alice.id, title_ids=[movie["_id"], "tt0000777"])
    gid_b = await create_group(bob.id, title_ids=[movie["_id"]])

    await ratings_service.add_rating(db, alice.id, NewRating(group_id=gid_a, title_id=movie["_id"], note=9))
    await ratings_service.add_rating(db, bob.id, NewRating(group_id=gid_b, title_id=movie["_id"], note=7))
    await ratings_service.add_rating(db, alice.id, NewRating(group_id=gid_a, title_id="tt0000777", note=5))
    await comments_service.add_comment(db, bob.id, NewComment(group_id=gid_b, title_id=movie["_id"], comment="!"))

    result = await titles_service.cascade_delete_title(db, movie["_id"])
    assert result == {"ratings": 2, "comments": 1, "groups": 2}

    assert not await db.titles.exists(movie["_id"])
    assert await db.ratings.count() == 1
    assert await db.comments.count() == 0
    assert list((await db.groups.get_by_id(gid_a))["titles"]) == ["tt0000777"]
    assert (await db.groups.get_by_id(gid_b))["titles"] == {}

    with pytest.raises(TitleNotFound):
        await titles_service.cascade_delete_title(db, movie["_id"])


@pytest.mark.anyio
async def test_cascade_delete_finishes_orphans_left_by_a_crash(db, movie):
    """Orphans from an interrupted delete are cleaned by the per-collection steps."""
    now = utcnow()
    await db.ratings.add({"_id": new_id(), "titleId": movie["_id"], "userId": "u1", "note": 1.0,
                          "createdAt": now, "updatedAt": now})
    await db.titles.delete(movie["_id"])

    assert await db.ratings.delete_by_title(movie["_id"]) == 1
    assert await db.ratings.count() == 0
