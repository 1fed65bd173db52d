import pytest

from titletrack.db.indexes import (
    CREATED,
    INDEXES,
    RECREATED,
    SKIPPED,
    IndexSpec,
    delete_all_indexes,
    describe_indexes,
    ensure_indexes,
)
from titletrack.db.mongo import RATINGS, USERS


def test_index_specs_have_stable_names():
    """✅ Every (collection, name) pair is unique and the storage contract names are present."""
    pairs = [(s.collection, s.name) for s in INDEXES]
    assert len(pairs) == len(set(pairs))
    assert ("ratings", "userId_and_titleId_unique") in pairs
    assert ("comments", "userId_and_titleId_unique") in pairs
    assert ("users", "email_unique") in pairs
    assert ("users", "username_unique") in pairs
    assert ("groups", "ownerId_and_name_unique") in pairs


def test_create_kwargs_only_carries_set_options():
    spec = IndexSpec(name="x_idx", collection=RATINGS, keys=[("x", 1)])
    assert spec.create_kwargs() == {"name": "x_idx"}

    email = next(s for s in INDEXES if s.collection == USERS and s.name == "email_unique")
    kwargs = email.create_kwargs()
    assert kwargs["unique"] is True
    assert kwargs["collation"] == {"locale": "en", "strength": 2}
    assert kwargs["partialFilterExpression"] == {"email": {"$type": "string", "$gt": ""}}


@pytest.mark.anyio
async def test_ensure_indexes_creates_then_skips(raw_db):
    """✅ First run creates everything, second run is a no-op."""
    first = await ensure_indexes(raw_db)
    assert first.count(CREATED) == len(INDEXES)

    second = await ensure_indexes(raw_db)
    assert second.count(SKIPPED) == len(INDEXES)
    assert second.count(CREATED) == 0

    described = await describe_indexes(raw_db)
    assert "userId_and_titleId_unique" in described["ratings"]
    assert "users_idx" in described["groups"]


@pytest.mark.anyio
async def test_reset_recreates_existing_indexes(db):
    before = await describe_indexes(db)
    assert "email_unique" in before["users"]

    report = await ensure_indexes(db, reset=True)
    assert report.count(RECREATED) == len(INDEXES)
    assert report.count(CREATED) == report.count(SKIPPED) == 0

    after = await describe_indexes(db)
    assert after == before
    for spec in INDEXES:
        assert spec.name in after[spec.collection]


@pytest.mark.anyio
async def test_reset_replaces_a_stale_definition_under_the_same_name(db):
    """✅ A renamed/changed index only converges through reset, not a plain create."""
    ratings = db.collection(RATINGS)
    await ratings.drop_index("titleId_idx")
    await ratings.create_index([("userId", 1)], name="titleId_idx")

    await ensure_indexes(db)
    assert (await ratings.index_information())["titleId_idx"]["key"] == [("userId", 1)]

    await ensure_indexes(db, reset=True)
    assert (await ratings.index_information())["titleId_idx"]["key"] == [("titleId", 1)]


@pytest.mark.anyio
async def test_delete_all_indexes_keeps_id_index(db):
    """✅ Only `_id_` survives on every collection."""
    dropped = await delete_all_indexes(db)
    assert "email_unique" in dropped["users"]
    assert "_id_" not in dropped["users"]

    described = await describe_indexes(db)
    for names in described.values():
        assert all(n == "_id_" for n in names)

    # and they come back on the next ensure
    report = await ensure_indexes(db)
    assert report.count(CREATED) == len(INDEXES)
