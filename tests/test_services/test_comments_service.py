import pytest

from titletrack.core.exceptions import (
    CommentAlreadyExists,
    CommentIsNull,
    CommentNotFound,
    SeasonCommentAlreadyExists,
    SeasonDoesNotExist,
    SeasonRequired,
    TitleNotInGroup,
)
from titletrack.schemas.comments import NewComment, UpdateComment
from titletrack.services import comments_service


@pytest.mark.anyio
async def test_comment_movie_once(db, create_user, create_group, movie):
    user = await create_user()
    gid = await create_group(user.id, title_ids=[movie["_id"]])

    comment = await comments_service.add_comment(
        db, user.id, NewComment(group_id=gid, title_id=movie["_id"], comment="  Loved it  ")
    )
    assert comment.comment == "Loved it"

    with pytest.raises(CommentAlreadyExists):
        await comments_service.add_comment(
            db, user.id, NewComment(group_id=gid, title_id=movie["_id"], comment="again")
        )


@pytest.mark.anyio
@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
async def test_blank_comment_is_rejected(db, create_user, create_group, movie, text):
    user = await create_user()
    gid = await create_group(user.id, title_ids=[movie["_id"]])
    with pytest.raises(CommentIsNull):
        await comments_service.add_comment(db, user.id, NewComment(group_id=gid, title_id=movie["_id"], comment=text))


@pytest.mark.anyio
async def test_comment_requires_title_in_group(db, create_user, create_group, movie):
    owner = await create_user()
    gid = await create_group(owner.id)
    with pytest.raises(TitleNotInGroup):
        await comments_service.add_comment(
            db, owner.id, NewComment(group_id=gid, title_id=movie["_id"], comment="hi")
        )


@pytest.mark.anyio
async def test_series_comments_per_season(db, create_user, create_group, series):
    user = await create_user()
    gid = await create_group(user.id, title_ids=[series["_id"]])

    first = await comments_service.add_comment(
        db, user.id, NewComment(group_id=gid, title_id=series["_id"], comment="slow start", season=1)
    )
    second = await comments_service.add_comment(
        db, user.id, NewComment(group_id=gid, title_id=series["_id"], comment="great", season=2)
    )
    assert second.id == first.id
    assert second.seasons_comments["1"].comment == "slow start"
    assert second.seasons_comments["2"].comment == "great"

    with pytest.raises(SeasonCommentAlreadyExists):
        await comments_service.add_comment(
            db, user.id, NewComment(group_id=gid, title_id=series["_id"], comment="dup", season=1)
        )
    with pytest.raises(SeasonRequired):
        await comments_service.add_comment(
            db, user.id, NewComment(group_id=gid, title_id=series["_id"], comment="which one?")
        )


@pytest.mark.anyio
async def test_update_and_delete_are_owner_scoped(db, create_user, create_group, movie):
    owner = await create_user()
    other = await create_user()
    gid = await create_group(owner.id, title_ids=[movie["_id"]])
    comment = await comments_service.add_comment(
        db, owner.id, NewComment(group_id=gid, title_id=movie["_id"], comment="first")
    )

    updated = await comments_service.update_comment(db, comment.id, owner.id, UpdateComment(comment="second"))
    assert updated.comment == "second"

    with pytest.raises(CommentNotFound):
        await comments_service.update_comment(db, comment.id, other.id, UpdateComment(comment="hijack"))
    with pytest.raises(SeasonDoesNotExist):
        await comments_service.update_comment(db, comment.id, owner.id, UpdateComment(comment="x", season=1))
    with pytest.raises(CommentNotFound):
        await comments_service.delete_comment(db, comment.id, other.id)

    await comments_service.delete_comment(db, comment.id, owner.id)
    with pytest.raises(CommentNotFound):
        await comments_service.get_comment_by_id(db, comment.id, owner.id)


@pytest.mark.anyio
async def test_delete_one_season_keeps_the_others(db, create_user, create_group, series):
    user = await create_user()
    gid = await create_group(user.id, title_ids=[series["_id"]])
    await comments_service.add_comment(
        db, user.id, NewComment(group_id=gid, title_id=series["_id"], comment="one", season=1)
    )
    comment = await comments_service.add_comment(
        db, user.id, NewComment(group_id=gid, title_id=series["_id"], comment="two", season=2)
    )

    await comments_service.delete_comment(db, comment.id, user.id, season=1)
    remaining = await comments_service.get_comment_by_id(db, comment.id, user.id)
    assert set(remaining.seasons_comments) == {"2"}

    with pytest.raises(SeasonDoesNotExist):
        await comments_service.delete_comment(db, comment.id, user.id, season=1)

    await comments_service.delete_comment(db, comment.id, user.id, season=2)
    assert await db.comments.count() == 0


@pytest.mark.anyio
async def test_comments_by_title_for_group_members(db, create_user, create_group, movie):
    owner = await create_user()
    friend = await create_user()
    gid = await create_group(owner.id, title_ids=[movie["_id"]])
    await db.groups.add_user(gid, friend.id)

    await comments_service.add_comment(db, owner.id, NewComment(group_id=gid, title_id=movie["_id"], comment="a"))
    await comments_service.add_comment(db, friend.id, NewComment(group_id=gid, title_id=movie["_id"], comment="b"))

    listing = await comments_service.get_comments_by_title(db, friend.id, gid, movie["_id"])
    assert sorted(c.comment for c in listing.comments) == ["a", "b"]
