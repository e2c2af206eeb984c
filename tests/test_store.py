"""SqlAlchemyStore tests: the persistence port contract on its own."""
from datetime import datetime, timezone

import pytest

from health_forum.errors import DuplicateKeyError, InvalidArgumentError, StorageError
from health_forum.models import Comment, Post, PostTag, User


def _post(post_id: str, tags=(), likes: int = 0, dislikes: int = 0) -> Post:
    return Post(
        id=post_id,
        title=f"Title {post_id}",
        content="Content",
        author_id="author",
        created_at=datetime.now(timezone.utc),
        likes=likes,
        dislikes=dislikes,
        tag_links=[PostTag(position=i, name=t) for i, t in enumerate(tags)],
    )


def _user(user_id: str, email: str) -> User:
    return User(id=user_id, email=email, username=user_id, password_hash="x", bio="")


@pytest.mark.asyncio
async def test_save_then_load(store):
    await store.save(_post("p1", tags=["a", "b"]))
    loaded = await store.load(Post, id="p1")
    assert loaded is not None
    assert loaded.tags == ["a", "b"]


@pytest.mark.asyncio
async def test_load_absent_returns_none(store):
    assert await store.load(Post, id="nope") is None


@pytest.mark.asyncio
async def test_load_requires_a_key(store):
    with pytest.raises(InvalidArgumentError):
        await store.load(Post)


@pytest.mark.asyncio
async def test_save_is_an_upsert(store, db_session):
    await store.save(_post("p1"))
    await db_session.commit()
    db_session.expunge_all()

    replacement = _post("p1")
    replacement.title = "Replaced"
    await store.save(replacement)

    posts = await store.scan_all(Post)
    assert len(posts) == 1
    assert posts[0].title == "Replaced"


@pytest.mark.asyncio
async def test_save_detached_record(store, db_session):
    await store.save(_post("p1"))
    await db_session.commit()

    post = await store.load(Post, id="p1")
    db_session.expunge(post)
    post.title = "New"
    await store.save(post)
    await db_session.commit()
    db_session.expunge_all()

    assert (await store.load(Post, id="p1")).title == "New"


@pytest.mark.asyncio
async def test_scan_all_with_criteria(store):
    await store.save(_post("p1", tags=["x"]))
    await store.save(_post("p2", tags=["y", "x"]))
    await store.save(_post("p3", tags=["y"]))

    assert len(await store.scan_all(Post)) == 3
    assert {p.id for p in await store.scan_all(Post, Post.has_tag("x"))} == {"p1", "p2"}


@pytest.mark.asyncio
async def test_delete(store):
    post = await store.save(_post("p1", tags=["x"]))
    await store.delete(post)
    assert await store.load(Post, id="p1") is None
    assert await store.scan_all(PostTag) == []


@pytest.mark.asyncio
async def test_query_by_index(store):
    await store.insert(_user("u1", "a@x.com"))
    await store.insert(_user("u2", "b@x.com"))
    found = await store.query_by_index(User, "email", "a@x.com")
    assert [u.id for u in found] == ["u1"]
    assert await store.query_by_index(User, "email", "c@x.com") == []


@pytest.mark.asyncio
async def test_query_by_unindexed_column_rejected(store):
    with pytest.raises(InvalidArgumentError):
        await store.query_by_index(User, "username", "u1")


@pytest.mark.asyncio
async def test_insert_conflict_on_unique_email(store, db_session):
    await store.insert(_user("u1", "a@x.com"))
    await db_session.commit()

    with pytest.raises(DuplicateKeyError):
        await store.insert(_user("u2", "a@x.com"))

    users = await store.scan_all(User)
    assert [u.id for u in users] == ["u1"]


@pytest.mark.asyncio
async def test_insert_conflict_keeps_earlier_flushed_work(store, db_session):
    await store.insert(_user("u1", "a@x.com"))
    await db_session.commit()

    await store.save(_post("p1"))
    with pytest.raises(DuplicateKeyError):
        await store.insert(_user("u2", "a@x.com"))
    await db_session.commit()
    db_session.expunge_all()

    assert await store.load(Post, id="p1") is not None
    assert [u.id for u in await store.scan_all(User)] == ["u1"]


@pytest.mark.asyncio
async def test_insert_not_null_violation_is_not_a_duplicate(store):
    user = _user("u1", "a@x.com")
    user.username = None

    with pytest.raises(StorageError) as exc_info:
        await store.insert(user)
    assert not isinstance(exc_info.value, DuplicateKeyError)
    assert await store.scan_all(User) == []


@pytest.mark.asyncio
async def test_compare_and_set(store):
    await store.save(_post("p1", likes=1))

    assert await store.compare_and_set(
        Post, {"id": "p1"}, {"likes": 1, "dislikes": 0}, {"likes": 0, "dislikes": 1}
    )
    post = await store.load(Post, id="p1")
    assert (post.likes, post.dislikes) == (0, 1)

    # Stale expectation: nothing is written.
    assert not await store.compare_and_set(
        Post, {"id": "p1"}, {"likes": 1, "dislikes": 0}, {"likes": 5, "dislikes": 0}
    )
    post = await store.load(Post, id="p1")
    assert (post.likes, post.dislikes) == (0, 1)


@pytest.mark.asyncio
async def test_comment_composite_key(store):
    now = datetime.now(timezone.utc)
    await store.save(Comment(post_id="A", id="c1", author_id="u", content="x", created_at=now))
    await store.save(Comment(post_id="B", id="c2", author_id="u", content="y", created_at=now))

    assert (await store.load(Comment, id="c1")).post_id == "A"
    assert await store.load(Comment, post_id="B", id="c1") is None
    assert [c.id for c in await store.scan_all(Comment, Comment.post_id == "B")] == ["c2"]
