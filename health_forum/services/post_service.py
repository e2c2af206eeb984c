"""
Post service: business logic for the Post aggregate.

Design notes
------------
- Ownership is not checked here.  ``update_post`` and ``delete_post``
  trust that the caller ran ``authorization.authorize`` first.
- Reactions only touch the aggregate ``likes`` / ``dislikes`` counters;
  there is no per-user reaction record, so ``user_id`` never changes the
  outcome of a toggle.
- The new counters are written with ``compare_and_set`` keyed on the
  values that were read, so two concurrent toggles cannot silently
  overwrite each other.  The loser gets ``ConcurrentUpdateError``.
- Storage failures are logged and re-raised unchanged; nothing retries.
"""
import enum
import logging
import uuid
from datetime import datetime, timezone

from health_forum.errors import ConcurrentUpdateError, InvalidArgumentError, StorageError
from health_forum.models import Post, PostTag
from health_forum.store import ForumStore

logger = logging.getLogger(__name__)


class ReactionKind(str, enum.Enum):
    LIKE = "like"
    DISLIKE = "dislike"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _post_to_dict(post: Post) -> dict:
    return {
        "id": post.id,
        "title": post.title,
        "content": post.content,
        "author_id": post.author_id,
        "created_at": post.created_at.isoformat() if post.created_at else None,
        "tags": post.tags,
        "likes": post.likes,
        "dislikes": post.dislikes,
    }


def next_reaction_counts(likes: int, dislikes: int, kind: ReactionKind) -> tuple[int, int]:
    """
    Return the ``(likes, dislikes)`` pair after applying one *kind* toggle.

    For a like: an existing like with no dislikes is withdrawn; any
    dislike is switched over to a like; otherwise a like is added.  A
    dislike is the mirror image.  Starting from a pair where at least one
    side is zero, the result always has at least one side at zero.
    """
    if kind is ReactionKind.DISLIKE:
        dislikes, likes = next_reaction_counts(dislikes, likes, ReactionKind.LIKE)
        return likes, dislikes

    if likes > 0 and dislikes == 0:
        return likes - 1, dislikes
    if dislikes > 0:
        return likes + 1, dislikes - 1
    return likes + 1, dislikes


def _parse_reaction(kind) -> ReactionKind:
    try:
        return ReactionKind(kind)
    except ValueError:
        raise InvalidArgumentError(f"Unknown reaction type: {kind!r}") from None


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def create_post(
    store: ForumStore,
    author_id: str,
    title: str,
    content: str,
    tags: list[str] | None = None,
) -> dict:
    """Create and persist a new post with zeroed reaction counters."""
    logger.info("Creating new post for author_id=%s", author_id)
    post = Post(
        id=str(uuid.uuid4()),
        title=title,
        content=content,
        author_id=author_id,
        created_at=datetime.now(timezone.utc),
        likes=0,
        dislikes=0,
        tag_links=[PostTag(position=i, name=name) for i, name in enumerate(tags or [])],
    )
    try:
        post = await store.save(post)
    except StorageError:
        logger.exception("Failed to create post for author_id=%s", author_id)
        raise
    logger.info("Post created, post_id=%s", post.id)
    return _post_to_dict(post)


async def get_post(store: ForumStore, post_id: str) -> dict | None:
    """Return the post dict for *post_id*, or None when it does not exist."""
    post = await store.load(Post, id=post_id)
    if post is None:
        logger.warning("Post not found, post_id=%s", post_id)
        return None
    return _post_to_dict(post)


async def list_posts(store: ForumStore, tag: str | None = None) -> list[dict]:
    """
    Return every post, or only those whose tags contain *tag*.

    Tag matching is exact and case-sensitive.  No ordering is applied.
    """
    logger.info("Listing posts, tag=%s", tag or "none")
    if tag:
        posts = await store.scan_all(Post, Post.has_tag(tag))
    else:
        posts = await store.scan_all(Post)
    return [_post_to_dict(p) for p in posts]


async def update_post(
    store: ForumStore,
    post_id: str,
    author_id: str,
    title: str | None = None,
    content: str | None = None,
) -> dict | None:
    """
    Overwrite the title and/or content of an existing post.

    Returns None when the post does not exist.  A field passed as None
    is left unchanged; any other value, including ``""``, replaces it.
    """
    if not post_id:
        logger.warning("Invalid update request: post id is missing")
        raise InvalidArgumentError("Post ID is required.")

    post = await store.load(Post, id=post_id)
    if post is None:
        logger.warning("Post not found for update, post_id=%s", post_id)
        return None

    if title is not None:
        post.title = title
    if content is not None:
        post.content = content

    try:
        post = await store.save(post)
    except StorageError:
        logger.exception("Failed to update post, post_id=%s", post_id)
        raise
    logger.info("Post updated by author_id=%s, post_id=%s", author_id, post_id)
    return _post_to_dict(post)


async def delete_post(store: ForumStore, post_id: str) -> None:
    """Delete the post if it exists; deleting a missing post is a no-op."""
    post = await store.load(Post, id=post_id)
    if post is None:
        logger.warning("Post not found for deletion, post_id=%s", post_id)
        return
    try:
        await store.delete(post)
    except StorageError:
        logger.exception("Failed to delete post, post_id=%s", post_id)
        raise
    logger.info("Post deleted, post_id=%s", post_id)


async def update_reaction(
    store: ForumStore, post_id: str, user_id: str, kind: ReactionKind | str
) -> None:
    """
    Apply a like/dislike toggle to the post's aggregate counters.

    A missing post is a no-op.  Raises ``ConcurrentUpdateError`` when the
    counters changed between the read and the conditional write.
    """
    kind = _parse_reaction(kind)
    logger.info(
        "Updating reaction for post_id=%s, user_id=%s, kind=%s", post_id, user_id, kind.value
    )

    post = await store.load(Post, id=post_id)
    if post is None:
        logger.warning("Post not found for reaction update, post_id=%s", post_id)
        return

    likes, dislikes = next_reaction_counts(post.likes, post.dislikes, kind)
    written = await store.compare_and_set(
        Post,
        key={"id": post_id},
        expected={"likes": post.likes, "dislikes": post.dislikes},
        values={"likes": likes, "dislikes": dislikes},
    )
    if not written:
        if await store.load(Post, id=post_id) is None:
            logger.warning("Post deleted during reaction update, post_id=%s", post_id)
            return
        logger.warning("Reaction counters changed concurrently, post_id=%s", post_id)
        raise ConcurrentUpdateError("conditional update", f"post {post_id} was modified")
    logger.info("Reaction updated, post_id=%s likes=%d dislikes=%d", post_id, likes, dislikes)
