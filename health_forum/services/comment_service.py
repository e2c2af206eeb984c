"""
Comment service: comments partitioned by their parent post.

Comments are immutable once written; the only mutation is an
author-requested delete.  ``post_id`` and ``author_id`` are expected to
come from the request path and the authenticated session, never from a
client-supplied body.
"""
import logging
import uuid
from datetime import datetime, timezone

from health_forum.errors import InvalidArgumentError, StorageError
from health_forum.models import Comment
from health_forum.store import ForumStore

logger = logging.getLogger(__name__)


def _comment_to_dict(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "post_id": comment.post_id,
        "author_id": comment.author_id,
        "content": comment.content,
        "created_at": comment.created_at.isoformat() if comment.created_at else None,
    }


def _require(value: str | None, name: str) -> None:
    if not value:
        raise InvalidArgumentError(f"{name} is required.")


async def create_comment(store: ForumStore, post_id: str, author_id: str, content: str) -> dict:
    """Persist a new comment under *post_id* and return it."""
    _require(post_id, "Post ID")
    comment = Comment(
        post_id=post_id,
        id=str(uuid.uuid4()),
        author_id=author_id,
        content=content,
        created_at=datetime.now(timezone.utc),
    )
    try:
        comment = await store.save(comment)
    except StorageError:
        logger.exception("Failed to create comment on post_id=%s", post_id)
        raise
    logger.info("Comment created, post_id=%s comment_id=%s", post_id, comment.id)
    return _comment_to_dict(comment)


async def list_comments(store: ForumStore, post_id: str) -> list[dict]:
    """Return all comments in the *post_id* partition (possibly empty)."""
    _require(post_id, "Post ID")
    comments = await store.scan_all(Comment, Comment.post_id == post_id)
    return [_comment_to_dict(c) for c in comments]


async def get_comment(store: ForumStore, comment_id: str) -> dict | None:
    comment = await store.load(Comment, id=comment_id)
    return _comment_to_dict(comment) if comment is not None else None


async def delete_comment(store: ForumStore, post_id: str, comment_id: str) -> None:
    """
    Delete *comment_id* if it lives under *post_id*.

    A missing comment, or one filed under a different post, is left
    alone without error.  Failures of the delete itself propagate.
    """
    _require(post_id, "Post ID")
    _require(comment_id, "Comment ID")

    comment = await store.load(Comment, id=comment_id)
    if comment is None or comment.post_id != post_id:
        logger.warning(
            "Comment not found for deletion, post_id=%s comment_id=%s", post_id, comment_id
        )
        return

    await store.delete(comment)
    logger.info("Comment deleted, post_id=%s comment_id=%s", post_id, comment_id)
