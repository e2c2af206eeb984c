from fastapi import APIRouter, Depends

from health_forum.authorization import authorize, require_principal
from health_forum.dependencies import get_principal_id, get_store
from health_forum.schemas import CommentCreate, CommentResponse
from health_forum.services import comment_service
from health_forum.store import ForumStore

router = APIRouter(prefix="/api/posts/{post_id}/comments", tags=["comments"])


@router.post("", status_code=201, response_model=CommentResponse)
async def create_comment(
    post_id: str,
    data: CommentCreate,
    principal_id: str | None = Depends(get_principal_id),
    store: ForumStore = Depends(get_store),
):
    author_id = require_principal(principal_id)
    return await comment_service.create_comment(store, post_id, author_id, data.content)


@router.get("", response_model=list[CommentResponse])
async def list_comments(post_id: str, store: ForumStore = Depends(get_store)):
    return await comment_service.list_comments(store, post_id)


@router.delete("/{comment_id}", status_code=204)
async def delete_comment(
    post_id: str,
    comment_id: str,
    principal_id: str | None = Depends(get_principal_id),
    store: ForumStore = Depends(get_store),
):
    require_principal(principal_id)
    comment = await comment_service.get_comment(store, comment_id)
    # A comment filed under another post is reported as missing.
    if comment is not None and comment["post_id"] != post_id:
        comment = None
    authorize(principal_id, comment, "Comment")
    await comment_service.delete_comment(store, post_id, comment_id)
