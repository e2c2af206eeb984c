from fastapi import APIRouter, Depends

from health_forum.authorization import authorize, require_principal
from health_forum.dependencies import get_principal_id, get_store
from health_forum.errors import ResourceNotFoundError
from health_forum.schemas import PostCreate, PostResponse, PostUpdate
from health_forum.services import post_service
from health_forum.services.post_service import ReactionKind
from health_forum.store import ForumStore

router = APIRouter(prefix="/api/posts", tags=["posts"])


@router.post("", status_code=201, response_model=PostResponse)
async def create_post(
    data: PostCreate,
    principal_id: str | None = Depends(get_principal_id),
    store: ForumStore = Depends(get_store),
):
    author_id = require_principal(principal_id)
    return await post_service.create_post(store, author_id, data.title, data.content, data.tags)


@router.get("", response_model=list[PostResponse])
async def list_posts(tag: str | None = None, store: ForumStore = Depends(get_store)):
    return await post_service.list_posts(store, tag)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: str, store: ForumStore = Depends(get_store)):
    post = await post_service.get_post(store, post_id)
    if post is None:
        raise ResourceNotFoundError("Post", post_id)
    return post


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: str,
    data: PostUpdate,
    principal_id: str | None = Depends(get_principal_id),
    store: ForumStore = Depends(get_store),
):
    require_principal(principal_id)
    authorize(principal_id, await post_service.get_post(store, post_id), "Post")
    changes = data.model_dump(exclude_unset=True)
    post = await post_service.update_post(
        store, post_id, principal_id, changes.get("title"), changes.get("content")
    )
    if post is None:
        raise ResourceNotFoundError("Post", post_id)
    return post


@router.delete("/{post_id}", status_code=204)
async def delete_post(
    post_id: str,
    principal_id: str | None = Depends(get_principal_id),
    store: ForumStore = Depends(get_store),
):
    require_principal(principal_id)
    authorize(principal_id, await post_service.get_post(store, post_id), "Post")
    await post_service.delete_post(store, post_id)


async def _react(store: ForumStore, post_id: str, principal_id: str | None, kind: ReactionKind):
    user_id = require_principal(principal_id)
    await post_service.update_reaction(store, post_id, user_id, kind)
    post = await post_service.get_post(store, post_id)
    if post is None:
        raise ResourceNotFoundError("Post", post_id)
    return post


@router.post("/{post_id}/like", response_model=PostResponse)
async def like_post(
    post_id: str,
    principal_id: str | None = Depends(get_principal_id),
    store: ForumStore = Depends(get_store),
):
    return await _react(store, post_id, principal_id, ReactionKind.LIKE)


@router.post("/{post_id}/dislike", response_model=PostResponse)
async def dislike_post(
    post_id: str,
    principal_id: str | None = Depends(get_principal_id),
    store: ForumStore = Depends(get_store),
):
    return await _react(store, post_id, principal_id, ReactionKind.DISLIKE)
