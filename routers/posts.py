from fastapi import APIRouter, Depends
from backend import RedisBackend
from realtime.events import EventTag, make_event
from realtime.relay import EventRelay
from routers.deps import get_backend, get_relay
from schemas.discussion import (
    Comment,
    CreateCommentRequest,
    CreatePostRequest,
    LikesResponse,
    Post,
    Reply,
    ToggleLikeRequest,
    UpdateCommentRequest,
    UpdatePostRequest,
)
from logging_config import get_logger

logger = get_logger(__name__)

# Every write is persisted first, then relayed to the session's room so
# other members can reconcile without re-fetching.
posts_router = APIRouter(prefix="/sessions/{session_id}/posts", tags=["posts"])


@posts_router.get("/", response_model=list[Post])
async def list_posts(session_id: str, backend: RedisBackend = Depends(get_backend)):
    return backend.list_posts(session_id)


@posts_router.post("/", response_model=Post, status_code=201)
async def create_post(
    session_id: str,
    body: CreatePostRequest,
    backend: RedisBackend = Depends(get_backend),
    relay: EventRelay = Depends(get_relay),
):
    post = backend.create_post(session_id, body.author, body.content, body.link_preview)
    await relay.publish(make_event(session_id, EventTag.POST_CREATED, post=post, client_id=body.client_id))
    return post


@posts_router.patch("/{post_id}", response_model=Post)
async def update_post(
    session_id: str,
    post_id: str,
    body: UpdatePostRequest,
    backend: RedisBackend = Depends(get_backend),
    relay: EventRelay = Depends(get_relay),
):
    post = backend.update_post(session_id, post_id, body.content, body.link_preview)
    await relay.publish(make_event(session_id, EventTag.POST_UPDATED, post=post))
    return post


@posts_router.delete("/{post_id}")
async def delete_post(
    session_id: str,
    post_id: str,
    backend: RedisBackend = Depends(get_backend),
    relay: EventRelay = Depends(get_relay),
):
    backend.delete_post(session_id, post_id)
    await relay.publish(make_event(session_id, EventTag.POST_DELETED, post_id=post_id))
    return {"message": "Post deleted successfully"}


@posts_router.patch("/{post_id}/like", response_model=LikesResponse)
async def toggle_post_like(
    session_id: str,
    post_id: str,
    body: ToggleLikeRequest,
    backend: RedisBackend = Depends(get_backend),
    relay: EventRelay = Depends(get_relay),
):
    likes = backend.toggle_post_like(session_id, post_id, body.user_id)
    await relay.publish(make_event(session_id, EventTag.LIKE_TOGGLED, post_id=post_id, likes=likes))
    return LikesResponse(likes=likes)


@posts_router.post("/{post_id}/comments", response_model=Comment, status_code=201)
async def add_comment(
    session_id: str,
    post_id: str,
    body: CreateCommentRequest,
    backend: RedisBackend = Depends(get_backend),
    relay: EventRelay = Depends(get_relay),
):
    comment = backend.add_comment(session_id, post_id, body.author, body.content)
    await relay.publish(make_event(
        session_id, EventTag.COMMENT_CREATED, post_id=post_id, comment=comment, client_id=body.client_id
    ))
    return comment


@posts_router.patch("/{post_id}/comments/{comment_id}", response_model=Comment)
async def update_comment(
    session_id: str,
    post_id: str,
    comment_id: str,
    body: UpdateCommentRequest,
    backend: RedisBackend = Depends(get_backend),
    relay: EventRelay = Depends(get_relay),
):
    comment = backend.update_comment(session_id, post_id, comment_id, body.content)
    await relay.publish(make_event(session_id, EventTag.COMMENT_UPDATED, post_id=post_id, comment=comment))
    return comment


@posts_router.delete("/{post_id}/comments/{comment_id}")
async def delete_comment(
    session_id: str,
    post_id: str,
    comment_id: str,
    backend: RedisBackend = Depends(get_backend),
    relay: EventRelay = Depends(get_relay),
):
    backend.delete_comment(session_id, post_id, comment_id)
    await relay.publish(make_event(session_id, EventTag.COMMENT_DELETED, post_id=post_id, comment_id=comment_id))
    return {"message": "Comment deleted successfully"}


@posts_router.patch("/{post_id}/comments/{comment_id}/like", response_model=LikesResponse)
async def toggle_comment_like(
    session_id: str,
    post_id: str,
    comment_id: str,
    body: ToggleLikeRequest,
    backend: RedisBackend = Depends(get_backend),
    relay: EventRelay = Depends(get_relay),
):
    likes = backend.toggle_comment_like(session_id, post_id, comment_id, body.user_id)
    await relay.publish(make_event(session_id, EventTag.LIKE_TOGGLED, post_id=post_id, comment_id=comment_id, likes=likes))
    return LikesResponse(likes=likes)


@posts_router.post("/{post_id}/comments/{comment_id}/replies", response_model=Reply, status_code=201)
async def add_reply(
    session_id: str,
    post_id: str,
    comment_id: str,
    body: CreateCommentRequest,
    backend: RedisBackend = Depends(get_backend),
    relay: EventRelay = Depends(get_relay),
):
    reply = backend.add_reply(session_id, post_id, comment_id, body.author, body.content)
    await relay.publish(make_event(session_id, EventTag.REPLY_CREATED, post_id=post_id, comment_id=comment_id, reply=reply))
    return reply


@posts_router.patch("/{post_id}/comments/{comment_id}/replies/{reply_id}", response_model=Reply)
async def update_reply(
    session_id: str,
    post_id: str,
    comment_id: str,
    reply_id: str,
    body: UpdateCommentRequest,
    backend: RedisBackend = Depends(get_backend),
    relay: EventRelay = Depends(get_relay),
):
    reply = backend.update_reply(session_id, post_id, comment_id, reply_id, body.content)
    await relay.publish(make_event(session_id, EventTag.REPLY_UPDATED, post_id=post_id, comment_id=comment_id, reply=reply))
    return reply
