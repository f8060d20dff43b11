# In routers/posts.py

import logging
from fastapi import APIRouter, HTTPException, Depends, status

from config import Settings, get_settings
from domain.comments import Comment, CommentIn, PostComments
from domain.likes import LikeIn, LikeResult, LikeSubject, Likers
from domain.notifications import NotificationEvent, NotificationKind
from errors import UpstreamFailure
from routers.deps import get_storage
from services import likes
from services.comment_tree import build_comment_tree
from services.notifications import notify
from services.storage import StorageGateway

logger = logging.getLogger('uvicorn.error')

router = APIRouter(
    prefix="/posts",
    tags=["posts", "comments"]
)


async def require_post(storage: StorageGateway, post_id: str) -> None:
    try:
        post = await storage.fetch_post(post_id)
    except UpstreamFailure as e:
        raise HTTPException(status_code=502, detail="Database error while fetching post") from e
    if post is None:
        logger.warning(f"Post {post_id} not found.")
        raise HTTPException(status_code=404, detail=f"Post with id {post_id} not found.")


# --- Comment API Routes ---
@router.post("/{post_id}/comments/", response_model=Comment, status_code=status.HTTP_201_CREATED)
async def create_comment(
    post_id: str,
    comment_in: CommentIn,
    storage: StorageGateway = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    await require_post(storage, post_id)

    if len(comment_in.content.encode('utf-8')) > settings.max_comment_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Comment content exceeds the maximum size of {settings.max_comment_bytes} bytes."
        )
    try:
        comment = await storage.insert_comment(
            post_id, comment_in.user_id, comment_in.content, comment_in.parent_comment_id
        )
    except UpstreamFailure as e:
        logger.exception(f"Error creating comment for post '{post_id}' by user '{comment_in.user_id}': {e}")
        raise HTTPException(status_code=502, detail="Database error while creating comment.")
    logger.info(f"User '{comment_in.user_id}' created comment '{comment.id}' on post '{post_id}'")

    # The comment stands even if its notification cannot be stored.
    if comment.parent_comment_id:
        event = NotificationEvent(
            kind=NotificationKind.REPLY_COMMENT,
            actor_id=comment.author_id,
            target_post_id=post_id,
            target_comment_id=comment.parent_comment_id,
        )
    else:
        event = NotificationEvent(
            kind=NotificationKind.COMMENT_POST,
            actor_id=comment.author_id,
            target_post_id=post_id,
        )
    await notify(storage, event)
    return comment


@router.get("/{post_id}/comments/", response_model=PostComments)
async def get_comments_for_post(
    post_id: str,
    storage: StorageGateway = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    await require_post(storage, post_id)
    try:
        comments = await storage.fetch_comments_for_post(post_id)
    except UpstreamFailure as e:
        logger.exception(f"Error retrieving comments for post {post_id}: {e}")
        raise HTTPException(status_code=502, detail="Database error while fetching comments.")
    tree = build_comment_tree(comments, max_depth=settings.max_reply_depth)
    return PostComments(post_id=post_id, comments=tree.comments, total_comments=tree.total_comments)


# --- Like API Routes ---
@router.post("/{post_id}/likes", response_model=LikeResult)
async def like_post(
    post_id: str,
    like_in: LikeIn,
    storage: StorageGateway = Depends(get_storage),
):
    await require_post(storage, post_id)
    try:
        result = await likes.like(storage, LikeSubject.POST, post_id, like_in.user_id)
    except UpstreamFailure as e:
        logger.exception(f"Error liking post {post_id} for user {like_in.user_id}: {e}")
        raise HTTPException(status_code=502, detail="Database error while liking post.")
    if result.changed:
        await notify(storage, NotificationEvent(
            kind=NotificationKind.LIKE_POST,
            actor_id=like_in.user_id,
            target_post_id=post_id,
        ))
    return result


@router.delete("/{post_id}/likes/{user_id}", response_model=LikeResult)
async def unlike_post(
    post_id: str,
    user_id: str,
    storage: StorageGateway = Depends(get_storage),
):
    try:
        return await likes.unlike(storage, LikeSubject.POST, post_id, user_id)
    except UpstreamFailure as e:
        logger.exception(f"Error unliking post {post_id} for user {user_id}: {e}")
        raise HTTPException(status_code=502, detail="Database error while unliking post.")


@router.get("/{post_id}/likes", response_model=Likers)
async def get_post_likes(
    post_id: str,
    storage: StorageGateway = Depends(get_storage),
):
    try:
        user_ids = await storage.fetch_like_user_ids(post_id, LikeSubject.POST)
    except UpstreamFailure as e:
        logger.exception(f"Error fetching likes for post {post_id}: {e}")
        raise HTTPException(status_code=502, detail="Database error while fetching post likes.")
    return Likers(like_count=len(user_ids), user_ids=user_ids)
