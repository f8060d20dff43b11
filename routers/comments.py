import logging
from fastapi import APIRouter, HTTPException, Depends, status

from config import Settings, get_settings
from domain.comments import Comment, CommentEdit
from domain.likes import LikeIn, LikeResult, LikeSubject, Likers
from domain.notifications import NotificationEvent, NotificationKind
from errors import NotFound, UpstreamFailure
from routers.deps import get_storage
from services import likes
from services.notifications import notify
from services.storage import StorageGateway

logger = logging.getLogger('uvicorn.error')

router = APIRouter(
    prefix="/comments",
    tags=["comments"]
)


@router.put("/{comment_id}", response_model=Comment)
async def update_comment(
    comment_id: str,
    comment_edit: CommentEdit,
    storage: StorageGateway = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    if len(comment_edit.content.encode('utf-8')) > settings.max_comment_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Comment content exceeds the maximum size of {settings.max_comment_bytes} bytes."
        )
    try:
        comment = await storage.update_comment_content(comment_id, comment_edit.content)
    except NotFound:
        logger.warning(f"Attempt to edit non-existent comment {comment_id}")
        raise HTTPException(status_code=404, detail=f"Comment with id {comment_id} not found.")
    except UpstreamFailure as e:
        logger.exception(f"Error updating comment {comment_id}: {e}")
        raise HTTPException(status_code=502, detail="Database error while updating comment.")
    logger.info(f"Comment {comment_id} updated")
    return comment


@router.post("/{comment_id}/likes", response_model=LikeResult)
async def like_comment(
    comment_id: str,
    like_in: LikeIn,
    storage: StorageGateway = Depends(get_storage),
):
    try:
        comment = await storage.fetch_comment(comment_id)
        if comment is None:
            logger.warning(f"Attempt to like non-existent comment {comment_id}")
            raise HTTPException(status_code=404, detail=f"Comment with id {comment_id} not found.")
        result = await likes.like(storage, LikeSubject.COMMENT, comment_id, like_in.user_id)
    except UpstreamFailure as e:
        logger.exception(f"Error liking comment {comment_id} for user {like_in.user_id}: {e}")
        raise HTTPException(status_code=502, detail="Database error while liking comment.")
    if result.changed:
        await notify(storage, NotificationEvent(
            kind=NotificationKind.LIKE_COMMENT,
            actor_id=like_in.user_id,
            target_post_id=comment.post_id,
            target_comment_id=comment_id,
        ))
    return result


@router.delete("/{comment_id}/likes/{user_id}", response_model=LikeResult)
async def unlike_comment(
    comment_id: str,
    user_id: str,
    storage: StorageGateway = Depends(get_storage),
):
    try:
        return await likes.unlike(storage, LikeSubject.COMMENT, comment_id, user_id)
    except UpstreamFailure as e:
        logger.exception(f"Error unliking comment {comment_id} for user {user_id}: {e}")
        raise HTTPException(status_code=502, detail="Database error while unliking comment.")


@router.get("/{comment_id}/likes", response_model=Likers)
async def get_comment_likes(
    comment_id: str,
    storage: StorageGateway = Depends(get_storage),
):
    try:
        user_ids = await storage.fetch_like_user_ids(comment_id, LikeSubject.COMMENT)
    except UpstreamFailure as e:
        logger.exception(f"Error fetching likes for comment {comment_id}: {e}")
        raise HTTPException(status_code=502, detail="Database error while fetching comment likes.")
    return Likers(like_count=len(user_ids), user_ids=user_ids)
