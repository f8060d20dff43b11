"""Idempotent like counter for posts and comments."""
import logging

from domain.likes import LikeResult, LikeSubject
from services.storage import StorageGateway

logger = logging.getLogger('uvicorn.error')


async def like(storage: StorageGateway, subject: LikeSubject, subject_id: str, user_id: str) -> LikeResult:
    # Check-then-insert is not atomic, but the like document id is derived from the
    # pair, so a racing duplicate insert overwrites instead of adding a second like.
    created = False
    if not await storage.has_like(subject_id, user_id, subject):
        await storage.insert_like(subject_id, user_id, subject)
        created = True
        logger.info(f"User {user_id} liked {subject.value} {subject_id}")
    return LikeResult(like_count=await storage.count_likes(subject_id, subject), changed=created)


async def unlike(storage: StorageGateway, subject: LikeSubject, subject_id: str, user_id: str) -> LikeResult:
    removed = False
    if await storage.has_like(subject_id, user_id, subject):
        await storage.delete_like(subject_id, user_id, subject)
        removed = True
        logger.info(f"User {user_id} unliked {subject.value} {subject_id}")
    return LikeResult(like_count=await storage.count_likes(subject_id, subject), changed=removed)
