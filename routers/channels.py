import logging

from fastapi import APIRouter, BackgroundTasks, HTTPException, Depends, status

from config import Settings, get_settings
from domain.channels import AnnouncementIn, AnnouncementQueued, FollowIn, FollowStatus
from errors import UpstreamFailure
from routers.deps import get_mailer, get_storage
from services.fanout import Mailer, resolve_recipients, send_all
from services.storage import StorageGateway

logger = logging.getLogger('uvicorn.error')

router = APIRouter(
    prefix="/channels",
    tags=["channels"]
)


@router.post("/{channel_id}/followers", response_model=FollowStatus, status_code=status.HTTP_201_CREATED)
async def follow_channel(
    channel_id: str,
    follow_in: FollowIn,
    storage: StorageGateway = Depends(get_storage),
):
    try:
        if not await storage.is_following(channel_id, follow_in.user_id):
            await storage.insert_follow(channel_id, follow_in.user_id)
            logger.info(f"User {follow_in.user_id} followed channel {channel_id}")
    except UpstreamFailure as e:
        logger.exception(f"Error following channel {channel_id} for user {follow_in.user_id}: {e}")
        raise HTTPException(status_code=502, detail="Database error while following channel.")
    return FollowStatus(channel_id=channel_id, user_id=follow_in.user_id, following=True)


@router.delete("/{channel_id}/followers/{user_id}", response_model=FollowStatus)
async def unfollow_channel(
    channel_id: str,
    user_id: str,
    storage: StorageGateway = Depends(get_storage),
):
    try:
        await storage.delete_follow(channel_id, user_id)
    except UpstreamFailure as e:
        logger.exception(f"Error unfollowing channel {channel_id} for user {user_id}: {e}")
        raise HTTPException(status_code=502, detail="Database error while unfollowing channel.")
    logger.info(f"User {user_id} unfollowed channel {channel_id}")
    return FollowStatus(channel_id=channel_id, user_id=user_id, following=False)


@router.get("/{channel_id}/followers/{user_id}", response_model=FollowStatus)
async def is_following(
    channel_id: str,
    user_id: str,
    storage: StorageGateway = Depends(get_storage),
):
    try:
        following = await storage.is_following(channel_id, user_id)
    except UpstreamFailure as e:
        logger.exception(f"Error checking follow of channel {channel_id} for user {user_id}: {e}")
        raise HTTPException(status_code=502, detail="Database error while checking follow status.")
    return FollowStatus(channel_id=channel_id, user_id=user_id, following=following)


@router.post("/{channel_id}/announcements", response_model=AnnouncementQueued, status_code=status.HTTP_202_ACCEPTED)
async def announce_to_followers(
    channel_id: str,
    announcement: AnnouncementIn,
    background_tasks: BackgroundTasks,
    storage: StorageGateway = Depends(get_storage),
    mailer: Mailer = Depends(get_mailer),
    settings: Settings = Depends(get_settings),
):
    try:
        recipients = await resolve_recipients(storage, channel_id)
    except UpstreamFailure as e:
        logger.exception(f"Error resolving followers of channel {channel_id}: {e}")
        raise HTTPException(status_code=502, detail="Database error while resolving followers.")

    # Sends run after the response and report failures only to the log.
    subject = f"{settings.announcement_subject_prefix}{announcement.username}"
    if recipients:
        background_tasks.add_task(send_all, mailer, recipients, subject, announcement.content)
    logger.info(f"Announcement for channel {channel_id} queued to {len(recipients)} followers")
    return AnnouncementQueued(
        channel_id=channel_id,
        recipients=len(recipients),
        message="Announcement queued for followers" if recipients else "Channel has no reachable followers",
    )
