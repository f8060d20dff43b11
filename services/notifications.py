import logging
from typing import Optional

from domain.notifications import Notification, NotificationEvent, NotificationKind
from errors import UpstreamFailure
from services.storage import StorageGateway

logger = logging.getLogger('uvicorn.error')


def derive_notification(event: NotificationEvent, owner_id: Optional[str]) -> Optional[Notification]:
    """
    Decide whether a mutation notifies the owner of what it touched.

    owner_id is the resolved author of the affected post (like_post, comment_post)
    or comment (like_comment, reply_comment). Returns None when there is nothing
    to emit: the owner could not be resolved, or the actor is the owner.
    """
    if owner_id is None:
        return None
    if owner_id == event.actor_id:
        return None
    return Notification(
        recipient_id=owner_id,
        sender_id=event.actor_id,
        post_id=event.target_post_id,
        comment_id=event.target_comment_id,
        type=event.kind,
    )


async def resolve_owner(storage: StorageGateway, event: NotificationEvent) -> Optional[str]:
    if event.kind in (NotificationKind.LIKE_COMMENT, NotificationKind.REPLY_COMMENT):
        if event.target_comment_id is None:
            return None
        return await storage.fetch_comment_owner(event.target_comment_id)
    return await storage.fetch_post_owner(event.target_post_id)


async def notify(storage: StorageGateway, event: NotificationEvent) -> Optional[Notification]:
    """
    Resolve the owner, derive and persist the notification for a mutation that
    already succeeded. Best-effort: storage failures are logged and swallowed so
    the primary mutation still reports success. Returns what was stored, if anything.
    """
    try:
        owner_id = await resolve_owner(storage, event)
        notification = derive_notification(event, owner_id)
        if notification is None:
            return None
        await storage.insert_notification(notification)
    except UpstreamFailure as e:
        logger.error(f"Dropping {event.kind.value} notification from {event.actor_id} on post {event.target_post_id}: {e}")
        return None
    logger.info(f"Notified {notification.recipient_id} of {notification.type.value} by {notification.sender_id}")
    return notification
