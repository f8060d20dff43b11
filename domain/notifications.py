from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional
import datetime
import uuid


class NotificationKind(str, Enum):
    LIKE_POST = "like_post"
    LIKE_COMMENT = "like_comment"
    COMMENT_POST = "comment_post"
    REPLY_COMMENT = "reply_comment"


class NotificationEvent(BaseModel):
    """A mutation that may notify the owner of the post or comment it touched."""
    kind: NotificationKind
    actor_id: str
    target_post_id: str
    target_comment_id: Optional[str] = None


class Notification(BaseModel):
    id: str = Field(default_factory=lambda: f"notification-{uuid.uuid4().hex}")
    recipient_id: str
    sender_id: str
    post_id: str
    comment_id: Optional[str] = None
    type: NotificationKind
    is_read: bool = False
    created_at: datetime.datetime = Field(default_factory=lambda: datetime.datetime.now(datetime.timezone.utc))

    class Config:
        from_attributes = True
