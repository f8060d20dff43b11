"""
Storage gateway consumed by the comment, like, notification and fanout services.

The gateway is record-shaped and holds no business rules. Every method may raise
errors.UpstreamFailure when the backing store fails. Methods that "resolve" a
record return None when it does not exist instead of raising.

Nothing here is transactional: a sequence such as insert comment, resolve owner,
insert notification may interleave with other writers.
"""
from typing import List, Optional, Protocol, Set

from domain.comments import Comment
from domain.likes import LikeSubject
from domain.notifications import Notification
from domain.posts import Post


class StorageGateway(Protocol):

    # posts and comments
    async def fetch_post(self, post_id: str) -> Optional[Post]: ...

    async def fetch_post_owner(self, post_id: str) -> Optional[str]: ...

    async def fetch_comments_for_post(self, post_id: str) -> List[Comment]:
        """All comments of a post, ascending by created_at."""
        ...

    async def fetch_comment(self, comment_id: str) -> Optional[Comment]: ...

    async def fetch_comment_owner(self, comment_id: str) -> Optional[str]: ...

    async def insert_comment(
        self, post_id: str, author_id: str, content: str, parent_comment_id: Optional[str] = None
    ) -> Comment: ...

    async def update_comment_content(self, comment_id: str, content: str) -> Comment:
        """Raises errors.NotFound if the comment does not exist."""
        ...

    # notifications
    async def insert_notification(self, notification: Notification) -> None: ...

    async def fetch_unread_notifications_for_user(self, user_id: str) -> List[Notification]:
        """Unread notifications of a user, newest first."""
        ...

    async def mark_notification_read(self, notification_id: str) -> None:
        """Raises errors.NotFound if the notification does not exist."""
        ...

    # likes
    async def has_like(self, subject_id: str, user_id: str, subject: LikeSubject) -> bool: ...

    async def insert_like(self, subject_id: str, user_id: str, subject: LikeSubject) -> None: ...

    async def delete_like(self, subject_id: str, user_id: str, subject: LikeSubject) -> None: ...

    async def count_likes(self, subject_id: str, subject: LikeSubject) -> int: ...

    async def fetch_like_user_ids(self, subject_id: str, subject: LikeSubject) -> List[str]: ...

    # channels and users
    async def fetch_follower_user_ids(self, channel_id: str) -> Set[str]: ...

    async def is_following(self, channel_id: str, user_id: str) -> bool: ...

    async def insert_follow(self, channel_id: str, user_id: str) -> None: ...

    async def delete_follow(self, channel_id: str, user_id: str) -> None: ...

    async def fetch_user_email(self, user_id: str) -> Optional[str]: ...
