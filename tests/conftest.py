"""
Shared pytest fixtures: an in-memory storage gateway, a recording mailer and a
FastAPI test client wired to both.
"""
import datetime
import itertools
from typing import Dict, List, Optional, Set

import pytest
from fastapi.testclient import TestClient

from api import create_app
from domain.comments import Comment
from domain.likes import LikeSubject
from domain.notifications import Notification
from domain.posts import Post
from errors import NotFound, UpstreamFailure

BASE_TIME = datetime.datetime(2024, 11, 1, 12, 0, tzinfo=datetime.timezone.utc)


def comment_at(comment_id, parent=None, t=0, post_id="42", author_id="9", content="text"):
    """Build a comment whose created_at is t seconds after BASE_TIME."""
    return Comment(
        id=str(comment_id),
        post_id=post_id,
        author_id=author_id,
        content=content,
        parent_comment_id=None if parent is None else str(parent),
        created_at=BASE_TIME + datetime.timedelta(seconds=t),
    )


class InMemoryStorage:
    """StorageGateway kept in dicts. Methods listed in fail_on raise UpstreamFailure."""

    def __init__(self):
        self.posts: Dict[str, Post] = {}
        self.comments: Dict[str, Comment] = {}
        self.notifications: Dict[str, Notification] = {}
        self.likes: Set[tuple] = set()
        self.follows: Set[tuple] = set()
        self.emails: Dict[str, str] = {}
        self.fail_on: Set[str] = set()
        self._clock = itertools.count(1)

    def _check(self, operation):
        if operation in self.fail_on:
            raise UpstreamFailure(operation, "simulated outage")

    def _now(self):
        return BASE_TIME + datetime.timedelta(seconds=next(self._clock))

    def add_post(self, post_id, author_id, channel_id=None):
        self.posts[post_id] = Post(id=post_id, author_id=author_id, channel_id=channel_id, title=f"post {post_id}")
        return self.posts[post_id]

    def add_comment(self, comment: Comment):
        self.comments[comment.id] = comment
        return comment

    async def fetch_post(self, post_id: str) -> Optional[Post]:
        self._check("fetch_post")
        return self.posts.get(post_id)

    async def fetch_post_owner(self, post_id: str) -> Optional[str]:
        self._check("fetch_post_owner")
        post = self.posts.get(post_id)
        return post.author_id if post else None

    async def fetch_comments_for_post(self, post_id: str) -> List[Comment]:
        self._check("fetch_comments_for_post")
        return sorted(
            (c for c in self.comments.values() if c.post_id == post_id),
            key=lambda c: c.created_at,
        )

    async def fetch_comment(self, comment_id: str) -> Optional[Comment]:
        self._check("fetch_comment")
        return self.comments.get(comment_id)

    async def fetch_comment_owner(self, comment_id: str) -> Optional[str]:
        self._check("fetch_comment_owner")
        comment = self.comments.get(comment_id)
        return comment.author_id if comment else None

    async def insert_comment(self, post_id, author_id, content, parent_comment_id=None) -> Comment:
        self._check("insert_comment")
        comment = Comment(
            post_id=post_id,
            author_id=author_id,
            content=content,
            parent_comment_id=parent_comment_id,
            created_at=self._now(),
        )
        return self.add_comment(comment)

    async def update_comment_content(self, comment_id: str, content: str) -> Comment:
        self._check("update_comment_content")
        if comment_id not in self.comments:
            raise NotFound(comment_id)
        self.comments[comment_id] = self.comments[comment_id].model_copy(update={"content": content})
        return self.comments[comment_id]

    async def insert_notification(self, notification: Notification) -> None:
        self._check("insert_notification")
        self.notifications[notification.id] = notification

    async def fetch_unread_notifications_for_user(self, user_id: str) -> List[Notification]:
        self._check("fetch_unread_notifications_for_user")
        unread = [n for n in self.notifications.values() if n.recipient_id == user_id and not n.is_read]
        return sorted(unread, key=lambda n: n.created_at, reverse=True)

    async def mark_notification_read(self, notification_id: str) -> None:
        self._check("mark_notification_read")
        if notification_id not in self.notifications:
            raise NotFound(notification_id)
        self.notifications[notification_id].is_read = True

    async def has_like(self, subject_id: str, user_id: str, subject: LikeSubject) -> bool:
        self._check("has_like")
        return (subject, subject_id, user_id) in self.likes

    async def insert_like(self, subject_id: str, user_id: str, subject: LikeSubject) -> None:
        self._check("insert_like")
        self.likes.add((subject, subject_id, user_id))

    async def delete_like(self, subject_id: str, user_id: str, subject: LikeSubject) -> None:
        self._check("delete_like")
        self.likes.discard((subject, subject_id, user_id))

    async def count_likes(self, subject_id: str, subject: LikeSubject) -> int:
        self._check("count_likes")
        return sum(1 for s, sid, _ in self.likes if s == subject and sid == subject_id)

    async def fetch_like_user_ids(self, subject_id: str, subject: LikeSubject) -> List[str]:
        self._check("fetch_like_user_ids")
        return sorted(uid for s, sid, uid in self.likes if s == subject and sid == subject_id)

    async def fetch_follower_user_ids(self, channel_id: str) -> Set[str]:
        self._check("fetch_follower_user_ids")
        return {uid for cid, uid in self.follows if cid == channel_id}

    async def is_following(self, channel_id: str, user_id: str) -> bool:
        self._check("is_following")
        return (channel_id, user_id) in self.follows

    async def insert_follow(self, channel_id: str, user_id: str) -> None:
        self._check("insert_follow")
        self.follows.add((channel_id, user_id))

    async def delete_follow(self, channel_id: str, user_id: str) -> None:
        self._check("delete_follow")
        self.follows.discard((channel_id, user_id))

    async def fetch_user_email(self, user_id: str) -> Optional[str]:
        self._check("fetch_user_email")
        return self.emails.get(user_id)


class RecordingMailer:
    """Mailer that records every attempt and fails for addresses in failing."""

    def __init__(self):
        self.attempts: List[str] = []
        self.sent: List[tuple] = []
        self.failing: Set[str] = set()

    async def send(self, to: str, subject: str, body: str) -> bool:
        self.attempts.append(to)
        if to in self.failing:
            raise UpstreamFailure("mail send", f"rejected {to}")
        self.sent.append((to, subject, body))
        return True


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def app(storage, mailer):
    app = create_app()
    app.state.storage = storage
    app.state.mailer = mailer
    return app


@pytest.fixture
def client(app):
    return TestClient(app)
