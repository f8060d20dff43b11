import logging
from contextlib import contextmanager
from typing import List, Optional, Set

from google.api_core import exceptions as google_api_exceptions
from google.auth import exceptions as google_auth_exceptions
from google.cloud import firestore
from google.cloud.firestore import AsyncClient
from google.cloud.firestore_v1 import FieldFilter
from pydantic import ValidationError

from domain.comments import Comment
from domain.likes import LikeSubject
from domain.notifications import Notification
from domain.posts import Post
from errors import NotFound, UpstreamFailure

logger = logging.getLogger('uvicorn.error')

POSTS_COLLECTION = "posts"
COMMENTS_SUBCOLLECTION = "comments"
NOTIFICATIONS_COLLECTION = "notifications"
LIKES_COLLECTION = "likes"
FOLLOWS_COLLECTION = "follows"
USERS_COLLECTION = "users"


@contextmanager
def upstream(operation: str):
    try:
        yield
    except (google_api_exceptions.GoogleAPIError, google_auth_exceptions.GoogleAuthError) as e:
        logger.error(f"Firestore {operation} failed: {e}")
        raise UpstreamFailure(operation, str(e)) from e


def like_doc_id(subject_id: str, user_id: str, subject: LikeSubject) -> str:
    return f"{subject.value}:{subject_id}:{user_id}"


def follow_doc_id(channel_id: str, user_id: str) -> str:
    return f"{channel_id}:{user_id}"


class FirestoreStorage:
    """StorageGateway over a Firestore AsyncClient. The client is owned by the caller."""

    def __init__(self, db: AsyncClient):
        self.db = db

    # --- posts & comments ---
    async def fetch_post(self, post_id: str) -> Optional[Post]:
        with upstream("fetch post"):
            post_doc = await self.db.collection(POSTS_COLLECTION).document(post_id).get()
        if not post_doc.exists:
            return None
        post_data = post_doc.to_dict()
        post_data['id'] = post_doc.id
        try:
            return Post(**post_data)
        except ValidationError as validation_error:
            logger.error(f"Data validation error for post {post_id}: {validation_error}. Data: {post_data}")
            return None

    async def fetch_post_owner(self, post_id: str) -> Optional[str]:
        post = await self.fetch_post(post_id)
        return post.author_id if post else None

    async def fetch_comments_for_post(self, post_id: str) -> List[Comment]:
        comments_query = (
            self.db.collection(POSTS_COLLECTION).document(post_id)
            .collection(COMMENTS_SUBCOLLECTION)
            .order_by("created_at", direction=firestore.Query.ASCENDING)
        )
        all_comments = []
        with upstream("fetch comments"):
            async for doc in comments_query.stream():
                comment_data = doc.to_dict()
                comment_data['id'] = doc.id
                try:
                    all_comments.append(Comment(**comment_data))
                except ValidationError as validation_error:
                    logger.error(f"Data validation error for comment {doc.id} in post {post_id}: {validation_error}. Data: {comment_data}")
                    continue
        return all_comments

    async def _comment_snapshot(self, comment_id: str):
        query = (
            self.db.collection_group(COMMENTS_SUBCOLLECTION)
            .where(filter=FieldFilter("id", "==", comment_id))
            .limit(1)
        )
        with upstream("fetch comment"):
            docs = await query.get()
        return docs[0] if docs else None

    async def fetch_comment(self, comment_id: str) -> Optional[Comment]:
        doc = await self._comment_snapshot(comment_id)
        if doc is None:
            return None
        comment_data = doc.to_dict()
        try:
            return Comment(**comment_data)
        except ValidationError as validation_error:
            logger.error(f"Data validation error for comment {comment_id}: {validation_error}. Data: {comment_data}")
            return None

    async def fetch_comment_owner(self, comment_id: str) -> Optional[str]:
        comment = await self.fetch_comment(comment_id)
        return comment.author_id if comment else None

    async def insert_comment(
        self, post_id: str, author_id: str, content: str, parent_comment_id: Optional[str] = None
    ) -> Comment:
        comment = Comment(
            post_id=post_id,
            author_id=author_id,
            content=content,
            parent_comment_id=parent_comment_id,
        )
        comment_ref = (
            self.db.collection(POSTS_COLLECTION).document(post_id)
            .collection(COMMENTS_SUBCOLLECTION).document(comment.id)
        )
        with upstream("insert comment"):
            await comment_ref.set(comment.to_record())
        return comment

    async def update_comment_content(self, comment_id: str, content: str) -> Comment:
        doc = await self._comment_snapshot(comment_id)
        if doc is None:
            raise NotFound(f"Comment {comment_id} not found")
        comment_data = doc.to_dict()
        comment_data["content"] = content
        try:
            comment = Comment(**comment_data)
        except ValidationError as validation_error:
            logger.error(f"Data validation error for comment {comment_id}: {validation_error}. Data: {comment_data}")
            raise NotFound(f"Comment {comment_id} is malformed") from validation_error
        with upstream("update comment"):
            await doc.reference.update({"content": content})
        return comment

    # --- notifications ---
    async def insert_notification(self, notification: Notification) -> None:
        notification_data = notification.model_dump()
        notification_data["type"] = notification.type.value
        with upstream("insert notification"):
            await self.db.collection(NOTIFICATIONS_COLLECTION).document(notification.id).set(notification_data)

    async def fetch_unread_notifications_for_user(self, user_id: str) -> List[Notification]:
        query = (
            self.db.collection(NOTIFICATIONS_COLLECTION)
            .where(filter=FieldFilter("recipient_id", "==", user_id))
            .where(filter=FieldFilter("is_read", "==", False))
            .order_by("created_at", direction=firestore.Query.DESCENDING)
        )
        notifications = []
        with upstream("fetch notifications"):
            async for doc in query.stream():
                notification_data = doc.to_dict()
                notification_data['id'] = doc.id
                try:
                    notifications.append(Notification(**notification_data))
                except ValidationError as validation_error:
                    logger.error(f"Data validation error for notification {doc.id}: {validation_error}. Data: {notification_data}")
                    continue
        return notifications

    async def mark_notification_read(self, notification_id: str) -> None:
        ref = self.db.collection(NOTIFICATIONS_COLLECTION).document(notification_id)
        try:
            await ref.update({"is_read": True})
        except google_api_exceptions.NotFound as e:
            raise NotFound(f"Notification {notification_id} not found") from e
        except (google_api_exceptions.GoogleAPIError, google_auth_exceptions.GoogleAuthError) as e:
            logger.error(f"Firestore mark notification read failed: {e}")
            raise UpstreamFailure("mark notification read", str(e)) from e

    # --- likes ---
    def _likes_query(self, subject_id: str, subject: LikeSubject):
        return (
            self.db.collection(LIKES_COLLECTION)
            .where(filter=FieldFilter("subject_kind", "==", subject.value))
            .where(filter=FieldFilter("subject_id", "==", subject_id))
        )

    async def has_like(self, subject_id: str, user_id: str, subject: LikeSubject) -> bool:
        with upstream("fetch like"):
            doc = await self.db.collection(LIKES_COLLECTION).document(
                like_doc_id(subject_id, user_id, subject)
            ).get()
        return doc.exists

    async def insert_like(self, subject_id: str, user_id: str, subject: LikeSubject) -> None:
        with upstream("insert like"):
            await self.db.collection(LIKES_COLLECTION).document(like_doc_id(subject_id, user_id, subject)).set({
                "subject_kind": subject.value,
                "subject_id": subject_id,
                "user_id": user_id,
                "created_at": firestore.SERVER_TIMESTAMP,
            })

    async def delete_like(self, subject_id: str, user_id: str, subject: LikeSubject) -> None:
        with upstream("delete like"):
            await self.db.collection(LIKES_COLLECTION).document(like_doc_id(subject_id, user_id, subject)).delete()

    async def count_likes(self, subject_id: str, subject: LikeSubject) -> int:
        with upstream("count likes"):
            results = await self._likes_query(subject_id, subject).count(alias="likes").get()
        return int(results[0][0].value) if results else 0

    async def fetch_like_user_ids(self, subject_id: str, subject: LikeSubject) -> List[str]:
        user_ids = []
        with upstream("fetch likes"):
            async for doc in self._likes_query(subject_id, subject).stream():
                user_ids.append(doc.to_dict()["user_id"])
        return user_ids

    # --- channels & users ---
    async def fetch_follower_user_ids(self, channel_id: str) -> Set[str]:
        query = self.db.collection(FOLLOWS_COLLECTION).where(filter=FieldFilter("channel_id", "==", channel_id))
        follower_ids = set()
        with upstream("fetch followers"):
            async for doc in query.stream():
                follower_ids.add(doc.to_dict()["user_id"])
        return follower_ids

    async def is_following(self, channel_id: str, user_id: str) -> bool:
        with upstream("fetch follow"):
            doc = await self.db.collection(FOLLOWS_COLLECTION).document(follow_doc_id(channel_id, user_id)).get()
        return doc.exists

    async def insert_follow(self, channel_id: str, user_id: str) -> None:
        with upstream("insert follow"):
            await self.db.collection(FOLLOWS_COLLECTION).document(follow_doc_id(channel_id, user_id)).set({
                "channel_id": channel_id,
                "user_id": user_id,
            })

    async def delete_follow(self, channel_id: str, user_id: str) -> None:
        with upstream("delete follow"):
            await self.db.collection(FOLLOWS_COLLECTION).document(follow_doc_id(channel_id, user_id)).delete()

    async def fetch_user_email(self, user_id: str) -> Optional[str]:
        with upstream("fetch user"):
            user_doc = await self.db.collection(USERS_COLLECTION).document(user_id).get()
        if not user_doc.exists:
            return None
        return user_doc.to_dict().get("email") or None
