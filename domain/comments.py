from pydantic import BaseModel, Field
from typing import List, Optional
import datetime
import uuid


class CommentIn(BaseModel):
    user_id: str
    content: str
    parent_comment_id: Optional[str] = None  # None for a top-level comment


class CommentEdit(BaseModel):
    content: str


class Comment(BaseModel):
    id: str = Field(default_factory=lambda: f"comment-{uuid.uuid4().hex}")
    post_id: str
    author_id: str
    content: str
    parent_comment_id: Optional[str] = None
    created_at: datetime.datetime = Field(default_factory=lambda: datetime.datetime.now(datetime.timezone.utc))
    # Filled in only while building a tree; never stored.
    replies: List["Comment"] = Field(default_factory=list)

    class Config:
        from_attributes = True

    def to_record(self) -> dict:
        return self.model_dump(exclude={"replies"})


class CommentTree(BaseModel):
    comments: List[Comment]
    total_comments: int


class PostComments(CommentTree):
    post_id: str
