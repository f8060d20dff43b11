from pydantic import BaseModel
from typing import Optional
import datetime


class Post(BaseModel):
    """Post record as written by the posting layer. Only the fields this service reads."""
    id: str
    author_id: str
    channel_id: Optional[str] = None
    title: Optional[str] = None
    content: Optional[str] = None
    created_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True
