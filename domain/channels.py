from pydantic import BaseModel


class FollowIn(BaseModel):
    user_id: str


class FollowStatus(BaseModel):
    channel_id: str
    user_id: str
    following: bool


class AnnouncementIn(BaseModel):
    username: str
    content: str


class AnnouncementQueued(BaseModel):
    channel_id: str
    recipients: int
    message: str
