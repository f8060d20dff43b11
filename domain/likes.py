from enum import Enum
from pydantic import BaseModel
from typing import List


class LikeSubject(str, Enum):
    POST = "post"
    COMMENT = "comment"


class LikeIn(BaseModel):
    user_id: str


class LikeResult(BaseModel):
    like_count: int
    # False when the pair was already recorded (or, for unlike, absent).
    changed: bool = False


class Likers(BaseModel):
    like_count: int
    user_ids: List[str]
