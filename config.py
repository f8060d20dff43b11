from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MAX_COMMENT_SIZE_KB = 500


class Settings(BaseSettings):
    """Service settings, read from FORUM_* environment variables or a .env file."""

    # Firestore
    gcp_project: Optional[str] = None
    firestore_database: str = "(default)"

    # SendGrid
    sendgrid_api_key: Optional[str] = None
    sendgrid_api_key_secret: Optional[str] = None  # projects/<id>/secrets/<name>/versions/latest
    mail_from: str = "no-reply@localhost"

    allowed_hosts: List[str] = ["localhost", "127.0.0.1", "testserver"]
    max_comment_bytes: int = MAX_COMMENT_SIZE_KB * 1024
    announcement_subject_prefix: str = "Post from: "
    # Nesting cap for the comment tree; deeper replies are listed beside their ancestor at this depth.
    max_reply_depth: int = Field(default=32, ge=1, le=100)

    model_config = SettingsConfigDict(
        env_prefix="FORUM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
