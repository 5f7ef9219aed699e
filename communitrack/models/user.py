"""User document model for authentication."""

from datetime import datetime, timezone
from typing import Literal, Optional

from beanie import Document, Indexed
from pydantic import Field


class User(Document):
    """User document model for authentication.

    Fields:
    - id: ObjectId primary key (from Document)
    - email: unique login email
    - username: unique display name
    - hashed_password: Argon2 password hash
    - is_active / is_superuser: account flags
    - language: preferred UI and import-template language
    """

    email: Indexed(str, unique=True)
    username: Indexed(str, unique=True)
    hashed_password: str
    is_active: bool = True
    is_superuser: bool = False

    full_name: Optional[str] = None
    language: Literal["de", "en"] = "de"

    # Timestamps
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_login: Optional[datetime] = None

    class Settings:
        name = "users"

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, email={self.email}, is_active={self.is_active})>"
