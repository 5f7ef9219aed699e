"""Pydantic schemas for users and authentication."""

from datetime import datetime
from typing import Any, Literal

from beanie import PydanticObjectId
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class UserRecord(BaseModel):
    """User as held by the store, including the password hash."""

    id: str
    email: str
    username: str
    hashed_password: str
    is_active: bool = True
    is_superuser: bool = False
    full_name: str | None = None
    language: Literal["de", "en"] = "de"
    created_at: datetime
    updated_at: datetime
    last_login: datetime | None = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("id", mode="before")
    @classmethod
    def convert_objectid_to_str(cls, v: Any) -> str:
        """Convert ObjectId to string."""
        if isinstance(v, PydanticObjectId):
            return str(v)
        return v


class UserRead(BaseModel):
    """Public view of a user."""

    id: str
    email: str
    username: str
    full_name: str | None = None
    language: Literal["de", "en"] = "de"
    is_superuser: bool = False
    created_at: datetime
    last_login: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class UserCreate(BaseModel):
    """Registration payload."""

    email: EmailStr
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=8, max_length=128)
    full_name: str | None = None
    language: Literal["de", "en"] = "de"


class UserUpdate(BaseModel):
    """Profile update; all fields optional."""

    full_name: str | None = None
    language: Literal["de", "en"] | None = None


class TokenResponse(BaseModel):
    """OAuth2 bearer token response."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
