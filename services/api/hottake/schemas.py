"""
Pydantic request / response schemas for the API layer.
Kept separate from ORM models to avoid coupling transport to storage.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# ──────────────────────────── Users ───────────────────────────────────────

class UserCreate(BaseModel):
    # Omitted → a generated "AdjectiveNoun123" name
    username: Optional[str] = Field(None, min_length=3, max_length=100, pattern="^[a-zA-Z0-9]+$")
    full_name: str = Field("", max_length=255)


class UserResponse(BaseModel):
    user_id: str
    username: str
    full_name: str
    bio: str
    least_fav_color: str
    created_at: datetime

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = Field(None, max_length=500)
    least_fav_color: Optional[str] = Field(None, max_length=50)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


# ──────────────────────────── Takes ───────────────────────────────────────

class TakeCreate(BaseModel):
    # Length is checked by the take store after trimming, not here
    contents: str


class TakeView(BaseModel):
    """
    The one projection of a take that leaves the service — returned by the
    feed endpoints and published verbatim to live subscribers.
    """
    id: int
    owner_id: str
    contents: str
    created_at: datetime
    number_of_likes: int
    likers: list[str]


# ──────────────────────────── Live feed ───────────────────────────────────

class FeedEventType(str, Enum):
    TAKE_CREATED = "take_created"
    TAKE_LIKED = "take_liked"
    TAKE_UNLIKED = "take_unliked"


class FeedEvent(BaseModel):
    event: FeedEventType
    take: TakeView
