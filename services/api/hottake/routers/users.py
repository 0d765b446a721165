"""
Profile store & token endpoints:
  POST  /users/          — register; returns the profile and an access token
  GET   /users/me        — the authenticated user's profile
  PATCH /users/me        — edit profile fields
  POST  /users/logout    — revoke the presented token
  GET   /users/{id}      — fetch a user profile

Profile fields are plain attributes; the take feed only ever refers to users
by id.
"""
import logging
import random
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hottake.auth import IdentityGuard, bearer_token, current_user_id, issue_token
from hottake.database import get_db
from hottake.errors import Conflict, NotFound
from hottake.models import User
from hottake.schemas import ProfileUpdate, TokenResponse, UserCreate, UserResponse

logger = logging.getLogger(__name__)
router = APIRouter()

ADJECTIVES = ["Pernicious", "Volatile", "Cuddly", "Ferocious", "Malignant", "Spicy", "Taken", "Ecstatic", "Sweet"]
NOUNS = ["Penguin", "Dolphin", "PolarBear", "Tiger", "Platypus", "Salmon", "Wolverine", "Cat", "Dog", "Elephant"]


def default_username() -> str:
    return f"{random.choice(ADJECTIVES)}{random.choice(NOUNS)}{random.randrange(1000)}"


async def _get_user(db: AsyncSession, user_id: str) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


@router.post("/", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def create_user(body: UserCreate, db: AsyncSession = Depends(get_db)):
    username = body.username or default_username()
    existing = await db.execute(
        select(User).where(func.lower(User.username) == username.lower())
    )
    if existing.scalar_one_or_none():
        raise Conflict(f"Username '{username}' already taken")

    user = User(username=username, full_name=body.full_name)
    db.add(user)
    try:
        await db.commit()  # the token is usable as soon as it is returned
    except IntegrityError as exc:
        # Lost a race with a concurrent registration of the same name
        await db.rollback()
        raise Conflict(f"Username '{username}' already taken") from exc

    logger.info("Created user %s (id=%s)", user.username, user.user_id)
    return TokenResponse(
        access_token=issue_token(user.user_id),
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=UserResponse)
async def get_me(user_id: str = Depends(current_user_id), db: AsyncSession = Depends(get_db)):
    return await _get_user(db, user_id)


@router.patch("/me", response_model=UserResponse)
async def update_me(
    body: ProfileUpdate,
    user_id: str = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
):
    user = await _get_user(db, user_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(user, field, value)
    await db.flush()
    return user


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(token: Optional[str] = Depends(bearer_token), db: AsyncSession = Depends(get_db)):
    await IdentityGuard(db).revoke(token)
    await db.commit()  # durable before the client drops the token


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)):
    return await _get_user(db, user_id)
