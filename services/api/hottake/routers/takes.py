"""
Take endpoints:
  POST   /takes/                 — post a take (posting day only)
  GET    /takes/{id}             — fetch one take with its like state
  DELETE /takes/{id}             — delete your own take
  POST   /takes/{id}/like        — like a take (idempotent)
  POST   /takes/{id}/unlike      — unlike a take (idempotent)

Every write requires a bearer token. Successful writes are pushed to live
feed subscribers (see routers/feed.py).
"""
import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from hottake.auth import current_user_id
from hottake.broadcast import broadcaster
from hottake.database import get_db
from hottake.feed_query import FeedQuery
from hottake.schemas import TakeCreate, TakeView
from hottake.service import TakeFeedService

logger = logging.getLogger(__name__)
router = APIRouter()


def get_service(db: AsyncSession = Depends(get_db)) -> TakeFeedService:
    return TakeFeedService(db, broadcaster)


@router.post("/", response_model=TakeView, status_code=status.HTTP_201_CREATED)
async def create_take(
    body: TakeCreate,
    user_id: str = Depends(current_user_id),
    service: TakeFeedService = Depends(get_service),
):
    return await service.create_take(user_id, body.contents)


@router.get("/{take_id}", response_model=TakeView)
async def get_take(take_id: int, db: AsyncSession = Depends(get_db)):
    return await FeedQuery(db).view(take_id)


@router.delete("/{take_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_take(
    take_id: int,
    user_id: str = Depends(current_user_id),
    service: TakeFeedService = Depends(get_service),
):
    await service.delete_take(user_id, take_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{take_id}/like", response_model=TakeView)
async def like_take(
    take_id: int,
    user_id: str = Depends(current_user_id),
    service: TakeFeedService = Depends(get_service),
):
    return await service.like(user_id, take_id)


@router.post("/{take_id}/unlike", response_model=TakeView)
async def unlike_take(
    take_id: int,
    user_id: str = Depends(current_user_id),
    service: TakeFeedService = Depends(get_service),
):
    return await service.unlike(user_id, take_id)
