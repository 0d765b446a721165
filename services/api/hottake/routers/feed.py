"""
Feed endpoints:
  GET /feed/             — every take, newest first; optional since/until window
  GET /feed/today        — takes from 27h ago to 3h ahead (clock-skew leeway)
  WS  /feed/live         — live stream of feed events on the shared topic

Reads need no authentication. The live stream is best-effort: a client only
receives events published while it is connected.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession

from hottake.broadcast import Subscription, broadcaster
from hottake.database import get_db
from hottake.errors import ValidationError
from hottake.feed_query import FeedQuery, today_window
from hottake.models import utcnow
from hottake.schemas import TakeView
from hottake.take_store import TimeWindow

logger = logging.getLogger(__name__)
router = APIRouter()


def _as_naive_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


@router.get("/", response_model=list[TakeView])
async def list_feed(
    since: Optional[datetime] = Query(None, description="Window start (inclusive)"),
    until: Optional[datetime] = Query(None, description="Window end (inclusive)"),
    db: AsyncSession = Depends(get_db),
):
    if (since is None) != (until is None):
        raise ValidationError("since and until must be supplied together", field="since")
    window = None
    if since is not None:
        window = TimeWindow(_as_naive_utc(since), _as_naive_utc(until))
    return await FeedQuery(db).query(window)


@router.get("/today", response_model=list[TakeView])
async def list_feed_today(db: AsyncSession = Depends(get_db)):
    return await FeedQuery(db).query(today_window(utcnow()))


async def _forward(websocket: WebSocket, subscription: Subscription) -> None:
    async for payload in subscription:
        await websocket.send_text(payload)


async def _wait_for_close(websocket: WebSocket) -> None:
    # Clients never send anything meaningful; this only notices the hang-up
    while True:
        await websocket.receive_text()


@router.websocket("/live")
async def live_feed(websocket: WebSocket):
    await websocket.accept()
    subscription = broadcaster.subscribe()
    logger.info("Live feed subscriber joined (%d connected)", broadcaster.subscriber_count)

    tasks = [
        asyncio.create_task(_forward(websocket, subscription)),
        asyncio.create_task(_wait_for_close(websocket)),
    ]
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning("Live feed connection failed: %s", exc)
    finally:
        for task in tasks:
            task.cancel()
        subscription.unsubscribe()
        logger.info("Live feed subscriber left (%d connected)", broadcaster.subscriber_count)
