"""
Feed query — the read path.

Returns TakeViews newest first. Ties on created_at fall back to the take id,
which grows in insertion order, so the ordering is total and repeatable.
"""
import logging
import time
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from hottake.config import settings
from hottake.like_ledger import LikeLedger
from hottake.models import Take
from hottake.schemas import TakeView
from hottake.take_store import TakeStore, TimeWindow
from hottake.telemetry import FEED_QUERY_LATENCY

logger = logging.getLogger(__name__)


def today_window(now: datetime) -> TimeWindow:
    """The rolling "as of today" window around `now` (naive UTC)."""
    return TimeWindow(
        start=now - timedelta(hours=settings.feed_window_hours_before),
        end=now + timedelta(hours=settings.feed_window_hours_after),
    )


def build_view(take: Take, likers: set[str]) -> TakeView:
    return TakeView(
        id=take.id,
        owner_id=take.owner_id,
        contents=take.contents,
        created_at=take.created_at,
        number_of_likes=len(likers),
        likers=sorted(likers),
    )


class FeedQuery:
    def __init__(self, session: AsyncSession) -> None:
        self.takes = TakeStore(session)
        self.likes = LikeLedger(session)

    async def query(self, window: Optional[TimeWindow] = None) -> list[TakeView]:
        start = time.perf_counter()

        takes = await self.takes.list(window)
        takes.sort(key=lambda t: (t.created_at, t.id), reverse=True)
        likers = await self.likes.likers_by_take([t.id for t in takes])
        views = [build_view(t, likers[t.id]) for t in takes]

        FEED_QUERY_LATENCY.labels(window="all" if window is None else "range").observe(
            time.perf_counter() - start
        )
        return views

    async def view(self, take_id: int) -> TakeView:
        """Current state of one take; raises NotFound once it is gone."""
        take = await self.takes.get(take_id)
        return build_view(take, await self.likes.likers_of(take_id))
