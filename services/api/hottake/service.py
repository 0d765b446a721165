"""
Take feed service — orchestrates the write path.

  create:       gate check → validate → persist → commit → broadcast
  like/unlike:  resolve take → toggle ledger → commit → broadcast
  delete:       resolve take → ownership check → delete (cascades likes)

The caller authenticates first and passes the user id in. Any failure before
the commit leaves nothing behind and publishes nothing; the broadcast happens
only once the write is durable, and it cannot fail the write.
"""
import logging
from datetime import datetime
from typing import Callable, Optional

from opentelemetry import trace
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hottake.broadcast import FeedBroadcaster
from hottake.config import settings
from hottake.errors import GateClosed, StoreFailure
from hottake.feed_query import FeedQuery, build_view
from hottake.gate import PostingGate, default_gate
from hottake.like_ledger import LikeLedger
from hottake.models import utcnow
from hottake.schemas import FeedEventType, TakeView
from hottake.take_store import TakeStore
from hottake.telemetry import (
    GATE_REJECTIONS_TOTAL,
    LIKE_TOGGLES_TOTAL,
    TAKES_CREATED_TOTAL,
    TAKES_DELETED_TOTAL,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class TakeFeedService:
    def __init__(
        self,
        session: AsyncSession,
        broadcaster: FeedBroadcaster,
        gate: Optional[PostingGate] = None,
        clock: Callable[[], datetime] = utcnow,
        gate_override: Optional[bool] = None,
    ) -> None:
        self.session = session
        self.broadcaster = broadcaster
        self.gate = gate or default_gate()
        self.clock = clock
        self.gate_override = settings.posting_gate_override if gate_override is None else gate_override
        self.takes = TakeStore(session, clock=clock)
        self.likes = LikeLedger(session)
        self.feed = FeedQuery(session)

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error("Commit failed: %s", exc)
            raise StoreFailure("Could not save your change, please retry") from exc

    async def create_take(self, user_id: str, contents: str) -> TakeView:
        with tracer.start_as_current_span("create_take") as span:
            span.set_attribute("user.id", user_id)

            if not self.gate.allowed(self.clock(), self.gate_override):
                GATE_REJECTIONS_TOTAL.inc()
                raise GateClosed(f"It's not {self.gate.weekday_name}. Takes can only be posted on {self.gate.weekday_name}s.")

            try:
                take = await self.takes.create(user_id, contents)
            except SQLAlchemyError as exc:
                await self.session.rollback()
                raise StoreFailure("Could not save your take, please retry") from exc
            await self._commit()

            span.set_attribute("take.id", take.id)
            TAKES_CREATED_TOTAL.inc()
            logger.info("Take created: %s by user %s", take.id, user_id)

            view = build_view(take, set())
            self.broadcaster.publish(FeedEventType.TAKE_CREATED, view)
            return view

    async def delete_take(self, user_id: str, take_id: int) -> None:
        with tracer.start_as_current_span("delete_take") as span:
            span.set_attribute("take.id", take_id)
            try:
                await self.takes.delete(take_id, user_id)
            except SQLAlchemyError as exc:
                await self.session.rollback()
                raise StoreFailure("Could not delete the take, please retry") from exc
            await self._commit()
            TAKES_DELETED_TOTAL.inc()
            logger.info("Take deleted: %s by user %s", take_id, user_id)

    async def like(self, user_id: str, take_id: int) -> TakeView:
        return await self._toggle(user_id, take_id, liked=True)

    async def unlike(self, user_id: str, take_id: int) -> TakeView:
        return await self._toggle(user_id, take_id, liked=False)

    async def _toggle(self, user_id: str, take_id: int, liked: bool) -> TakeView:
        action = "like" if liked else "unlike"
        with tracer.start_as_current_span(f"{action}_take") as span:
            span.set_attribute("take.id", take_id)
            span.set_attribute("user.id", user_id)

            await self.takes.get(take_id)  # NotFound short-circuits here
            try:
                if liked:
                    changed = await self.likes.add(user_id, take_id)
                else:
                    changed = await self.likes.remove(user_id, take_id)
            except SQLAlchemyError as exc:
                await self.session.rollback()
                raise StoreFailure(f"Could not {action} the take, please retry") from exc
            await self._commit()

            LIKE_TOGGLES_TOTAL.labels(action=action, changed=str(changed).lower()).inc()
            span.set_attribute("like.changed", changed)

            view = await self.feed.view(take_id)
            event = FeedEventType.TAKE_LIKED if liked else FeedEventType.TAKE_UNLIKED
            self.broadcaster.publish(event, view)
            return view
