"""
Take store — durable record of takes.

Contents are validated once, on creation, and stored trimmed. Nothing in
this layer orders results; ordering belongs to the feed query.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from hottake.config import settings
from hottake.errors import NotFound, NotOwner, ValidationError
from hottake.models import Like, Take, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeWindow:
    """Closed creation-time range [start, end], naive UTC."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValidationError("window start must not be after its end", field="since")


def validate_contents(contents: str, max_length: Optional[int] = None) -> str:
    """Return trimmed contents, or raise ValidationError."""
    max_length = max_length or settings.take_max_length
    trimmed = (contents or "").strip()
    if not trimmed:
        raise ValidationError("contents must not be blank", field="contents")
    if len(trimmed) > max_length:
        raise ValidationError(
            f"contents must be at most {max_length} characters (got {len(trimmed)})",
            field="contents",
        )
    return trimmed


class TakeStore:
    def __init__(self, session: AsyncSession, clock: Callable[[], datetime] = utcnow) -> None:
        self.session = session
        self.clock = clock

    async def create(self, owner_id: str, contents: str) -> Take:
        take = Take(owner_id=owner_id, contents=validate_contents(contents), created_at=self.clock())
        self.session.add(take)
        await self.session.flush()  # materialise take.id
        logger.debug("Stored take %s for user %s", take.id, owner_id)
        return take

    async def get(self, take_id: int) -> Take:
        take = await self.session.get(Take, take_id)
        if take is None:
            raise NotFound(f"Take {take_id} not found")
        return take

    async def delete(self, take_id: int, requester_id: str) -> None:
        take = await self.get(take_id)
        if take.owner_id != requester_id:
            raise NotOwner("Can't delete a take that's not yours")
        # Likes are cleared explicitly as well as by the FK cascade: TiDB
        # releases before 6.6 parse foreign keys but do not enforce them.
        await self.session.execute(delete(Like).where(Like.take_id == take_id))
        await self.session.delete(take)
        await self.session.flush()
        logger.debug("Deleted take %s", take_id)

    async def list(self, window: Optional[TimeWindow] = None) -> list[Take]:
        stmt = select(Take)
        if window is not None:
            stmt = stmt.where(Take.created_at >= window.start, Take.created_at <= window.end)
        rows = await self.session.execute(stmt)
        return list(rows.scalars().all())
