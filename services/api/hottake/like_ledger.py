"""
Like ledger — the set of (take, user) like pairs.

add() and remove() are single statements keyed by the composite primary key,
so concurrent toggles serialize inside the database:

  add    → INSERT … ON CONFLICT DO NOTHING   (INSERT IGNORE on TiDB/MySQL)
  remove → DELETE … WHERE take_id = ? AND user_id = ?

The affected row count tells the caller whether the ledger changed.
"""
import logging

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from hottake.models import Like

logger = logging.getLogger(__name__)


def _insert_if_absent(dialect_name: str, take_id: int, user_id: str):
    values = {"take_id": take_id, "user_id": user_id}
    if dialect_name == "sqlite":
        return sqlite_insert(Like).values(**values).on_conflict_do_nothing()
    if dialect_name == "postgresql":
        return pg_insert(Like).values(**values).on_conflict_do_nothing()
    if dialect_name == "mysql":
        return mysql_insert(Like).values(**values).prefix_with("IGNORE")
    raise NotImplementedError(f"no insert-or-ignore for dialect {dialect_name!r}")


class LikeLedger:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @property
    def _dialect(self) -> str:
        return self.session.get_bind().dialect.name

    async def add(self, user_id: str, take_id: int) -> bool:
        """Record the like. Returns False when it was already there."""
        result = await self.session.execute(_insert_if_absent(self._dialect, take_id, user_id))
        added = result.rowcount == 1
        logger.debug("like take=%s user=%s added=%s", take_id, user_id, added)
        return added

    async def remove(self, user_id: str, take_id: int) -> bool:
        """Drop the like. Returns False when there was nothing to drop."""
        result = await self.session.execute(
            delete(Like).where(Like.take_id == take_id, Like.user_id == user_id)
        )
        removed = result.rowcount > 0
        logger.debug("unlike take=%s user=%s removed=%s", take_id, user_id, removed)
        return removed

    async def count_for(self, take_id: int) -> int:
        rows = await self.session.execute(
            select(func.count()).select_from(Like).where(Like.take_id == take_id)
        )
        return rows.scalar_one()

    async def likers_of(self, take_id: int) -> set[str]:
        rows = await self.session.execute(select(Like.user_id).where(Like.take_id == take_id))
        return set(rows.scalars().all())

    async def likers_by_take(self, take_ids: list[int]) -> dict[int, set[str]]:
        """Batch form of likers_of for the feed read path."""
        likers: dict[int, set[str]] = {take_id: set() for take_id in take_ids}
        if not take_ids:
            return likers
        rows = await self.session.execute(
            select(Like.take_id, Like.user_id).where(Like.take_id.in_(take_ids))
        )
        for take_id, user_id in rows.all():
            likers[take_id].add(user_id)
        return likers
