"""
Shared fixtures.

The environment is pinned before anything from hottake is imported: a
throwaway SQLite file stands in for TiDB, the broadcaster stays in-process
and tracing is off.
"""
import os
import tempfile

os.environ["DATABASE_URL"] = (
    f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), f'hottake-test-{os.getpid()}.db')}"
)
os.environ["BROADCAST_BACKEND"] = "memory"
os.environ["OTEL_ENABLED"] = "false"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["POSTING_GATE_OVERRIDE"] = "false"

from datetime import datetime  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from hottake.broadcast import FeedBroadcaster  # noqa: E402
from hottake.database import AsyncSessionLocal, Base, engine, init_db  # noqa: E402
from hottake.gate import PostingGate  # noqa: E402
from hottake.models import Take, User  # noqa: E402

@pytest.fixture
async def db():
    await init_db()
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def session(db):
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
async def users(session) -> list[str]:
    """Three committed users; returns their ids."""
    created = [User(username=name) for name in ("alice", "bob", "carol")]
    session.add_all(created)
    await session.commit()
    return [u.user_id for u in created]


@pytest.fixture
def feed_broadcaster() -> FeedBroadcaster:
    return FeedBroadcaster("take_feed", queue_size=10)


@pytest.fixture
def gate() -> PostingGate:
    return PostingGate(3, ["America/New_York", "America/Los_Angeles"])


@pytest.fixture
async def client(db):
    from hottake.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_take(session):
    """Write a take with an explicit timestamp, bypassing the gate."""

    async def _make(owner_id: str, contents: str, created_at: datetime) -> int:
        take = Take(owner_id=owner_id, contents=contents, created_at=created_at)
        session.add(take)
        await session.commit()
        return take.id

    return _make
