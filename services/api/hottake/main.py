"""
Hot Take Feed API — entry point.

Startup sequence:
  1. Configure OTel tracing (→ Jaeger via OTLP)
  2. Initialise DB connection pool (TiDB) and create tables if not present
  3. Connect to Redis and start the live-feed relay (redis backend only)
  4. Expose Prometheus /metrics endpoint
"""
import logging

from contextlib import asynccontextmanager
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from hottake.broadcast import broadcaster
from hottake.clients.redis_client import close_redis, init_redis
from hottake.config import settings
from hottake.database import engine, init_db
from hottake.errors import TakeFeedError, take_feed_error_handler
from hottake.routers import feed, takes, users
from hottake.telemetry import instrument_app, setup_tracing

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)

# Set up tracing before the app is created so all imports are instrumented
setup_tracing()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup and shutdown of all external connections."""
    logger.info("Starting Hot Take Feed API (env=%s)", settings.environment)

    await init_db()
    if settings.broadcast_backend == "redis":
        await broadcaster.start(await init_redis())
    else:
        logger.info("Feed broadcaster running in-process (backend=%s)", settings.broadcast_backend)
    if settings.posting_gate_override:
        logger.warning("Posting gate override is ON — takes can be posted any day")

    logger.info("All services connected. API ready.")
    yield

    logger.info("Shutting down...")
    await broadcaster.stop()
    await close_redis()
    await engine.dispose()


app = FastAPI(
    title="Hot Take Feed API",
    description=(
        "Post one short take a week, like other people's, and watch the "
        "feed update live."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.add_exception_handler(TakeFeedError, take_feed_error_handler)

# ── Routers ────────────────────────────────────────────────────────────────
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(takes.router, prefix="/takes", tags=["Takes"])
app.include_router(feed.router, prefix="/feed", tags=["Feed"])

# ── Prometheus metrics endpoint ────────────────────────────────────────────
# Mounted at /metrics — scraped by Prometheus
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# ── OTel FastAPI instrumentation ──────────────────────────────────────────
instrument_app(app)


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok", "service": settings.service_name}
