"""
Live feed broadcaster — fan-out of feed events to connected subscribers.

One topic, shared by every viewer. Delivery is best-effort and at-most-once:
  • a subscriber only sees events published while it is subscribed
    (no backlog, no replay);
  • each subscriber has a bounded buffer; when it is full the event is
    dropped for that subscriber alone;
  • publish() never awaits a subscriber, so writers are never held up.

Two backends:
  memory — publish() fans out in-process, straight into subscriber buffers.
  redis  — publish() appends the payload to an outbox that a single relay
           task PUBLISHes, in order, on the Redis channel; a listener task
           on every replica reads the channel and does the in-process
           fan-out.

With the redis backend "while it is subscribed" is judged when the event
comes back from Redis, not when publish() ran: a viewer who joins during
that round trip (typically under a millisecond) can receive an event
written just before it joined.
"""
import asyncio
import logging
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from hottake.config import settings
from hottake.schemas import FeedEvent, FeedEventType, TakeView
from hottake.telemetry import (
    BROADCAST_DROPPED_TOTAL,
    BROADCAST_EVENTS_TOTAL,
    LIVE_SUBSCRIBERS,
)

logger = logging.getLogger(__name__)

RECONNECT_DELAY_SECONDS = 1.0


class Subscription:
    """A subscriber's buffered view of the topic. Iterate to receive payloads."""

    def __init__(self, broadcaster: "FeedBroadcaster", maxsize: int) -> None:
        self._broadcaster = broadcaster
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=maxsize)

    def deliver(self, payload: str) -> bool:
        try:
            self._queue.put_nowait(payload)
        except asyncio.QueueFull:
            return False
        return True

    def pending(self) -> int:
        return self._queue.qsize()

    async def get(self) -> str:
        return await self._queue.get()

    async def next_event(self) -> FeedEvent:
        return FeedEvent.model_validate_json(await self.get())

    def unsubscribe(self) -> None:
        self._broadcaster.unsubscribe(self)

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        return await self.get()


class FeedBroadcaster:
    def __init__(self, channel: str, queue_size: int) -> None:
        self.channel = channel
        self.queue_size = queue_size
        self._subscribers: set[Subscription] = set()
        self._redis: Optional[aioredis.Redis] = None
        self._listener: Optional[asyncio.Task] = None
        self._outbox: asyncio.Queue[str] = asyncio.Queue()
        self._relay_task: Optional[asyncio.Task] = None

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    # ── Subscription ─────────────────────────────────────────────────────

    def subscribe(self) -> Subscription:
        subscription = Subscription(self, self.queue_size)
        self._subscribers.add(subscription)
        LIVE_SUBSCRIBERS.set(len(self._subscribers))
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        self._subscribers.discard(subscription)
        LIVE_SUBSCRIBERS.set(len(self._subscribers))

    # ── Publishing ───────────────────────────────────────────────────────

    def publish(self, event: FeedEventType, view: TakeView) -> None:
        """Queue one event for every current subscriber. Never blocks."""
        payload = FeedEvent(event=event, take=view).model_dump_json()
        BROADCAST_EVENTS_TOTAL.labels(event=event.value).inc()

        if self._redis is None:
            self._fan_out(payload)
            return

        self._outbox.put_nowait(payload)
        if self._relay_task is None:
            self._relay_task = asyncio.get_running_loop().create_task(self._relay())

    async def _relay(self) -> None:
        while True:
            payload = await self._outbox.get()
            try:
                await self._redis.publish(self.channel, payload)
            except RedisError as exc:
                # The write that triggered this event has already committed
                logger.warning("Dropped feed event, Redis publish failed: %s", exc)
            finally:
                self._outbox.task_done()

    def _fan_out(self, payload: str) -> None:
        # Snapshot: subscribers may leave while we iterate
        for subscription in list(self._subscribers):
            if not subscription.deliver(payload):
                BROADCAST_DROPPED_TOTAL.inc()
                logger.warning("Subscriber buffer full — dropped one feed event")

    # ── Redis relay lifecycle ────────────────────────────────────────────

    async def start(self, redis: aioredis.Redis) -> None:
        """Switch to the Redis backend and start listening on the channel."""
        self._redis = redis
        self._listener = asyncio.create_task(self._listen())
        logger.info("Feed broadcaster relaying through Redis channel '%s'", self.channel)

    async def _listen(self) -> None:
        while True:
            pubsub = self._redis.pubsub()
            try:
                await pubsub.subscribe(self.channel)
                async for message in pubsub.listen():
                    if message.get("type") != "message":
                        continue
                    self._fan_out(message["data"])
            except RedisError as exc:
                logger.error(
                    "Feed relay lost Redis (%s) — reconnecting in %.1fs",
                    exc, RECONNECT_DELAY_SECONDS,
                )
                await asyncio.sleep(RECONNECT_DELAY_SECONDS)
            finally:
                await pubsub.aclose()

    async def stop(self) -> None:
        if self._listener is not None:
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
            self._listener = None
        if self._relay_task is not None:
            # Flush what writers already handed over before going quiet
            await self._outbox.join()
            self._relay_task.cancel()
            try:
                await self._relay_task
            except asyncio.CancelledError:
                pass
            self._relay_task = None
            self._outbox = asyncio.Queue()
        self._redis = None


# Singleton
broadcaster = FeedBroadcaster(settings.broadcast_channel, settings.broadcast_queue_size)
