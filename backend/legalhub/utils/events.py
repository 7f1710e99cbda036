"""Event publishing for onboarding and review notifications.

Publishing is fire-and-forget from the caller's point of view: a broken
Redis connection or a failing subscriber is logged, never raised, so it
cannot undo an already-committed onboarding change.

Backends (chosen by `settings.event_bus_backend`):
  - "redis" → JSON message on channel `{prefix}:{event_name}` via pub/sub
  - "local" → awaited in-process subscribers (single worker / tests)
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from datetime import datetime
from typing import Awaitable, Callable, Protocol

import redis.asyncio as redis

from legalhub.config import settings
from legalhub.utils.cache import get_redis

logger = logging.getLogger(__name__)

# ── Event names ─────────────────────────────────────────────

STEP_COMPLETED = "onboarding.step_completed"
ONBOARDING_COMPLETED = "onboarding.completed"
PROFILE_VERIFIED = "profile.verified"
PROFILE_REJECTED = "profile.rejected"
PROFILE_SUSPENDED = "profile.suspended"


Subscriber = Callable[[str, dict], Awaitable[None]]


class EventBus(Protocol):
    async def publish(self, event_name: str, payload: dict) -> None: ...


def _encode(event_name: str, payload: dict) -> str:
    return json.dumps(
        {
            "event": event_name,
            "payload": payload,
            "published_at": datetime.utcnow().isoformat(),
        },
        default=str,
    )


class RedisEventBus:
    """Publish events to Redis pub/sub channels."""

    def __init__(self, prefix: str | None = None):
        self.prefix = prefix or settings.event_channel_prefix

    def channel(self, event_name: str) -> str:
        return f"{self.prefix}:{event_name}"

    async def publish(self, event_name: str, payload: dict) -> None:
        try:
            client = await get_redis()
            receivers = await client.publish(
                self.channel(event_name), _encode(event_name, payload)
            )
            logger.debug("Published %s to %d subscriber(s)", event_name, receivers)
        except redis.RedisError as e:
            logger.warning(f"Failed to publish {event_name}: {e}")


class LocalEventBus:
    """Dispatch events to subscribers registered in this process."""

    def __init__(self):
        self._subscribers: dict[str, list[Subscriber]] = defaultdict(list)

    def subscribe(self, event_name: str, subscriber: Subscriber) -> None:
        self._subscribers[event_name].append(subscriber)

    async def publish(self, event_name: str, payload: dict) -> None:
        for subscriber in list(self._subscribers.get(event_name, [])):
            try:
                await subscriber(event_name, payload)
            except Exception:
                logger.exception(
                    "Subscriber %s failed for %s",
                    getattr(subscriber, "__name__", subscriber),
                    event_name,
                )


# ── Default subscribers ─────────────────────────────────────

async def log_event(event_name: str, payload: dict) -> None:
    logger.info("Event %s: %s", event_name, payload)


_local_bus: LocalEventBus | None = None


def _default_local_bus() -> LocalEventBus:
    global _local_bus
    if _local_bus is None:
        _local_bus = LocalEventBus()
        for name in (
            STEP_COMPLETED,
            ONBOARDING_COMPLETED,
            PROFILE_VERIFIED,
            PROFILE_REJECTED,
            PROFILE_SUSPENDED,
        ):
            _local_bus.subscribe(name, log_event)
    return _local_bus


def get_event_bus() -> EventBus:
    """FastAPI dependency: event bus configured for this process."""
    if settings.event_bus_backend == "local":
        return _default_local_bus()
    return RedisEventBus()
