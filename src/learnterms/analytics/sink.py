"""Analytics sinks: where captured events go.

``RedisStreamSink`` appends each event to a stream named
``analytics:{event_name}`` with XADD and an approximate MAXLEN cap.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any, Protocol

import redis.asyncio as redis

logger = logging.getLogger(__name__)


class AnalyticsSink(Protocol):
    async def capture(self, event_name: str, properties: dict[str, Any]) -> None: ...


class RedisStreamSink:
    """Publishes analytics events to Redis Streams.

    The client is looked up on every capture, so the sink can be built before
    the Redis pool exists. Errors are logged and counted, never raised.
    """

    def __init__(self, client_factory: Callable[[], redis.Redis], maxlen: int = 100_000) -> None:
        self._client_factory = client_factory
        self._maxlen = maxlen
        self._events_published = 0
        self._events_failed = 0

    async def capture(self, event_name: str, properties: dict[str, Any]) -> None:
        stream_key = f"analytics:{event_name}"
        try:
            client = self._client_factory()
        except RuntimeError:
            logger.warning("Redis not initialized, dropping %s event", event_name)
            self._events_failed += 1
            return

        try:
            await client.xadd(
                stream_key,
                {"event": event_name, "properties": json.dumps(properties, default=str)},
                maxlen=self._maxlen,
                approximate=True,
            )
            self._events_published += 1
        except redis.RedisError:
            self._events_failed += 1
            logger.exception("Failed to publish to Redis stream %s", stream_key)

    @property
    def stats(self) -> dict[str, int]:
        return {"published": self._events_published, "failed": self._events_failed}
