"""Event publishing for inter-service communication.

This module defines the eventing contract between the search API and the
indexing jobs using Redis pub/sub. Producers publish JSON payloads on
namespaced channels; the search index builder subscribes to the
hierarchy-built channel and (re)builds the index for a dimension.

Key concepts
- ``EventType`` stable identifiers are versioned (``.v1`` suffix)
- ``EventPublisher`` composes channel names as ``{prefix}:{topic}``

The goal is to keep event shapes explicit and easy to evolve.
"""

import asyncio
import json
import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict

import redis.asyncio as redis_async
import structlog

logger = structlog.get_logger("events")


class EventType(Enum):
    """Event types published by the search API."""
    HIERARCHY_BUILT = "dimension.hierarchy.built.v1"


@dataclass
class BaseEvent:
    """Base event class.

    Child events set their ``event_type`` in ``__post_init__`` and extend the
    payload with the fields relevant to the domain.
    """
    timestamp: int
    event_type: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary."""
        return asdict(self)

    def to_json(self) -> str:
        """Convert event to JSON string."""
        return json.dumps(self.to_dict())


@dataclass
class HierarchyBuiltEvent(BaseEvent):
    """Request to build the search index of one instance dimension."""
    dimension_name: str
    instance_id: str

    def __post_init__(self):
        self.event_type = EventType.HIERARCHY_BUILT.value
        if not self.timestamp:
            self.timestamp = int(time.time() * 1000)
        if not self.dimension_name or not self.instance_id:
            raise ValueError("dimension_name and instance_id are required")


def create_hierarchy_built_event(dimension: str, instance_id: str) -> HierarchyBuiltEvent:
    """Build a hierarchy-built event stamped with the current time."""
    return HierarchyBuiltEvent(
        timestamp=int(time.time() * 1000),
        event_type=EventType.HIERARCHY_BUILT.value,
        dimension_name=dimension,
        instance_id=instance_id,
    )


class EventPublisher:
    """Publishes serialized events to Redis.

    Notes
    - Failures are retried with exponential backoff, then logged and re-raised.
    - Messages are JSON so consumers stay language-agnostic.
    """

    def __init__(
        self,
        redis_url: str,
        channel_prefix: str = "dimension_search",
        max_retries: int = 3,
        base_delay: float = 0.5,
    ):
        self.redis_client = redis_async.from_url(redis_url)
        self.channel_prefix = channel_prefix
        self.max_retries = max_retries
        self.base_delay = base_delay

    def channel_for(self, topic: str) -> str:
        return f"{self.channel_prefix}:{topic}"

    async def publish(self, topic: str, message: str) -> None:
        """Publish an already serialized message on ``topic``."""
        channel = self.channel_for(topic)

        for attempt in range(self.max_retries):
            try:
                await self.redis_client.publish(channel, message)
                logger.info("Event published", channel=channel)
                return
            except Exception as e:
                if attempt == self.max_retries - 1:
                    logger.error(
                        "Failed to publish event after all retries",
                        channel=channel,
                        error=str(e)
                    )
                    raise

                delay = self.base_delay * (2 ** attempt)  # Exponential backoff
                logger.warning(
                    "Event publish failed, retrying",
                    channel=channel,
                    attempt=attempt + 1,
                    max_retries=self.max_retries,
                    delay=delay,
                    error=str(e)
                )
                await asyncio.sleep(delay)

    async def health_check(self) -> bool:
        """Check the message bus is reachable."""
        try:
            return bool(await self.redis_client.ping())
        except Exception as e:
            logger.warning("Message bus health check failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close the Redis client used by the publisher."""
        try:
            await self.redis_client.aclose()
        except Exception as e:
            logger.warning("Error closing redis client", error=str(e))


def create_event_publisher(redis_url: str, channel_prefix: str = "dimension_search") -> EventPublisher:
    """Create an event publisher."""
    return EventPublisher(redis_url, channel_prefix=channel_prefix)
