"""Output queue for search index build requests.

Requests to (re)build a dimension search index are put on a bounded
in-process channel and published to the message bus by a single background
pump. Enqueueing only waits when the channel is full, and never longer than
``enqueue_timeout``; a slow or unavailable bus therefore cannot hold request
handlers indefinitely.
"""

import asyncio
from contextlib import suppress
from typing import Optional

import structlog

from libs.common.events import EventPublisher, create_hierarchy_built_event
from libs.common.metrics import MetricsCollector

logger = structlog.get_logger("search_service.output_queue")


class OutputQueueError(Exception):
    """A build request could not be queued."""


class SearchOutputQueue:
    """Bounded producer channel in front of the event publisher."""

    def __init__(
        self,
        publisher: EventPublisher,
        topic: str,
        maxsize: int = 100,
        enqueue_timeout: float = 5.0,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        self.publisher = publisher
        self.topic = topic
        self.enqueue_timeout = enqueue_timeout
        self.metrics_collector = metrics_collector
        self._queue: "asyncio.Queue[str]" = asyncio.Queue(maxsize=maxsize)
        self._pump_task: Optional[asyncio.Task] = None

    async def queue(self, dimension: str, instance_id: str) -> None:
        """Queue a request to build the index of ``instance_id``/``dimension``."""
        try:
            message = create_hierarchy_built_event(dimension, instance_id).to_json()
        except (TypeError, ValueError) as e:
            self._record("failed")
            raise OutputQueueError(f"failed to encode build request: {e}") from e

        try:
            await asyncio.wait_for(self._queue.put(message), timeout=self.enqueue_timeout)
        except asyncio.TimeoutError as e:
            self._record("failed")
            logger.error(
                "Output queue full, build request not queued",
                dimension=dimension,
                instance_id=instance_id,
                timeout=self.enqueue_timeout
            )
            raise OutputQueueError("output queue is full") from e

        self._record("queued")
        logger.info("Build request queued", dimension=dimension, instance_id=instance_id)

    async def start(self) -> None:
        """Start the background pump."""
        if self.is_running:
            return
        self._pump_task = asyncio.create_task(self._pump())
        logger.info("Output queue pump started", topic=self.topic)

    async def _pump(self) -> None:
        while True:
            message = await self._queue.get()
            try:
                await self.publisher.publish(self.topic, message)
                self._record("published")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # The request that queued this message has already returned.
                self._record("failed")
                logger.error("Failed to publish build request", topic=self.topic, error=str(e))
            finally:
                self._queue.task_done()

    async def stop(self, drain_timeout: float = 5.0) -> None:
        """Publish pending messages (bounded by ``drain_timeout``) and stop."""
        if self._pump_task is None:
            return

        if not self._pump_task.done():
            try:
                await asyncio.wait_for(self._queue.join(), timeout=drain_timeout)
            except asyncio.TimeoutError:
                logger.warning("Output queue not drained before shutdown", pending=self._queue.qsize())

        self._pump_task.cancel()
        with suppress(asyncio.CancelledError):
            await self._pump_task
        self._pump_task = None
        logger.info("Output queue pump stopped")

    @property
    def is_running(self) -> bool:
        return self._pump_task is not None and not self._pump_task.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def _record(self, status: str) -> None:
        if self.metrics_collector is not None:
            self.metrics_collector.record_queue_message(status)
