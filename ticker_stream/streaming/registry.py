"""Registry that owns the lifecycle of per-connection stream tasks."""

from __future__ import annotations

import asyncio
import logging
import random

from ..config import Settings
from ..events.selector import EventSelector
from .driver import StreamDriver
from .sink import QueueSink


logger = logging.getLogger(__name__)


class StreamRegistry:
    """
    Starts one StreamDriver task per accepted connection and tracks it.

    All drivers share one random source, created here once per process
    from ``settings.random_seed``.
    """

    def __init__(self, settings: Settings, rng: random.Random | None = None):
        self.settings = settings
        self.rng = rng or random.Random(settings.random_seed)
        self.selector = EventSelector.from_settings(settings, self.rng)
        self.tasks: dict[asyncio.Task, QueueSink] = {}

    @property
    def active_count(self) -> int:
        return len(self.tasks)

    def open_stream(self, symbol: str, last_event_id: int | None = None) -> tuple[StreamDriver, QueueSink]:
        """
        Start streaming ``symbol`` into a new sink.

        Args:
            symbol: Ticker to stream
            last_event_id: Last id the client saw on a previous connection, if any

        Returns:
            Tuple of (driver, sink); the caller drains the sink
        """
        start_id = last_event_id + 1 if last_event_id is not None else 1
        sink = QueueSink()
        driver = StreamDriver(
            symbol=symbol,
            selector=self.selector,
            sink=sink,
            interval=self.settings.pace_interval_seconds,
            start_id=start_id,
            write_timeout=self.settings.write_timeout_seconds,
        )
        task = asyncio.create_task(driver.run(), name=f"stream-{symbol}")
        self.tasks[task] = sink
        task.add_done_callback(self._on_task_done)

        logger.info(f"Opened stream for {symbol} (start id {start_id}, {self.active_count} active)")
        return driver, sink

    def _on_task_done(self, task: asyncio.Task) -> None:
        self.tasks.pop(task, None)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Fatal error in {task.get_name()}: {exc}", exc_info=exc)

    async def stop(self) -> None:
        """Close every sink and cancel every driver task."""
        logger.info(f"Stopping stream registry ({self.active_count} active)...")

        tasks = list(self.tasks)
        for task, sink in list(self.tasks.items()):
            sink.close()
            task.cancel()

        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        logger.info("Stream registry stopped.")
