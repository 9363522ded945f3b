"""Per-connection loop that streams selected events into a sink."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from ..events.encoder import ServerEventError, encode_event
from ..events.selector import EventSelector
from .sink import TransportSink, WriteError


logger = logging.getLogger(__name__)

DEFAULT_PACE_INTERVAL = 2.0


class StreamState(Enum):
    ACTIVE = "active"
    TERMINATED = "terminated"


class StreamDriver:
    """
    Owns the sequence counter and the generate/encode/write loop for one connection.

    The counter only advances after a frame's bytes were accepted by the sink,
    so the ids a client sees are gapless. Any encode or write failure ends the
    stream for good; there is no retry of the failed frame.

    No deadline is applied to a write unless ``write_timeout`` is set, so a
    sink that never returns keeps the driver suspended in that write.
    """

    def __init__(
        self,
        symbol: str,
        selector: EventSelector,
        sink: TransportSink,
        interval: float = DEFAULT_PACE_INTERVAL,
        start_id: int = 1,
        write_timeout: float | None = None,
    ):
        if start_id < 1:
            raise ValueError(f"start_id must be >= 1, got {start_id}")
        self.symbol = symbol
        self.selector = selector
        self.sink = sink
        self.interval = interval
        self.write_timeout = write_timeout

        self.current_id = start_id
        self.state = StreamState.ACTIVE
        self.frames_sent = 0
        self.termination_reason: str | None = None

    @property
    def terminated(self) -> bool:
        return self.state is StreamState.TERMINATED

    async def run(self) -> None:
        """Stream until the encoder or the sink fails."""
        logger.info(f"Stream started for {self.symbol} at id {self.current_id}")

        try:
            while self.state is StreamState.ACTIVE:
                event = self.selector.select(self.current_id, self.symbol)

                try:
                    frame = encode_event(event)
                except ServerEventError as e:
                    logger.warning(f"{self.symbol} frame {self.current_id} could not be encoded: {e}")
                    self._terminate("encoding_failure")
                    break

                try:
                    await self._write(frame)
                except (WriteError, OSError) as e:
                    logger.warning(f"{self.symbol} write of frame {self.current_id} failed: {e}")
                    self._terminate("write_failure")
                    break

                logger.debug(f"{self.symbol} sent {event.event_name} id={self.current_id}")
                self.current_id += 1
                self.frames_sent += 1

                await asyncio.sleep(self.interval)

        except asyncio.CancelledError:
            self._terminate("cancelled")
            await self._end_stream()
            raise

        await self._end_stream()

    async def _write(self, frame: bytes) -> None:
        if self.write_timeout is None:
            await self.sink.write(frame)
            return
        try:
            await asyncio.wait_for(self.sink.write(frame), timeout=self.write_timeout)
        except asyncio.TimeoutError as e:
            raise WriteError(f"Write timed out after {self.write_timeout}s") from e

    def _terminate(self, reason: str) -> None:
        self.state = StreamState.TERMINATED
        self.termination_reason = reason

    async def _end_stream(self) -> None:
        # Best effort: the stream is already over, nothing here may escalate
        try:
            if self.write_timeout is None:
                await self.sink.end()
            else:
                await asyncio.wait_for(self.sink.end(), timeout=self.write_timeout)
        except Exception as e:
            logger.debug(f"{self.symbol} end-of-stream signal failed: {e}")

        logger.info(
            f"Stream for {self.symbol} terminated ({self.termination_reason}) "
            f"after {self.frames_sent} frame(s)"
        )
