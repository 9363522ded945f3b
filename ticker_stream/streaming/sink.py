"""Transport sink contract and the queue-backed sink used by the HTTP host."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Protocol


class WriteError(Exception):
    """Raised when a sink rejects a write or an end-of-stream signal."""
    pass


class SinkClosedError(WriteError):
    """Raised when writing to a sink whose consumer has gone away."""
    pass


class TransportSink(Protocol):
    """Protocol for byte sinks supplied by the hosting server."""

    async def write(self, data: bytes) -> None:
        """
        Deliver one frame.

        Should raise WriteError (or a subclass) if the bytes could not be
        handed to the transport. Raw OSErrors (connection reset, broken
        pipe) are also treated as write failures by the driver. Must not
        return until the frame is accepted.
        """
        ...

    async def end(self) -> None:
        """Signal end-of-stream. May raise WriteError."""
        ...


class QueueSink:
    """
    Sink backed by a single-slot queue.

    The driver writes into it; the HTTP response drains it via ``frames()``.
    At most one frame is buffered. Closing the sink (client disconnect)
    makes every later write fail with SinkClosedError. Neither ``end()`` nor
    ``close()`` ever waits on the consumer.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[bytes] = asyncio.Queue(maxsize=1)
        self._closed = asyncio.Event()
        self._ended = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    async def write(self, data: bytes) -> None:
        if self._closed.is_set():
            raise SinkClosedError("Client disconnected")
        if self._ended.is_set():
            raise WriteError("Write after end of stream")
        await self._queue.put(data)
        # close() may have drained the slot while we were waiting
        if self._closed.is_set():
            raise SinkClosedError("Client disconnected")

    async def end(self) -> None:
        """Mark end-of-stream; a frame still in the slot is delivered first."""
        if self._closed.is_set():
            raise SinkClosedError("Client disconnected")
        self._ended.set()

    def close(self) -> None:
        """Mark the consumer as gone and release any blocked writer."""
        self._closed.set()
        while not self._queue.empty():
            self._queue.get_nowait()

    async def frames(self) -> AsyncIterator[bytes]:
        """Yield frames until end-of-stream (slot drained) or close."""
        closed_wait = asyncio.ensure_future(self._closed.wait())
        ended_wait = asyncio.ensure_future(self._ended.wait())
        get: asyncio.Future | None = None
        try:
            while not self._closed.is_set():
                if not self._queue.empty():
                    yield self._queue.get_nowait()
                    continue
                if self._ended.is_set():
                    return
                get = asyncio.ensure_future(self._queue.get())
                await asyncio.wait({get, closed_wait, ended_wait}, return_when=asyncio.FIRST_COMPLETED)
                if self._closed.is_set():
                    return
                if get.done():
                    yield get.result()
                else:
                    # Ended while waiting; any item left is picked up above
                    get.cancel()
        finally:
            closed_wait.cancel()
            ended_wait.cancel()
            if get is not None and not get.done():
                get.cancel()
