"""Stock ticker SSE routes."""

from __future__ import annotations

import logging
from typing import AsyncIterator

from fastapi import APIRouter, Header, HTTPException
from fastapi.responses import StreamingResponse

from ..streaming.registry import StreamRegistry
from ..streaming.sink import QueueSink

logger = logging.getLogger(__name__)

# This router will be included in main app
router = APIRouter(prefix="/stocks", tags=["stocks"])

MAX_EVENT_ID_DIGITS = 18

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}

# Global registry reference (will be set by main.py)
_registry: StreamRegistry | None = None


def set_registry(registry: StreamRegistry | None) -> None:
    """Set the registry reference (called from main.py)."""
    global _registry
    _registry = registry


def parse_last_event_id(value: str | None) -> int | None:
    """Return the resume point from a Last-Event-ID header, ignoring junk."""
    if value is None:
        return None
    value = value.strip()
    # ASCII digits only; str.isdigit() also accepts e.g. superscripts
    if not (value.isascii() and value.isdigit()) or len(value) > MAX_EVENT_ID_DIGITS:
        return None
    return int(value)


async def stream_frames(sink: QueueSink) -> AsyncIterator[bytes]:
    """
    Drain a sink into the HTTP response.

    When the response stops iterating (client disconnect), the sink is closed
    so the driver's next write fails and the stream terminates.
    """
    frames = sink.frames()
    try:
        async for frame in frames:
            yield frame
    finally:
        sink.close()
        await frames.aclose()


@router.get("/{symbol}")
async def stream_stock(
    symbol: str,
    last_event_id: str | None = Header(None, alias="Last-Event-ID"),
) -> StreamingResponse:
    """
    Stream simulated market events for one symbol as Server-Sent Events.

    Sends price updates, market status, trading halts and resumes every
    couple of seconds. Clients reconnecting with Last-Event-ID continue
    the id sequence from where they left off.
    """
    if _registry is None:
        raise HTTPException(status_code=500, detail="Stream registry not initialized")

    if not symbol.strip():
        raise HTTPException(status_code=400, detail="Missing stock symbol")

    _, sink = _registry.open_stream(symbol, parse_last_event_id(last_event_id))

    return StreamingResponse(
        stream_frames(sink),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
