"""
Server-Sent Events framing.

Turns a ServerEvent into the bytes written on the wire:

    data: {"symbol":"AAPL","price":182.34,"timestamp":"2024-01-01T00:00:00Z"}
    event: price_update
    id: 42
    <blank line>

``parse_frame`` is the inverse, for consumers and tests.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from .types import ServerEvent

MAX_RETRY_DIGITS = 10


class ServerEventError(Exception):
    """Base class for framing failures."""
    pass


class NoDataAvailable(ServerEventError):
    """Raised when an event carries no payload."""
    pass


class EncodingFailure(ServerEventError):
    """Raised when a payload cannot be turned into wire text."""
    pass


def _payload_to_json(item: Any) -> str:
    payload = item.to_payload() if hasattr(item, "to_payload") else item
    try:
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise EncodingFailure(f"Payload is not JSON serializable: {e}") from e


def encode_event(event: ServerEvent) -> bytes:
    """
    Serialize an event into one SSE frame.

    Raises:
        NoDataAvailable: event has an empty payload set
        EncodingFailure: a payload does not serialize to valid UTF-8 JSON
    """
    if not event.is_valid:
        raise NoDataAvailable("Event has no data to send")

    lines = [f"data: {_payload_to_json(item)}" for item in event.data]

    if event.event_name is not None:
        lines.append(f"event: {event.event_name}")
    if event.id is not None:
        lines.append(f"id: {event.id}")
    if event.retry is not None:
        lines.append(f"retry: {event.retry}")

    message = "\n".join(lines) + "\n\n"
    try:
        return message.encode("utf-8")
    except UnicodeEncodeError as e:
        raise EncodingFailure(f"Frame is not valid UTF-8 text: {e}") from e


@dataclass
class ParsedFrame:
    """Fields recovered from one SSE frame."""
    data: list[str] = field(default_factory=list)
    event: str | None = None
    id: str | None = None
    retry: int | None = None

    def payloads(self) -> list[Any]:
        return [json.loads(line) for line in self.data]


def parse_frame(frame: bytes | str) -> ParsedFrame:
    """
    Parse a single SSE frame.

    Unknown fields and comment lines (starting with ':') are ignored, as
    EventSource does. A single space after the colon is stripped.
    """
    text = frame.decode("utf-8") if isinstance(frame, bytes) else frame
    parsed = ParsedFrame()

    for line in text.splitlines():
        if not line or line.startswith(":"):
            continue
        name, sep, value = line.partition(":")
        if not sep:
            value = ""
        elif value.startswith(" "):
            value = value[1:]

        if name == "data":
            parsed.data.append(value)
        elif name == "event":
            parsed.event = value
        elif name == "id":
            parsed.id = value
        elif name == "retry" and value.isascii() and value.isdigit() and len(value) <= MAX_RETRY_DIGITS:
            parsed.retry = int(value)

    return parsed


def split_frames(stream: bytes | str) -> list[str]:
    """Split a chunk of stream text on blank-line frame boundaries."""
    text = stream.decode("utf-8") if isinstance(stream, bytes) else stream
    return [block for block in text.split("\n\n") if block.strip()]
