"""Canonical event types for the stock ticker stream."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class EventCategory(Enum):
    """Wire-level event names (the SSE ``event:`` field)."""
    PRICE_UPDATE = "price_update"
    MARKET_STATUS = "market_status"
    TRADING_HALT = "trading_halt"
    TRADING_RESUME = "trading_resume"


@dataclass(frozen=True)
class PriceUpdate:
    """Latest traded price for a symbol."""
    symbol: str
    price: float
    timestamp: str  # ISO-8601 UTC, e.g. "2024-01-01T00:00:00Z"

    def to_payload(self) -> dict[str, Any]:
        return {"symbol": self.symbol, "price": self.price, "timestamp": self.timestamp}

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> PriceUpdate:
        return cls(
            symbol=payload["symbol"],
            price=float(payload["price"]),
            timestamp=payload["timestamp"],
        )


@dataclass(frozen=True)
class MarketStatus:
    """Market session heartbeat."""
    is_open: bool
    next_open_time: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"isOpen": self.is_open}
        # Absent optionals are dropped from the document, not sent as null
        if self.next_open_time is not None:
            payload["nextOpenTime"] = self.next_open_time
        return payload

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> MarketStatus:
        return cls(is_open=bool(payload["isOpen"]), next_open_time=payload.get("nextOpenTime"))


@dataclass(frozen=True)
class TradingHalt:
    """Trading paused for a symbol."""
    symbol: str
    reason: str
    duration_minutes: int

    def to_payload(self) -> dict[str, Any]:
        return {"symbol": self.symbol, "reason": self.reason, "duration": self.duration_minutes}

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> TradingHalt:
        return cls(
            symbol=payload["symbol"],
            reason=payload["reason"],
            duration_minutes=int(payload["duration"]),
        )


@dataclass(frozen=True)
class TradingResume:
    """Trading resumed for a symbol."""
    symbol: str

    def to_payload(self) -> dict[str, Any]:
        return {"symbol": self.symbol}

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> TradingResume:
        return cls(symbol=payload["symbol"])


MarketEvent = Union[PriceUpdate, MarketStatus, TradingHalt, TradingResume]

PAYLOAD_CATEGORIES: dict[type, EventCategory] = {
    PriceUpdate: EventCategory.PRICE_UPDATE,
    MarketStatus: EventCategory.MARKET_STATUS,
    TradingHalt: EventCategory.TRADING_HALT,
    TradingResume: EventCategory.TRADING_RESUME,
}

CATEGORY_PAYLOADS: dict[EventCategory, type] = {
    category: payload_type for payload_type, category in PAYLOAD_CATEGORIES.items()
}


@dataclass(frozen=True)
class ServerEvent:
    """
    One server-sent event ready for framing.

    ``data`` holds one or more payloads; each becomes its own ``data:`` line.
    Items are either typed market events or plain JSON-able mappings.
    """
    data: tuple[Any, ...]
    event: EventCategory | str | None = None
    id: str | None = None
    retry: int | None = None  # reconnection hint in milliseconds

    @property
    def is_valid(self) -> bool:
        return len(self.data) > 0

    @property
    def event_name(self) -> str | None:
        if isinstance(self.event, EventCategory):
            return self.event.value
        return self.event

    @classmethod
    def for_payload(cls, payload: MarketEvent, id: str | None = None) -> ServerEvent:
        """Wrap a single market event, tagging it with its category."""
        try:
            category = PAYLOAD_CATEGORIES[type(payload)]
        except KeyError:
            raise TypeError(f"Unsupported event payload: {type(payload).__name__}") from None
        return cls(data=(payload,), event=category, id=id)
