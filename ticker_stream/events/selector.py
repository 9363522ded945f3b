"""Weighted random selection of market events."""

from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

from .types import MarketStatus, PriceUpdate, ServerEvent, TradingHalt, TradingResume

if TYPE_CHECKING:
    from ..config import Settings


# Upper bound (inclusive) of each band on a 1..100 roll
PRICE_UPDATE_MAX_ROLL = 80
MARKET_STATUS_MAX_ROLL = 90
TRADING_HALT_MAX_ROLL = 95

DEFAULT_PRICE_MIN = 180.0
DEFAULT_PRICE_MAX = 185.0
DEFAULT_HALT_REASON = "Volatility pause"
DEFAULT_HALT_DURATION_MINUTES = 100

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EventSelector:
    """
    Picks the next event to stream for a symbol.

    Distribution (one roll in 1..100 per call):
    - 1-80: price update
    - 81-90: market status heartbeat
    - 91-95: trading halt
    - anything else: trading resume
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        price_min: float = DEFAULT_PRICE_MIN,
        price_max: float = DEFAULT_PRICE_MAX,
        halt_reason: str = DEFAULT_HALT_REASON,
        halt_duration_minutes: int = DEFAULT_HALT_DURATION_MINUTES,
        clock: Callable[[], datetime] = utc_now,
    ):
        if price_min > price_max:
            raise ValueError(f"price_min ({price_min}) must not exceed price_max ({price_max})")
        self.rng = rng or random.Random()
        self.price_min = price_min
        self.price_max = price_max
        self.halt_reason = halt_reason
        self.halt_duration_minutes = halt_duration_minutes
        self.clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, rng: random.Random | None = None) -> EventSelector:
        return cls(
            rng=rng,
            price_min=settings.price_min,
            price_max=settings.price_max,
            halt_reason=settings.halt_reason,
            halt_duration_minutes=settings.halt_duration_minutes,
        )

    def roll(self) -> int:
        return self.rng.randint(1, 100)

    def select(self, sequence_id: int, symbol: str) -> ServerEvent:
        """
        Build the event for one tick.

        Args:
            sequence_id: Current sequence counter, used as the SSE id
            symbol: Ticker the stream is about

        Returns:
            ServerEvent with exactly one payload and no retry hint
        """
        event_id = str(sequence_id)
        roll = self.roll()

        if roll <= PRICE_UPDATE_MAX_ROLL:
            payload = PriceUpdate(
                symbol=symbol,
                price=round(self.rng.uniform(self.price_min, self.price_max), 2),
                timestamp=self.clock().strftime(TIMESTAMP_FORMAT),
            )
        elif roll <= MARKET_STATUS_MAX_ROLL:
            # Closed sessions are not simulated
            payload = MarketStatus(is_open=True, next_open_time=None)
        elif roll <= TRADING_HALT_MAX_ROLL:
            payload = TradingHalt(
                symbol=symbol,
                reason=self.halt_reason,
                duration_minutes=self.halt_duration_minutes,
            )
        else:
            payload = TradingResume(symbol=symbol)

        return ServerEvent.for_payload(payload, id=event_id)
