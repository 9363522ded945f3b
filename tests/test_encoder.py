"""Tests for SSE frame encoding and parsing."""

import pytest

from ticker_stream.events.encoder import (
    EncodingFailure,
    NoDataAvailable,
    ServerEventError,
    encode_event,
    parse_frame,
    split_frames,
)
from ticker_stream.events.types import (
    CATEGORY_PAYLOADS,
    EventCategory,
    MarketStatus,
    PriceUpdate,
    ServerEvent,
    TradingHalt,
    TradingResume,
)


class TestEncodeEvent:
    """Tests for encode_event."""

    def test_price_update_frame(self):
        """Price update frame should have data, event and id lines and no retry."""
        event = ServerEvent.for_payload(
            PriceUpdate(symbol="AAPL", price=182.5, timestamp="2024-01-01T00:00:00Z"),
            id="7",
        )
        frame = encode_event(event)

        assert frame == (
            b'data: {"symbol":"AAPL","price":182.5,"timestamp":"2024-01-01T00:00:00Z"}\n'
            b"event: price_update\n"
            b"id: 7\n"
            b"\n"
        )
        assert b"retry:" not in frame

    def test_field_order_with_retry(self):
        event = ServerEvent(data=({"a": 1},), event="custom", id="3", retry=5000)
        text = encode_event(event).decode()
        assert text == 'data: {"a":1}\nevent: custom\nid: 3\nretry: 5000\n\n'

    def test_optional_fields_omitted(self):
        frame = encode_event(ServerEvent(data=({"a": 1},)))
        assert frame == b'data: {"a":1}\n\n'

    def test_multiple_payloads_one_line_each(self):
        event = ServerEvent(data=(TradingResume("AAPL"), TradingResume("MSFT")), event=EventCategory.TRADING_RESUME)
        lines = encode_event(event).decode().split("\n")
        assert lines[:3] == [
            'data: {"symbol":"AAPL"}',
            'data: {"symbol":"MSFT"}',
            "event: trading_resume",
        ]

    def test_market_status_omits_absent_next_open(self):
        frame = encode_event(ServerEvent.for_payload(MarketStatus(is_open=True), id="1"))
        assert frame.startswith(b'data: {"isOpen":true}\n')

    def test_trading_halt_wire_keys(self):
        frame = encode_event(ServerEvent.for_payload(TradingHalt("AAPL", "Volatility pause", 100), id="2"))
        assert b'{"symbol":"AAPL","reason":"Volatility pause","duration":100}' in frame

    def test_empty_payload_raises_no_data(self):
        with pytest.raises(NoDataAvailable):
            encode_event(ServerEvent(data=(), event="price_update", id="1"))

    def test_unserializable_payload_raises(self):
        with pytest.raises(EncodingFailure):
            encode_event(ServerEvent(data=({"when": object()},)))

    def test_non_finite_float_raises(self):
        with pytest.raises(EncodingFailure):
            encode_event(ServerEvent(data=({"price": float("nan")},)))

    def test_invalid_text_raises(self):
        """Lone surrogates cannot be written as UTF-8."""
        with pytest.raises(EncodingFailure):
            encode_event(ServerEvent(data=({"symbol": "\ud800"},)))

    def test_errors_share_base_class(self):
        assert issubclass(NoDataAvailable, ServerEventError)
        assert issubclass(EncodingFailure, ServerEventError)

    def test_unknown_payload_type_rejected(self):
        with pytest.raises(TypeError):
            ServerEvent.for_payload({"symbol": "AAPL"})  # type: ignore[arg-type]


class TestRoundTrip:
    """Encoding then parsing should recover every variant field-for-field."""

    @pytest.mark.parametrize(
        "payload",
        [
            PriceUpdate(symbol="AAPL", price=183.17, timestamp="2024-05-06T14:30:00Z"),
            MarketStatus(is_open=True),
            MarketStatus(is_open=False, next_open_time="2024-05-07T13:30:00Z"),
            TradingHalt(symbol="AAPL", reason="Volatility pause", duration_minutes=100),
            TradingResume(symbol="AAPL"),
        ],
    )
    def test_round_trip(self, payload):
        event = ServerEvent.for_payload(payload, id="12")
        parsed = parse_frame(encode_event(event))

        assert parsed.id == "12"
        assert parsed.retry is None
        category = EventCategory(parsed.event)
        assert category is event.event

        [document] = parsed.payloads()
        assert document == payload.to_payload()
        assert CATEGORY_PAYLOADS[category].from_payload(document) == payload


class TestParseFrame:
    """Tests for the frame parser."""

    def test_ignores_comments_and_unknown_fields(self):
        parsed = parse_frame(": keepalive\nfoo: bar\ndata: {}\nretry: 1500\n\n")
        assert parsed.data == ["{}"]
        assert parsed.event is None
        assert parsed.retry == 1500

    def test_invalid_retry_ignored(self):
        assert parse_frame("data: 1\nretry: soon\n\n").retry is None

    def test_non_ascii_retry_ignored(self):
        assert parse_frame("data: 1\nretry: ²\n\n").retry is None
        assert parse_frame("data: 1\nretry: " + "9" * 5000 + "\n\n").retry is None

    def test_split_frames(self):
        stream = (
            encode_event(ServerEvent(data=({"n": 1},), id="1"))
            + encode_event(ServerEvent(data=({"n": 2},), id="2"))
        )
        frames = split_frames(stream)
        assert [parse_frame(f).id for f in frames] == ["1", "2"]
