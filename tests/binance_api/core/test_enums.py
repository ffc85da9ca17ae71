# tests/binance_api/core/test_enums.py

import pytest

from binance_api.core.enums import (
    CandlestickInterval,
    DomainType,
    OrderSide,
    OrderStatus,
    OrderType,
    RateLimitType,
    TimeInForce,
    UserDataEventType,
)


class TestCandlestickIntervalMapping:
    """The wire codes are part of the REST and stream contracts."""

    @pytest.mark.parametrize(
        "member, wire",
        [
            (CandlestickInterval.ONE_MINUTE, "1m"),
            (CandlestickInterval.THREE_MINUTES, "3m"),
            (CandlestickInterval.FIVE_MINUTES, "5m"),
            (CandlestickInterval.FIFTEEN_MINUTES, "15m"),
            (CandlestickInterval.HALF_HOURLY, "30m"),
            (CandlestickInterval.HOURLY, "1h"),
            (CandlestickInterval.TWO_HOURLY, "2h"),
            (CandlestickInterval.FOUR_HOURLY, "4h"),
            (CandlestickInterval.SIX_HOURLY, "6h"),
            (CandlestickInterval.EIGHT_HOURLY, "8h"),
            (CandlestickInterval.TWELVE_HOURLY, "12h"),
            (CandlestickInterval.DAILY, "1d"),
            (CandlestickInterval.THREE_DAILY, "3d"),
            (CandlestickInterval.WEEKLY, "1w"),
            (CandlestickInterval.MONTHLY, "1M"),
        ],
    )
    def test_wire_code(self, member, wire):
        assert member.value == wire
        assert CandlestickInterval(wire) is member

    def test_month_and_minute_are_case_sensitive(self):
        assert CandlestickInterval("1M") is not CandlestickInterval("1m")

    def test_unknown_code_rejected(self):
        with pytest.raises(ValueError):
            CandlestickInterval("2m")


class TestOrderEnums:
    def test_sides(self):
        assert [s.value for s in OrderSide] == ["BUY", "SELL"]

    def test_unknown_order_type_rejected(self):
        with pytest.raises(ValueError):
            OrderType("TRAILING_STOP")

    def test_time_in_force_codes(self):
        assert {t.value for t in TimeInForce} == {"GTC", "IOC", "FOK"}

    def test_order_status_from_wire(self):
        assert OrderStatus("PARTIALLY_FILLED") is OrderStatus.PARTIALLY_FILLED
        assert OrderStatus("PENDING_NEW") is OrderStatus.PENDING_NEW


class TestMiscEnums:
    def test_domains(self):
        assert DomainType("com") is DomainType.COM
        assert DomainType("us") is DomainType.US

    def test_rate_limit_types(self):
        assert RateLimitType("REQUEST_WEIGHT") is RateLimitType.REQUEST_WEIGHT
        assert RateLimitType("ORDERS") is RateLimitType.ORDERS
        assert RateLimitType("REQUESTS") is RateLimitType.REQUESTS

    def test_user_data_event_codes(self):
        assert UserDataEventType.ORDER_TRADE_UPDATE.value == "executionReport"
        assert UserDataEventType.ACCOUNT_POSITION_UPDATE.value == "outboundAccountPosition"

    def test_str_enum_compares_to_wire_value(self):
        assert OrderSide.BUY == "BUY"
