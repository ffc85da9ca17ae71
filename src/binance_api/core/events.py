# src/binance_api/core/events.py

from decimal import Decimal
from typing import Any, Optional

from pydantic import Field, model_validator

from .enums import (
    CandlestickInterval,
    ExecutionType,
    OrderSide,
    OrderStatus,
    OrderType,
    TimeInForce,
    UserDataEventType,
)
from .models import AppBaseModel, AssetBalance, OrderBookEntry


class DepthEvent(AppBaseModel):
    """Diff depth stream frame (<symbol>@depth)."""

    event_type: str = Field(..., alias="e")
    event_time: int = Field(..., alias="E")
    symbol: str = Field(..., alias="s")
    first_update_id: int = Field(..., alias="U")
    final_update_id: int = Field(..., alias="u")
    bids: list[OrderBookEntry] = Field(default_factory=list, alias="b")
    asks: list[OrderBookEntry] = Field(default_factory=list, alias="a")


class CandlestickEvent(AppBaseModel):
    """Kline stream frame (<symbol>@kline_<interval>), flattened from the nested `k` object."""

    event_type: str
    event_time: int
    symbol: str
    open_time: int
    close_time: int
    interval: CandlestickInterval
    first_trade_id: int
    last_trade_id: int
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal
    number_of_trades: int
    is_bar_final: bool
    quote_asset_volume: Decimal
    taker_buy_base_asset_volume: Decimal
    taker_buy_quote_asset_volume: Decimal

    @model_validator(mode="before")
    @classmethod
    def _flatten(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "k" not in data:
            return data
        k = data["k"]
        return {
            "event_type": data.get("e"),
            "event_time": data.get("E"),
            "symbol": data.get("s"),
            "open_time": k.get("t"),
            "close_time": k.get("T"),
            "interval": k.get("i"),
            "first_trade_id": k.get("f"),
            "last_trade_id": k.get("L"),
            "open": k.get("o"),
            "high": k.get("h"),
            "low": k.get("l"),
            "close": k.get("c"),
            "volume": k.get("v"),
            "number_of_trades": k.get("n"),
            "is_bar_final": k.get("x"),
            "quote_asset_volume": k.get("q"),
            "taker_buy_base_asset_volume": k.get("V"),
            "taker_buy_quote_asset_volume": k.get("Q"),
        }


class AggTradeEvent(AppBaseModel):
    """Aggregate trade stream frame (<symbol>@aggTrade)."""

    event_type: str = Field(..., alias="e")
    event_time: int = Field(..., alias="E")
    symbol: str = Field(..., alias="s")
    agg_trade_id: int = Field(..., alias="a")
    price: Decimal = Field(..., alias="p")
    quantity: Decimal = Field(..., alias="q")
    first_trade_id: int = Field(..., alias="f")
    last_trade_id: int = Field(..., alias="l")
    trade_time: int = Field(..., alias="T")
    is_buyer_maker: bool = Field(..., alias="m")


class AllMarketTickersEvent(AppBaseModel):
    """One element of the !ticker@arr stream."""

    event_type: str = Field(..., alias="e")
    event_time: int = Field(..., alias="E")
    symbol: str = Field(..., alias="s")
    price_change: Decimal = Field(..., alias="p")
    price_change_percent: Decimal = Field(..., alias="P")
    weighted_average_price: Decimal = Field(..., alias="w")
    previous_days_close_price: Optional[Decimal] = Field(default=None, alias="x")
    current_days_close_price: Decimal = Field(..., alias="c")
    close_trade_quantity: Decimal = Field(..., alias="Q")
    best_bid_price: Decimal = Field(..., alias="b")
    best_bid_quantity: Decimal = Field(..., alias="B")
    best_ask_price: Decimal = Field(..., alias="a")
    best_ask_quantity: Decimal = Field(..., alias="A")
    open_price: Decimal = Field(..., alias="o")
    high_price: Decimal = Field(..., alias="h")
    low_price: Decimal = Field(..., alias="l")
    total_traded_base_asset_volume: Decimal = Field(..., alias="v")
    total_traded_quote_asset_volume: Decimal = Field(..., alias="q")
    statistics_open_time: int = Field(..., alias="O")
    statistics_close_time: int = Field(..., alias="C")
    first_trade_id: int = Field(..., alias="F")
    last_trade_id: int = Field(..., alias="L")
    total_number_of_trades: int = Field(..., alias="n")


class BookTickerEvent(AppBaseModel):
    """Best bid/ask frame (<symbol>@bookTicker and !bookTicker)."""

    update_id: int = Field(..., alias="u")
    symbol: str = Field(..., alias="s")
    bid_price: Decimal = Field(..., alias="b")
    bid_quantity: Decimal = Field(..., alias="B")
    ask_price: Decimal = Field(..., alias="a")
    ask_quantity: Decimal = Field(..., alias="A")


class AccountUpdateEvent(AppBaseModel):
    """outboundAccountPosition: balances that changed."""

    event_type: str = Field(..., alias="e")
    event_time: int = Field(..., alias="E")
    last_update_time: Optional[int] = Field(default=None, alias="u")
    balances: list[AssetBalance] = Field(default_factory=list, alias="B")

    @model_validator(mode="before")
    @classmethod
    def _short_balance_keys(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("B"), list):
            data = dict(data)
            data["B"] = [
                {"asset": b.get("a"), "free": b.get("f"), "locked": b.get("l")} if "a" in b else b
                for b in data["B"]
            ]
        return data


class BalanceUpdateEvent(AppBaseModel):
    event_type: str = Field(..., alias="e")
    event_time: int = Field(..., alias="E")
    asset: str = Field(..., alias="a")
    balance_delta: Decimal = Field(..., alias="d")
    clear_time: int = Field(..., alias="T")


class OrderTradeUpdateEvent(AppBaseModel):
    """executionReport: any change to an order, including fills."""

    event_type: str = Field(..., alias="e")
    event_time: int = Field(..., alias="E")
    symbol: str = Field(..., alias="s")
    new_client_order_id: str = Field(..., alias="c")
    side: OrderSide = Field(..., alias="S")
    type: OrderType = Field(..., alias="o")
    time_in_force: TimeInForce = Field(..., alias="f")
    original_quantity: Decimal = Field(..., alias="q")
    price: Decimal = Field(..., alias="p")
    execution_type: ExecutionType = Field(..., alias="x")
    order_status: OrderStatus = Field(..., alias="X")
    order_reject_reason: str = Field(default="NONE", alias="r")
    order_id: int = Field(..., alias="i")
    quantity_last_filled_trade: Decimal = Field(..., alias="l")
    accumulated_quantity: Decimal = Field(..., alias="z")
    price_of_last_filled_trade: Decimal = Field(..., alias="L")
    commission: Decimal = Field(..., alias="n")
    commission_asset: Optional[str] = Field(default=None, alias="N")
    order_trade_time: int = Field(..., alias="T")
    trade_id: int = Field(..., alias="t")


class UserDataUpdateEvent(AppBaseModel):
    """
    A user data stream frame. Exactly one of the payload attributes is set,
    according to `event_type`; unrecognised types only carry `raw`.
    """

    event_type: str
    event_time: int
    account_update: Optional[AccountUpdateEvent] = None
    balance_update: Optional[BalanceUpdateEvent] = None
    order_trade_update: Optional[OrderTradeUpdateEvent] = None
    raw: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "UserDataUpdateEvent":
        event_type = payload.get("e", "")
        event = cls(event_type=event_type, event_time=payload.get("E", 0), raw=payload)
        if event_type == UserDataEventType.ACCOUNT_POSITION_UPDATE.value:
            event.account_update = AccountUpdateEvent.model_validate(payload)
        elif event_type == UserDataEventType.BALANCE_UPDATE.value:
            event.balance_update = BalanceUpdateEvent.model_validate(payload)
        elif event_type == UserDataEventType.ORDER_TRADE_UPDATE.value:
            event.order_trade_update = OrderTradeUpdateEvent.model_validate(payload)
        return event
