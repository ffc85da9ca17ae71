# src/binance_api/core/models.py

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import (
    NewOrderResponseType,
    OrderSide,
    OrderStatus,
    OrderType,
    RateLimitInterval,
    RateLimitType,
    SymbolStatus,
    TimeInForce,
)


class AppBaseModel(BaseModel):
    """Base model for all REST data contracts. Unknown fields are ignored."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
    )


def _positional(data: Any, fields: tuple[str, ...]) -> Any:
    """Maps an array-encoded record onto named fields; dicts pass through."""
    if isinstance(data, (list, tuple)):
        return dict(zip(fields, data))
    return data


# --- General ---


class ServerTime(AppBaseModel):
    server_time: int = Field(..., alias="serverTime")


class RateLimit(AppBaseModel):
    rate_limit_type: RateLimitType = Field(..., alias="rateLimitType")
    interval: RateLimitInterval
    interval_num: int = Field(default=1, alias="intervalNum")
    limit: int


class SymbolInfo(AppBaseModel):
    symbol: str
    status: SymbolStatus
    base_asset: str = Field(..., alias="baseAsset")
    base_asset_precision: int = Field(..., alias="baseAssetPrecision")
    quote_asset: str = Field(..., alias="quoteAsset")
    quote_precision: int = Field(..., alias="quotePrecision")
    order_types: list[OrderType] = Field(default_factory=list, alias="orderTypes")
    iceberg_allowed: bool = Field(default=False, alias="icebergAllowed")
    oco_allowed: bool = Field(default=False, alias="ocoAllowed")
    is_spot_trading_allowed: bool = Field(default=False, alias="isSpotTradingAllowed")
    is_margin_trading_allowed: bool = Field(default=False, alias="isMarginTradingAllowed")
    filters: list[dict[str, Any]] = Field(default_factory=list)

    def get_filter(self, filter_type: str) -> Optional[dict[str, Any]]:
        for f in self.filters:
            if f.get("filterType") == filter_type:
                return f
        return None


class ExchangeInfo(AppBaseModel):
    timezone: str
    server_time: int = Field(..., alias="serverTime")
    rate_limits: list[RateLimit] = Field(default_factory=list, alias="rateLimits")
    symbols: list[SymbolInfo] = Field(default_factory=list)

    def get_symbol_info(self, symbol: str) -> SymbolInfo:
        for info in self.symbols:
            if info.symbol == symbol:
                return info
        raise KeyError(f"Unable to obtain information for symbol {symbol}")


# --- Market Data ---


class OrderBookEntry(AppBaseModel):
    """One price level, sent by the exchange as ["price", "qty"]."""

    price: Decimal
    qty: Decimal

    @model_validator(mode="before")
    @classmethod
    def _from_array(cls, data: Any) -> Any:
        return _positional(data, ("price", "qty"))


class OrderBook(AppBaseModel):
    last_update_id: int = Field(..., alias="lastUpdateId")
    bids: list[OrderBookEntry] = Field(default_factory=list)
    asks: list[OrderBookEntry] = Field(default_factory=list)


class TradeHistoryItem(AppBaseModel):
    """A public trade from /trades or /historicalTrades."""

    id: int
    price: Decimal
    qty: Decimal
    quote_qty: Optional[Decimal] = Field(default=None, alias="quoteQty")
    time: int
    is_buyer_maker: bool = Field(..., alias="isBuyerMaker")
    is_best_match: bool = Field(default=False, alias="isBestMatch")


class AggTrade(AppBaseModel):
    """Compressed trade; fills from one taker order at one price are merged."""

    agg_trade_id: int = Field(..., alias="a")
    price: Decimal = Field(..., alias="p")
    quantity: Decimal = Field(..., alias="q")
    first_trade_id: int = Field(..., alias="f")
    last_trade_id: int = Field(..., alias="l")
    trade_time: int = Field(..., alias="T")
    is_buyer_maker: bool = Field(..., alias="m")
    is_best_match: bool = Field(default=False, alias="M")


_CANDLESTICK_FIELDS = (
    "openTime",
    "open",
    "high",
    "low",
    "close",
    "volume",
    "closeTime",
    "quoteAssetVolume",
    "numberOfTrades",
    "takerBuyBaseAssetVolume",
    "takerBuyQuoteAssetVolume",
)


class Candlestick(AppBaseModel):
    """Kline bar. The exchange encodes it as a 12-element array."""

    open_time: int = Field(..., alias="openTime")
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal
    close_time: int = Field(..., alias="closeTime")
    quote_asset_volume: Decimal = Field(..., alias="quoteAssetVolume")
    number_of_trades: int = Field(..., alias="numberOfTrades")
    taker_buy_base_asset_volume: Decimal = Field(..., alias="takerBuyBaseAssetVolume")
    taker_buy_quote_asset_volume: Decimal = Field(..., alias="takerBuyQuoteAssetVolume")

    @model_validator(mode="before")
    @classmethod
    def _from_array(cls, data: Any) -> Any:
        return _positional(data, _CANDLESTICK_FIELDS)


class TickerStatistics(AppBaseModel):
    """24 hour rolling window price change statistics."""

    symbol: str
    price_change: Decimal = Field(..., alias="priceChange")
    price_change_percent: Decimal = Field(..., alias="priceChangePercent")
    weighted_avg_price: Decimal = Field(..., alias="weightedAvgPrice")
    prev_close_price: Optional[Decimal] = Field(default=None, alias="prevClosePrice")
    last_price: Decimal = Field(..., alias="lastPrice")
    last_qty: Optional[Decimal] = Field(default=None, alias="lastQty")
    bid_price: Optional[Decimal] = Field(default=None, alias="bidPrice")
    ask_price: Optional[Decimal] = Field(default=None, alias="askPrice")
    open_price: Decimal = Field(..., alias="openPrice")
    high_price: Decimal = Field(..., alias="highPrice")
    low_price: Decimal = Field(..., alias="lowPrice")
    volume: Decimal
    quote_volume: Optional[Decimal] = Field(default=None, alias="quoteVolume")
    open_time: int = Field(..., alias="openTime")
    close_time: int = Field(..., alias="closeTime")
    first_id: int = Field(..., alias="firstId")
    last_id: int = Field(..., alias="lastId")
    count: int


class TickerPrice(AppBaseModel):
    symbol: str
    price: Decimal


class BookTicker(AppBaseModel):
    """Best price/qty on the order book for a symbol."""

    symbol: str
    bid_price: Decimal = Field(..., alias="bidPrice")
    bid_qty: Decimal = Field(..., alias="bidQty")
    ask_price: Decimal = Field(..., alias="askPrice")
    ask_qty: Decimal = Field(..., alias="askQty")


# --- Account ---


class AssetBalance(AppBaseModel):
    asset: str
    free: Decimal
    locked: Decimal

    @property
    def total(self) -> Decimal:
        return self.free + self.locked


class Account(AppBaseModel):
    maker_commission: int = Field(..., alias="makerCommission")
    taker_commission: int = Field(..., alias="takerCommission")
    buyer_commission: int = Field(..., alias="buyerCommission")
    seller_commission: int = Field(..., alias="sellerCommission")
    can_trade: bool = Field(..., alias="canTrade")
    can_withdraw: bool = Field(..., alias="canWithdraw")
    can_deposit: bool = Field(..., alias="canDeposit")
    update_time: int = Field(..., alias="updateTime")
    balances: list[AssetBalance] = Field(default_factory=list)

    def get_asset_balance(self, asset: str) -> AssetBalance:
        """Returns the balance for `asset`, or an empty one if the account holds none."""
        for balance in self.balances:
            if balance.asset == asset:
                return balance
        return AssetBalance(asset=asset, free=Decimal("0"), locked=Decimal("0"))


class NewOrder(AppBaseModel):
    """
    An order to submit. Field order mirrors the wire order of the request
    parameters, which is also the order they are signed in.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    symbol: str
    side: OrderSide
    type: OrderType
    time_in_force: Optional[TimeInForce] = Field(default=None, alias="timeInForce")
    quantity: Optional[str] = None
    quote_order_qty: Optional[str] = Field(default=None, alias="quoteOrderQty")
    price: Optional[str] = None
    new_client_order_id: Optional[str] = Field(default=None, alias="newClientOrderId")
    stop_price: Optional[str] = Field(default=None, alias="stopPrice")
    iceberg_qty: Optional[str] = Field(default=None, alias="icebergQty")
    new_order_resp_type: NewOrderResponseType = Field(
        default=NewOrderResponseType.RESULT, alias="newOrderRespType"
    )
    recv_window: Optional[int] = Field(default=None, alias="recvWindow")
    timestamp: Optional[int] = None

    @classmethod
    def limit_buy(cls, symbol: str, time_in_force: TimeInForce, quantity: str, price: str) -> "NewOrder":
        return cls(symbol=symbol, side=OrderSide.BUY, type=OrderType.LIMIT,
                   time_in_force=time_in_force, quantity=quantity, price=price)

    @classmethod
    def limit_sell(cls, symbol: str, time_in_force: TimeInForce, quantity: str, price: str) -> "NewOrder":
        return cls(symbol=symbol, side=OrderSide.SELL, type=OrderType.LIMIT,
                   time_in_force=time_in_force, quantity=quantity, price=price)

    @classmethod
    def market_buy(cls, symbol: str, quantity: str) -> "NewOrder":
        return cls(symbol=symbol, side=OrderSide.BUY, type=OrderType.MARKET, quantity=quantity)

    @classmethod
    def market_sell(cls, symbol: str, quantity: str) -> "NewOrder":
        return cls(symbol=symbol, side=OrderSide.SELL, type=OrderType.MARKET, quantity=quantity)

    def to_params(self) -> dict[str, Any]:
        """Wire parameters in declaration order. recvWindow/timestamp are left to the signer."""
        params = self.model_dump(by_alias=True, exclude={"recv_window", "timestamp"})
        return {key: value for key, value in params.items() if value is not None}


class Fill(AppBaseModel):
    price: Decimal
    qty: Decimal
    commission: Decimal
    commission_asset: str = Field(..., alias="commissionAsset")
    trade_id: Optional[int] = Field(default=None, alias="tradeId")


class NewOrderResponse(AppBaseModel):
    symbol: str
    order_id: int = Field(..., alias="orderId")
    client_order_id: str = Field(..., alias="clientOrderId")
    transact_time: int = Field(..., alias="transactTime")
    price: Optional[Decimal] = None
    orig_qty: Optional[Decimal] = Field(default=None, alias="origQty")
    executed_qty: Optional[Decimal] = Field(default=None, alias="executedQty")
    cummulative_quote_qty: Optional[Decimal] = Field(default=None, alias="cummulativeQuoteQty")
    status: Optional[OrderStatus] = None
    time_in_force: Optional[TimeInForce] = Field(default=None, alias="timeInForce")
    type: Optional[OrderType] = None
    side: Optional[OrderSide] = None
    fills: list[Fill] = Field(default_factory=list)


class Order(AppBaseModel):
    """An order record from /order, /openOrders or /allOrders."""

    symbol: str
    order_id: int = Field(..., alias="orderId")
    client_order_id: str = Field(..., alias="clientOrderId")
    price: Decimal
    orig_qty: Decimal = Field(..., alias="origQty")
    executed_qty: Decimal = Field(..., alias="executedQty")
    cummulative_quote_qty: Optional[Decimal] = Field(default=None, alias="cummulativeQuoteQty")
    status: OrderStatus
    time_in_force: TimeInForce = Field(..., alias="timeInForce")
    type: OrderType
    side: OrderSide
    stop_price: Optional[Decimal] = Field(default=None, alias="stopPrice")
    iceberg_qty: Optional[Decimal] = Field(default=None, alias="icebergQty")
    time: int
    update_time: Optional[int] = Field(default=None, alias="updateTime")
    is_working: bool = Field(default=True, alias="isWorking")


class CancelOrderResponse(AppBaseModel):
    symbol: str
    orig_client_order_id: Optional[str] = Field(default=None, alias="origClientOrderId")
    order_id: int = Field(..., alias="orderId")
    client_order_id: str = Field(..., alias="clientOrderId")
    status: Optional[OrderStatus] = None
    executed_qty: Optional[Decimal] = Field(default=None, alias="executedQty")


class Trade(AppBaseModel):
    """An account trade from /myTrades."""

    id: int
    symbol: Optional[str] = None
    order_id: Optional[int] = Field(default=None, alias="orderId")
    price: Decimal
    qty: Decimal
    quote_qty: Optional[Decimal] = Field(default=None, alias="quoteQty")
    commission: Decimal
    commission_asset: str = Field(..., alias="commissionAsset")
    time: int
    is_buyer: bool = Field(..., alias="isBuyer")
    is_maker: bool = Field(..., alias="isMaker")
    is_best_match: bool = Field(default=False, alias="isBestMatch")


# --- User Data Stream ---


class ListenKey(AppBaseModel):
    listen_key: str = Field(..., alias="listenKey")
