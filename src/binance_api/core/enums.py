# src/binance_api/core/enums.py

from enum import Enum


class DomainType(str, Enum):
    """Top-level domain of the Binance deployment the client talks to."""

    COM = "com"
    US = "us"


class SecurityType(str, Enum):
    """
    How an endpoint authenticates.
    NONE endpoints are public, API_KEY endpoints only need the key header,
    SIGNED endpoints need the key header and an HMAC signature.
    """

    NONE = "NONE"
    API_KEY = "API_KEY"
    SIGNED = "SIGNED"


class CandlestickInterval(str, Enum):
    """Kline intervals and their wire codes."""

    ONE_MINUTE = "1m"
    THREE_MINUTES = "3m"
    FIVE_MINUTES = "5m"
    FIFTEEN_MINUTES = "15m"
    HALF_HOURLY = "30m"
    HOURLY = "1h"
    TWO_HOURLY = "2h"
    FOUR_HOURLY = "4h"
    SIX_HOURLY = "6h"
    EIGHT_HOURLY = "8h"
    TWELVE_HOURLY = "12h"
    DAILY = "1d"
    THREE_DAILY = "3d"
    WEEKLY = "1w"
    MONTHLY = "1M"


class OrderSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderType(str, Enum):
    LIMIT = "LIMIT"
    MARKET = "MARKET"
    STOP_LOSS = "STOP_LOSS"
    STOP_LOSS_LIMIT = "STOP_LOSS_LIMIT"
    TAKE_PROFIT = "TAKE_PROFIT"
    TAKE_PROFIT_LIMIT = "TAKE_PROFIT_LIMIT"
    LIMIT_MAKER = "LIMIT_MAKER"


class TimeInForce(str, Enum):
    GTC = "GTC"  # Good till cancelled
    IOC = "IOC"  # Immediate or cancel
    FOK = "FOK"  # Fill or kill


class OrderStatus(str, Enum):
    NEW = "NEW"
    PENDING_NEW = "PENDING_NEW"
    PARTIALLY_FILLED = "PARTIALLY_FILLED"
    FILLED = "FILLED"
    CANCELED = "CANCELED"
    PENDING_CANCEL = "PENDING_CANCEL"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"
    EXPIRED_IN_MATCH = "EXPIRED_IN_MATCH"


class NewOrderResponseType(str, Enum):
    """Controls how much detail the exchange returns for a new order."""

    ACK = "ACK"
    RESULT = "RESULT"
    FULL = "FULL"


class ExecutionType(str, Enum):
    """Execution types reported in user data stream order updates."""

    NEW = "NEW"
    CANCELED = "CANCELED"
    REPLACED = "REPLACED"
    REJECTED = "REJECTED"
    TRADE = "TRADE"
    EXPIRED = "EXPIRED"
    TRADE_PREVENTION = "TRADE_PREVENTION"


class RateLimitType(str, Enum):
    """Rate limiters reported in exchange info."""

    REQUEST_WEIGHT = "REQUEST_WEIGHT"
    ORDERS = "ORDERS"
    REQUESTS = "REQUESTS"
    RAW_REQUESTS = "RAW_REQUESTS"


class RateLimitInterval(str, Enum):
    SECOND = "SECOND"
    MINUTE = "MINUTE"
    DAY = "DAY"


class SymbolStatus(str, Enum):
    PRE_TRADING = "PRE_TRADING"
    TRADING = "TRADING"
    POST_TRADING = "POST_TRADING"
    END_OF_DAY = "END_OF_DAY"
    HALT = "HALT"
    AUCTION_MATCH = "AUCTION_MATCH"
    BREAK = "BREAK"


class UserDataEventType(str, Enum):
    """The `e` field of a user data stream frame."""

    ACCOUNT_POSITION_UPDATE = "outboundAccountPosition"
    BALANCE_UPDATE = "balanceUpdate"
    ORDER_TRADE_UPDATE = "executionReport"
    LIST_STATUS = "listStatus"
    LISTEN_KEY_EXPIRED = "listenKeyExpired"
