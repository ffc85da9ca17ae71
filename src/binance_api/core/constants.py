# src/binance_api/core/constants.py

from typing import NamedTuple

from .enums import SecurityType

# Base URL templates, formatted with the DomainType value
REST_URL = "https://api.binance.{}"
WSS_URL = "wss://stream.binance.{}:9443"

API_KEY_HEADER = "X-MBX-APIKEY"

# Binance rejects recvWindow values above one minute
MAX_RECV_WINDOW_MS = 60_000

MAX_LIMIT = 1000
VALID_DEPTH_LIMITS = (5, 10, 20, 50, 100, 500, 1000, 5000)


class Endpoint(NamedTuple):
    method: str
    path: str
    security: SecurityType


class Endpoints:
    """
    Centralized REST endpoint table.
    """

    # --- General ---
    PING = Endpoint("GET", "/api/v3/ping", SecurityType.NONE)
    SERVER_TIME = Endpoint("GET", "/api/v3/time", SecurityType.NONE)
    EXCHANGE_INFO = Endpoint("GET", "/api/v3/exchangeInfo", SecurityType.NONE)

    # --- Market Data ---
    ORDER_BOOK = Endpoint("GET", "/api/v3/depth", SecurityType.NONE)
    TRADES = Endpoint("GET", "/api/v3/trades", SecurityType.NONE)
    HISTORICAL_TRADES = Endpoint("GET", "/api/v3/historicalTrades", SecurityType.API_KEY)
    AGG_TRADES = Endpoint("GET", "/api/v3/aggTrades", SecurityType.NONE)
    KLINES = Endpoint("GET", "/api/v3/klines", SecurityType.NONE)
    TICKER_24HR = Endpoint("GET", "/api/v3/ticker/24hr", SecurityType.NONE)
    TICKER_PRICE = Endpoint("GET", "/api/v3/ticker/price", SecurityType.NONE)
    BOOK_TICKER = Endpoint("GET", "/api/v3/ticker/bookTicker", SecurityType.NONE)

    # --- Account ---
    NEW_ORDER = Endpoint("POST", "/api/v3/order", SecurityType.SIGNED)
    NEW_ORDER_TEST = Endpoint("POST", "/api/v3/order/test", SecurityType.SIGNED)
    QUERY_ORDER = Endpoint("GET", "/api/v3/order", SecurityType.SIGNED)
    CANCEL_ORDER = Endpoint("DELETE", "/api/v3/order", SecurityType.SIGNED)
    OPEN_ORDERS = Endpoint("GET", "/api/v3/openOrders", SecurityType.SIGNED)
    ALL_ORDERS = Endpoint("GET", "/api/v3/allOrders", SecurityType.SIGNED)
    ACCOUNT = Endpoint("GET", "/api/v3/account", SecurityType.SIGNED)
    MY_TRADES = Endpoint("GET", "/api/v3/myTrades", SecurityType.SIGNED)

    # --- User Data Stream ---
    START_USER_STREAM = Endpoint("POST", "/api/v3/userDataStream", SecurityType.API_KEY)
    KEEPALIVE_USER_STREAM = Endpoint("PUT", "/api/v3/userDataStream", SecurityType.API_KEY)
    CLOSE_USER_STREAM = Endpoint("DELETE", "/api/v3/userDataStream", SecurityType.API_KEY)


# Quote assets treated as fiat when valuing balances in BTC
FIAT_CURRENCIES = frozenset({"USDT", "USDC", "BUSD", "FDUSD", "TUSD", "DAI", "EUR", "TRY", "BRL"})
BTC_TICKER = "BTC"
