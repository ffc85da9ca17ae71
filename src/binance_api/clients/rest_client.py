# src/binance_api/clients/rest_client.py

# --- Built Ins ---
import asyncio
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

# --- Installed ---
import aiohttp
import orjson
from loguru import logger as log
from pydantic import BaseModel, ValidationError
from yarl import URL

# --- Local Application Imports ---
from ..auth.signing import Clock, SignedRequestBuilder, current_time_ms
from ..config.models import ClientSettings
from ..core.constants import (
    MAX_LIMIT,
    MAX_RECV_WINDOW_MS,
    VALID_DEPTH_LIMITS,
    Endpoint,
    Endpoints,
)
from ..core.enums import CandlestickInterval
from ..core.exceptions import ApiError, InvalidParameterError, ResponseDecodeError, TransportError
from ..core.models import (
    Account,
    AggTrade,
    BookTicker,
    CancelOrderResponse,
    Candlestick,
    ExchangeInfo,
    ListenKey,
    NewOrder,
    NewOrderResponse,
    Order,
    OrderBook,
    ServerTime,
    TickerPrice,
    TickerStatistics,
    Trade,
    TradeHistoryItem,
)

E = TypeVar("E", bound=Enum)
M = TypeVar("M", bound=BaseModel)

# aggTrades rejects startTime/endTime windows of one hour or more
_AGG_TRADES_MAX_WINDOW_MS = 60 * 60 * 1000


def _check_limit(limit: Optional[int], maximum: int = MAX_LIMIT) -> None:
    if limit is not None and not 1 <= limit <= maximum:
        raise InvalidParameterError("limit", f"must be between 1 and {maximum}, got {limit}")


def _check_recv_window(recv_window: Optional[int]) -> None:
    if recv_window is not None and not 0 < recv_window <= MAX_RECV_WINDOW_MS:
        raise InvalidParameterError(
            "recvWindow", f"must be between 1 and {MAX_RECV_WINDOW_MS}, got {recv_window}"
        )


def _coerce_enum(enum_cls: Type[E], value: Any, name: str) -> E:
    """Accepts an enum member or its wire value; anything else is rejected up front."""
    try:
        return enum_cls(value)
    except ValueError as e:
        raise InvalidParameterError(name, f"unsupported value {value!r}") from e


def _decode(model: Type[M], data: Any) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ResponseDecodeError(f"Unexpected {model.__name__} payload: {e}") from e


def _decode_list(model: Type[M], data: Any) -> List[M]:
    if not isinstance(data, list):
        raise ResponseDecodeError(f"Expected a list of {model.__name__}, got {type(data).__name__}")
    return [_decode(model, item) for item in data]


class BinanceAsyncRestClient:
    """
    Asynchronous client for the Binance spot REST API.

    Every endpoint is a coroutine. Wrap a call in `asyncio.create_task` to hold
    it as a future; cancelling that task aborts the HTTP request. Nothing is
    retried: transport failures raise TransportError, non-2xx answers raise
    ApiError, and parameter problems raise before anything is sent. A 2xx
    body that does not fit the response model raises ResponseDecodeError.
    """

    def __init__(
        self,
        settings: ClientSettings,
        http_session: Optional[aiohttp.ClientSession] = None,
        clock: Clock = current_time_ms,
    ):
        self._settings = settings
        self._session = http_session
        self._owns_session = http_session is None
        self._base_url = settings.rest_base_url
        self._timeout = aiohttp.ClientTimeout(total=settings.request_timeout_s)
        self._builder = SignedRequestBuilder(
            api_key=settings.api_key,
            api_secret=settings.api_secret,
            clock=clock,
            default_recv_window=settings.recv_window,
        )

    # --- CONNECTION LIFECYCLE ---

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is not None and not self._owns_session and self._session.closed:
            raise TransportError("The shared aiohttp session passed to this client is closed.")
        if self._session is None or (self._owns_session and self._session.closed):
            self._session = aiohttp.ClientSession(
                json_serialize=lambda data: orjson.dumps(data).decode()
            )
            self._owns_session = True
            log.info(f"Aiohttp session established for {self._base_url}.")
        return self._session

    async def connect(self):
        """Opens the HTTP session. Calls made before connect() open it lazily."""
        await self._get_session()

    async def close(self):
        """Closes the HTTP session if this client created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            log.info(f"Aiohttp session for {self._base_url} closed.")
        if self._owns_session:
            self._session = None

    # --- SINGLE INTERNAL REQUEST METHOD ---

    async def _request(
        self,
        endpoint: Endpoint,
        params: Optional[Dict[str, Any]] = None,
        required: Iterable[str] = (),
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None,
    ) -> Any:
        """
        Prepares (and signs, where required) the parameters, sends the request
        and decodes the JSON body. The query string placed on the URL is the
        exact string that was signed.
        """
        _check_recv_window(recv_window)
        prepared = self._builder.prepare(
            params,
            endpoint.security,
            required=required,
            timestamp=timestamp,
            recv_window=recv_window,
        )

        url = f"{self._base_url}{endpoint.path}"
        query = prepared.query_string
        if query:
            url = f"{url}?{query}"

        session = await self._get_session()
        log.debug(f"[API CALL] {endpoint.method} {endpoint.path} ({endpoint.security.value})")

        try:
            async with session.request(
                endpoint.method,
                URL(url, encoded=True),
                headers=prepared.headers,
                timeout=self._timeout,
            ) as response:
                status = response.status
                body = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.error(f"Transport failure for {endpoint.method} {endpoint.path}: {e!r}")
            raise TransportError(f"{endpoint.method} {endpoint.path} failed: {e!r}") from e

        try:
            data = orjson.loads(body) if body else None
        except orjson.JSONDecodeError:
            data = None
            if 200 <= status < 300:
                raise ResponseDecodeError(f"Undecodable response body (HTTP {status}): {body[:200]!r}")

        if not 200 <= status < 300:
            code = data.get("code") if isinstance(data, dict) else None
            msg = data.get("msg", "") if isinstance(data, dict) else body.decode("utf-8", "replace")
            log.error(f"Binance API Error for {endpoint.method} {endpoint.path}: HTTP {status}, code={code}, msg={msg}")
            raise ApiError(status, code, msg)

        return data

    # --- GENERAL ENDPOINTS ---

    async def ping(self) -> None:
        """Tests connectivity to the REST API."""
        await self._request(Endpoints.PING)

    async def get_server_time(self) -> int:
        """Returns the exchange clock in epoch milliseconds."""
        data = await self._request(Endpoints.SERVER_TIME)
        return _decode(ServerTime, data).server_time

    async def get_exchange_info(self) -> ExchangeInfo:
        """Trading rules, rate limits and symbol information."""
        data = await self._request(Endpoints.EXCHANGE_INFO)
        return _decode(ExchangeInfo, data)

    # --- MARKET DATA ENDPOINTS ---

    async def get_order_book(self, symbol: str, limit: int = 100) -> OrderBook:
        if limit not in VALID_DEPTH_LIMITS:
            raise InvalidParameterError("limit", f"must be one of {VALID_DEPTH_LIMITS}, got {limit}")
        data = await self._request(
            Endpoints.ORDER_BOOK, {"symbol": symbol, "limit": limit}, required=("symbol",)
        )
        return _decode(OrderBook, data)

    async def get_trades(self, symbol: str, limit: Optional[int] = None) -> List[TradeHistoryItem]:
        """Recent public trades."""
        _check_limit(limit)
        data = await self._request(Endpoints.TRADES, {"symbol": symbol, "limit": limit}, required=("symbol",))
        return _decode_list(TradeHistoryItem, data)

    async def get_historical_trades(
        self,
        symbol: str,
        limit: Optional[int] = None,
        from_id: Optional[int] = None,
    ) -> List[TradeHistoryItem]:
        """Older public trades. Needs an API key but no signature."""
        _check_limit(limit)
        params = {"symbol": symbol, "limit": limit, "fromId": from_id}
        data = await self._request(Endpoints.HISTORICAL_TRADES, params, required=("symbol",))
        return _decode_list(TradeHistoryItem, data)

    async def get_agg_trades(
        self,
        symbol: str,
        from_id: Optional[int] = None,
        limit: Optional[int] = None,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
    ) -> List[AggTrade]:
        """
        Compressed, aggregate trades. When both start_time and end_time are
        given they must span less than one hour.
        """
        _check_limit(limit)
        if start_time is not None and end_time is not None:
            if end_time < start_time:
                raise InvalidParameterError("endTime", "must not be before startTime")
            if end_time - start_time >= _AGG_TRADES_MAX_WINDOW_MS:
                raise InvalidParameterError("endTime", "startTime/endTime window must be under one hour")
        params = {
            "symbol": symbol,
            "fromId": from_id,
            "limit": limit,
            "startTime": start_time,
            "endTime": end_time,
        }
        data = await self._request(Endpoints.AGG_TRADES, params, required=("symbol",))
        return _decode_list(AggTrade, data)

    async def get_candlestick_bars(
        self,
        symbol: str,
        interval: CandlestickInterval,
        limit: Optional[int] = None,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
    ) -> List[Candlestick]:
        """Kline bars, uniquely identified by their open time."""
        _check_limit(limit)
        interval = _coerce_enum(CandlestickInterval, interval, "interval")
        params = {
            "symbol": symbol,
            "interval": interval,
            "limit": limit,
            "startTime": start_time,
            "endTime": end_time,
        }
        data = await self._request(Endpoints.KLINES, params, required=("symbol", "interval"))
        return _decode_list(Candlestick, data)

    async def get_24hr_price_statistics(self, symbol: str) -> TickerStatistics:
        data = await self._request(Endpoints.TICKER_24HR, {"symbol": symbol}, required=("symbol",))
        return _decode(TickerStatistics, data)

    async def get_all_24hr_price_statistics(self) -> List[TickerStatistics]:
        data = await self._request(Endpoints.TICKER_24HR)
        return _decode_list(TickerStatistics, data)

    async def get_price(self, symbol: str) -> TickerPrice:
        data = await self._request(Endpoints.TICKER_PRICE, {"symbol": symbol}, required=("symbol",))
        return _decode(TickerPrice, data)

    async def get_all_prices(self) -> List[TickerPrice]:
        data = await self._request(Endpoints.TICKER_PRICE)
        return _decode_list(TickerPrice, data)

    async def get_book_tickers(self) -> List[BookTicker]:
        """Best price/qty on the order book for all symbols."""
        data = await self._request(Endpoints.BOOK_TICKER)
        return _decode_list(BookTicker, data)

    # --- ACCOUNT ENDPOINTS ---

    async def new_order(self, order: NewOrder) -> NewOrderResponse:
        """Sends a new order into the matching engine."""
        log.info(f"[API CALL] New {order.side.value} {order.type.value} order on {order.symbol}")
        data = await self._request(
            Endpoints.NEW_ORDER,
            order.to_params(),
            required=("symbol", "side", "type"),
            recv_window=order.recv_window,
            timestamp=order.timestamp,
        )
        return _decode(NewOrderResponse, data)

    async def new_order_test(self, order: NewOrder) -> None:
        """Validates an order and its signature without sending it to the matching engine."""
        await self._request(
            Endpoints.NEW_ORDER_TEST,
            order.to_params(),
            required=("symbol", "side", "type"),
            recv_window=order.recv_window,
            timestamp=order.timestamp,
        )

    async def get_order_status(
        self,
        symbol: str,
        order_id: Optional[int] = None,
        orig_client_order_id: Optional[str] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None,
    ) -> Order:
        if order_id is None and orig_client_order_id is None:
            raise InvalidParameterError("orderId", "either orderId or origClientOrderId must be sent")
        params = {"symbol": symbol, "orderId": order_id, "origClientOrderId": orig_client_order_id}
        data = await self._request(
            Endpoints.QUERY_ORDER, params, required=("symbol",), recv_window=recv_window, timestamp=timestamp
        )
        return _decode(Order, data)

    async def cancel_order(
        self,
        symbol: str,
        order_id: Optional[int] = None,
        orig_client_order_id: Optional[str] = None,
        new_client_order_id: Optional[str] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None,
    ) -> CancelOrderResponse:
        if order_id is None and orig_client_order_id is None:
            raise InvalidParameterError("orderId", "either orderId or origClientOrderId must be sent")
        log.info(f"[API CALL] Attempting to cancel order {order_id or orig_client_order_id} on {symbol}")
        params = {
            "symbol": symbol,
            "orderId": order_id,
            "origClientOrderId": orig_client_order_id,
            "newClientOrderId": new_client_order_id,
        }
        data = await self._request(
            Endpoints.CANCEL_ORDER, params, required=("symbol",), recv_window=recv_window, timestamp=timestamp
        )
        return _decode(CancelOrderResponse, data)

    async def get_open_orders(
        self,
        symbol: Optional[str] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None,
    ) -> List[Order]:
        """Open orders on one symbol, or on every symbol when `symbol` is None."""
        data = await self._request(
            Endpoints.OPEN_ORDERS, {"symbol": symbol}, recv_window=recv_window, timestamp=timestamp
        )
        return _decode_list(Order, data)

    async def get_all_orders(
        self,
        symbol: str,
        order_id: Optional[int] = None,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
        limit: Optional[int] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None,
    ) -> List[Order]:
        """All account orders on a symbol; active, canceled, or filled."""
        _check_limit(limit)
        params = {
            "symbol": symbol,
            "orderId": order_id,
            "startTime": start_time,
            "endTime": end_time,
            "limit": limit,
        }
        data = await self._request(
            Endpoints.ALL_ORDERS, params, required=("symbol",), recv_window=recv_window, timestamp=timestamp
        )
        return _decode_list(Order, data)

    async def get_account(
        self,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None,
    ) -> Account:
        data = await self._request(Endpoints.ACCOUNT, recv_window=recv_window, timestamp=timestamp)
        return _decode(Account, data)

    async def get_my_trades(
        self,
        symbol: str,
        limit: Optional[int] = None,
        from_id: Optional[int] = None,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None,
    ) -> List[Trade]:
        """Trades for a specific account and symbol."""
        _check_limit(limit)
        params = {
            "symbol": symbol,
            "startTime": start_time,
            "endTime": end_time,
            "fromId": from_id,
            "limit": limit,
        }
        data = await self._request(
            Endpoints.MY_TRADES, params, required=("symbol",), recv_window=recv_window, timestamp=timestamp
        )
        return _decode_list(Trade, data)

    # --- USER DATA STREAM ENDPOINTS ---

    async def start_user_data_stream(self) -> str:
        """Starts a user data stream and returns its listen key."""
        data = await self._request(Endpoints.START_USER_STREAM)
        listen_key = _decode(ListenKey, data).listen_key
        log.info("User data stream started.")
        return listen_key

    async def keep_alive_user_data_stream(self, listen_key: str) -> None:
        """Pings a user data stream to prevent it from timing out."""
        await self._request(
            Endpoints.KEEPALIVE_USER_STREAM, {"listenKey": listen_key}, required=("listenKey",)
        )

    async def close_user_data_stream(self, listen_key: str) -> None:
        await self._request(
            Endpoints.CLOSE_USER_STREAM, {"listenKey": listen_key}, required=("listenKey",)
        )
        log.info("User data stream closed.")
