# src/binance_api/clients/blocking_client.py

# --- Built Ins ---
import asyncio
import concurrent.futures
from threading import Thread
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

# --- Installed ---
from loguru import logger as log

# --- Local Application Imports ---
from ..auth.signing import Clock, current_time_ms
from ..config.models import ClientSettings
from ..core.enums import CandlestickInterval
from ..core.models import (
    Account,
    AggTrade,
    BookTicker,
    CancelOrderResponse,
    Candlestick,
    ExchangeInfo,
    NewOrder,
    NewOrderResponse,
    Order,
    OrderBook,
    TickerPrice,
    TickerStatistics,
    Trade,
    TradeHistoryItem,
)
from .rest_client import BinanceAsyncRestClient

T = TypeVar("T")


class BinanceRestClient:
    """
    Blocking facade over BinanceAsyncRestClient.

    The async client lives on a private event loop running in a daemon thread.
    Blocking methods suspend the calling thread until the response arrives.
    `submit()` is the non-blocking mode: it returns a concurrent.futures.Future
    whose done-callbacks run on the loop thread, and whose cancel() aborts the
    underlying HTTP request.
    """

    def __init__(
        self,
        settings: ClientSettings,
        clock: Clock = current_time_ms,
        timeout_s: Optional[float] = None,
    ):
        self._settings = settings
        self._timeout_s = timeout_s
        self._ev_loop = asyncio.new_event_loop()
        self._thread = Thread(target=self._run_loop, name="binance-rest-loop", daemon=True)
        self._thread.start()
        # The aiohttp session must be created on the loop that will use it
        try:
            self.aio = self._run(self._create_async_client(settings, clock))
        except Exception:
            self._stop_loop()
            raise

    @staticmethod
    async def _create_async_client(settings: ClientSettings, clock: Clock) -> BinanceAsyncRestClient:
        client = BinanceAsyncRestClient(settings, clock=clock)
        await client.connect()
        return client

    def _run_loop(self):
        asyncio.set_event_loop(self._ev_loop)
        self._ev_loop.run_forever()

    def _run(self, coro: Awaitable[T]) -> T:
        future = asyncio.run_coroutine_threadsafe(coro, self._ev_loop)
        try:
            return future.result(self._timeout_s)
        except concurrent.futures.TimeoutError:
            future.cancel()
            raise

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def submit(self, fn: Callable[..., Awaitable[T]], *args, **kwargs) -> "concurrent.futures.Future[T]":
        """
        Schedules `fn(*args, **kwargs)` (a coroutine method of `self.aio`) and
        returns immediately.

        Example:
            future = client.submit(client.aio.get_account)
            future.add_done_callback(lambda f: print(f.result()))
        """
        return asyncio.run_coroutine_threadsafe(fn(*args, **kwargs), self._ev_loop)

    def close(self) -> None:
        """Closes the HTTP session and stops the loop thread."""
        if not self._ev_loop.is_running():
            return
        try:
            self._run(self.aio.close())
        finally:
            self._stop_loop()

    def _stop_loop(self) -> None:
        self._ev_loop.call_soon_threadsafe(self._ev_loop.stop)
        self._thread.join(timeout=5)
        if not self._ev_loop.is_running():
            self._ev_loop.close()
        log.info("Blocking REST client loop stopped.")

    # --- GENERAL ENDPOINTS ---

    def ping(self) -> None:
        self._run(self.aio.ping())

    def get_server_time(self) -> int:
        return self._run(self.aio.get_server_time())

    def get_exchange_info(self) -> ExchangeInfo:
        return self._run(self.aio.get_exchange_info())

    # --- MARKET DATA ENDPOINTS ---

    def get_order_book(self, symbol: str, limit: int = 100) -> OrderBook:
        return self._run(self.aio.get_order_book(symbol, limit))

    def get_trades(self, symbol: str, limit: Optional[int] = None) -> List[TradeHistoryItem]:
        return self._run(self.aio.get_trades(symbol, limit))

    def get_historical_trades(
        self, symbol: str, limit: Optional[int] = None, from_id: Optional[int] = None
    ) -> List[TradeHistoryItem]:
        return self._run(self.aio.get_historical_trades(symbol, limit, from_id))

    def get_agg_trades(
        self,
        symbol: str,
        from_id: Optional[int] = None,
        limit: Optional[int] = None,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
    ) -> List[AggTrade]:
        return self._run(self.aio.get_agg_trades(symbol, from_id, limit, start_time, end_time))

    def get_candlestick_bars(
        self,
        symbol: str,
        interval: CandlestickInterval,
        limit: Optional[int] = None,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
    ) -> List[Candlestick]:
        return self._run(self.aio.get_candlestick_bars(symbol, interval, limit, start_time, end_time))

    def get_24hr_price_statistics(self, symbol: str) -> TickerStatistics:
        return self._run(self.aio.get_24hr_price_statistics(symbol))

    def get_all_24hr_price_statistics(self) -> List[TickerStatistics]:
        return self._run(self.aio.get_all_24hr_price_statistics())

    def get_price(self, symbol: str) -> TickerPrice:
        return self._run(self.aio.get_price(symbol))

    def get_all_prices(self) -> List[TickerPrice]:
        return self._run(self.aio.get_all_prices())

    def get_book_tickers(self) -> List[BookTicker]:
        return self._run(self.aio.get_book_tickers())

    # --- ACCOUNT ENDPOINTS ---

    def new_order(self, order: NewOrder) -> NewOrderResponse:
        return self._run(self.aio.new_order(order))

    def new_order_test(self, order: NewOrder) -> None:
        self._run(self.aio.new_order_test(order))

    def get_order_status(
        self,
        symbol: str,
        order_id: Optional[int] = None,
        orig_client_order_id: Optional[str] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None,
    ) -> Order:
        return self._run(
            self.aio.get_order_status(symbol, order_id, orig_client_order_id, recv_window, timestamp)
        )

    def cancel_order(
        self,
        symbol: str,
        order_id: Optional[int] = None,
        orig_client_order_id: Optional[str] = None,
        new_client_order_id: Optional[str] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None,
    ) -> CancelOrderResponse:
        return self._run(
            self.aio.cancel_order(
                symbol, order_id, orig_client_order_id, new_client_order_id, recv_window, timestamp
            )
        )

    def get_open_orders(
        self,
        symbol: Optional[str] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None,
    ) -> List[Order]:
        return self._run(self.aio.get_open_orders(symbol, recv_window, timestamp))

    def get_all_orders(
        self,
        symbol: str,
        order_id: Optional[int] = None,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
        limit: Optional[int] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None,
    ) -> List[Order]:
        return self._run(
            self.aio.get_all_orders(symbol, order_id, start_time, end_time, limit, recv_window, timestamp)
        )

    def get_account(self, recv_window: Optional[int] = None, timestamp: Optional[int] = None) -> Account:
        return self._run(self.aio.get_account(recv_window, timestamp))

    def get_my_trades(
        self,
        symbol: str,
        limit: Optional[int] = None,
        from_id: Optional[int] = None,
        start_time: Optional[int] = None,
        end_time: Optional[int] = None,
        recv_window: Optional[int] = None,
        timestamp: Optional[int] = None,
    ) -> List[Trade]:
        return self._run(
            self.aio.get_my_trades(symbol, limit, from_id, start_time, end_time, recv_window, timestamp)
        )

    # --- USER DATA STREAM ENDPOINTS ---

    def start_user_data_stream(self) -> str:
        return self._run(self.aio.start_user_data_stream())

    def keep_alive_user_data_stream(self, listen_key: str) -> None:
        self._run(self.aio.keep_alive_user_data_stream(listen_key))

    def close_user_data_stream(self, listen_key: str) -> None:
        self._run(self.aio.close_user_data_stream(listen_key))
