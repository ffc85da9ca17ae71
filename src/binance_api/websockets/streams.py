# src/binance_api/websockets/streams.py

# --- Built Ins ---
import asyncio
import inspect
from typing import Any, Callable, List, Optional, Set

# --- Installed ---
import orjson
import websockets
from loguru import logger as log
from pydantic import ValidationError

# --- Local Application Imports ---
from ..config.models import ClientSettings
from ..core.enums import CandlestickInterval
from ..core.events import (
    AggTradeEvent,
    AllMarketTickersEvent,
    BookTickerEvent,
    CandlestickEvent,
    DepthEvent,
    UserDataUpdateEvent,
)
from ..core.exceptions import InvalidParameterError, TransportError

EventCallback = Callable[[Any], Any]
ErrorCallback = Callable[[Exception], Any]
FrameParser = Callable[[Any], List[Any]]


def _channels(symbols: str, suffix: str) -> List[str]:
    """'ETHBTC,ltcbtc' + '@depth' -> ['ethbtc@depth', 'ltcbtc@depth']"""
    names = [s.strip().lower() for s in symbols.split(",") if s.strip()]
    if not names:
        raise InvalidParameterError("symbols", "at least one symbol is required")
    return [f"{name}{suffix}" for name in names]


async def _invoke(callback: Callable[..., Any], arg: Any) -> None:
    result = callback(arg)
    if inspect.isawaitable(result):
        await result


class StreamSubscription:
    """Handle for one live stream. close() stops delivery and drops the connection."""

    def __init__(self, url: str, channels: List[str]):
        self.url = url
        self.channels = channels
        self._ws: Optional[websockets.WebSocketClientProtocol] = None
        self._task: Optional[asyncio.Task] = None
        self._closing = False

    @property
    def is_active(self) -> bool:
        return self._task is not None and not self._task.done()

    async def wait_closed(self) -> None:
        """Waits until the stream has ended, for whatever reason."""
        if self._task:
            await asyncio.gather(self._task, return_exceptions=True)

    async def close(self) -> None:
        self._closing = True
        if self._ws:
            await self._ws.close()
        if self._task and not self._task.done():
            self._task.cancel()
        await self.wait_closed()


class BinanceWebSocketClient:
    """
    Relays Binance stream frames to caller callbacks.

    Each subscription owns one connection and one task. Events reach the
    callback one at a time, in arrival order, on the loop that created the
    subscription. A callback may be a plain function or a coroutine function;
    either way it must not block for long. Exceptions raised by a callback are
    logged and the stream continues. A lost connection, including a clean
    close initiated by the server, is reported once to `on_error` as a
    TransportError and the subscription ends; reconnecting is the caller's
    decision. Closing the subscription yourself reports nothing.
    """

    def __init__(self, settings: ClientSettings):
        self.settings = settings
        self.ws_base_url = settings.ws_base_url
        self._subscriptions: Set[StreamSubscription] = set()

    def _stream_url(self, channels: List[str]) -> str:
        if len(channels) == 1:
            return f"{self.ws_base_url}/ws/{channels[0]}"
        return f"{self.ws_base_url}/stream?streams=" + "/".join(channels)

    def _subscribe(
        self,
        channels: List[str],
        parser: FrameParser,
        callback: EventCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> StreamSubscription:
        subscription = StreamSubscription(self._stream_url(channels), channels)
        subscription._task = asyncio.create_task(
            self._run_stream(subscription, parser, callback, on_error),
            name=f"binance-ws:{'/'.join(channels)}",
        )
        self._subscriptions.add(subscription)
        subscription._task.add_done_callback(lambda _: self._subscriptions.discard(subscription))
        return subscription

    async def _dispatch(self, message: Any, combined: bool, parser: FrameParser, callback: EventCallback) -> None:
        try:
            data = orjson.loads(message)
        except orjson.JSONDecodeError:
            log.warning("Failed to decode Binance stream frame.")
            return

        # Combined streams wrap each payload as {"stream": ..., "data": ...}
        if combined and isinstance(data, dict) and "data" in data:
            data = data["data"]

        try:
            events = parser(data)
        except (ValidationError, KeyError, TypeError, AttributeError):
            log.warning(f"Failed to parse Binance stream frame: {str(message)[:200]}")
            return

        for event in events:
            try:
                await _invoke(callback, event)
            except Exception:
                log.exception("Stream callback raised an exception.")

    @staticmethod
    async def _report_failure(on_error: Optional[ErrorCallback], error: TransportError) -> None:
        if not on_error:
            return
        try:
            await _invoke(on_error, error)
        except Exception:
            log.exception("Stream error callback raised an exception.")

    async def _run_stream(
        self,
        subscription: StreamSubscription,
        parser: FrameParser,
        callback: EventCallback,
        on_error: Optional[ErrorCallback],
    ) -> None:
        combined = len(subscription.channels) > 1
        name = "/".join(subscription.channels)
        try:
            async with websockets.connect(
                subscription.url, ping_interval=self.settings.ws_ping_interval_s
            ) as ws:
                subscription._ws = ws
                log.success(f"[binance-ws] Connected to {name}.")
                async for message in ws:
                    await self._dispatch(message, combined, parser, callback)

            # A clean close we did not ask for (e.g. the 24h disconnect) still ends the subscription
            if not subscription._closing:
                log.error(f"[binance-ws] Stream {name} was closed by the server.")
                await self._report_failure(on_error, TransportError(f"WebSocket stream {name} closed by the server"))

        except asyncio.CancelledError:
            raise
        except (websockets.exceptions.WebSocketException, OSError, asyncio.TimeoutError) as e:
            log.error(f"[binance-ws] Stream {name} failed: {e!r}")
            error = TransportError(f"WebSocket stream failed: {e!r}")
            error.__cause__ = e
            await self._report_failure(on_error, error)

        finally:
            subscription._ws = None
            log.warning(f"[binance-ws] Stream {name} closed.")

    # --- STREAMS ---

    def on_depth_event(
        self, symbols: str, callback: EventCallback, on_error: Optional[ErrorCallback] = None
    ) -> StreamSubscription:
        """Diff depth updates for comma-separated `symbols`."""
        return self._subscribe(
            _channels(symbols, "@depth"),
            lambda data: [DepthEvent.model_validate(data)],
            callback,
            on_error,
        )

    def on_candlestick_event(
        self,
        symbols: str,
        interval: CandlestickInterval,
        callback: EventCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> StreamSubscription:
        try:
            interval = CandlestickInterval(interval)
        except ValueError as e:
            raise InvalidParameterError("interval", f"unsupported value {interval!r}") from e
        return self._subscribe(
            _channels(symbols, f"@kline_{interval.value}"),
            lambda data: [CandlestickEvent.model_validate(data)],
            callback,
            on_error,
        )

    def on_agg_trade_event(
        self, symbols: str, callback: EventCallback, on_error: Optional[ErrorCallback] = None
    ) -> StreamSubscription:
        return self._subscribe(
            _channels(symbols, "@aggTrade"),
            lambda data: [AggTradeEvent.model_validate(data)],
            callback,
            on_error,
        )

    def on_all_market_tickers_event(
        self, callback: EventCallback, on_error: Optional[ErrorCallback] = None
    ) -> StreamSubscription:
        """The callback receives the whole list of tickers carried by each frame."""
        return self._subscribe(
            ["!ticker@arr"],
            lambda data: [[AllMarketTickersEvent.model_validate(t) for t in data]],
            callback,
            on_error,
        )

    def on_book_ticker_event(
        self, symbols: str, callback: EventCallback, on_error: Optional[ErrorCallback] = None
    ) -> StreamSubscription:
        return self._subscribe(
            _channels(symbols, "@bookTicker"),
            lambda data: [BookTickerEvent.model_validate(data)],
            callback,
            on_error,
        )

    def on_all_book_tickers_event(
        self, callback: EventCallback, on_error: Optional[ErrorCallback] = None
    ) -> StreamSubscription:
        return self._subscribe(
            ["!bookTicker"],
            lambda data: [BookTickerEvent.model_validate(data)],
            callback,
            on_error,
        )

    def on_user_data_update_event(
        self, listen_key: str, callback: EventCallback, on_error: Optional[ErrorCallback] = None
    ) -> StreamSubscription:
        """Account, balance and order updates for the stream identified by `listen_key`."""
        if not listen_key:
            raise InvalidParameterError("listenKey", "a listen key is required")
        return self._subscribe(
            [listen_key],
            lambda data: [UserDataUpdateEvent.from_payload(data)],
            callback,
            on_error,
        )

    async def close(self) -> None:
        """Closes every open subscription."""
        subscriptions = list(self._subscriptions)
        if subscriptions:
            log.warning(f"[binance-ws] Closing {len(subscriptions)} subscription(s)...")
        await asyncio.gather(*(s.close() for s in subscriptions), return_exceptions=True)
