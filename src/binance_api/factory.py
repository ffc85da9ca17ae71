# src/binance_api/factory.py

# --- Built Ins ---
from typing import Optional

# --- Installed ---
import aiohttp
from loguru import logger as log

# --- Local Application Imports ---
from .auth.signing import Clock, current_time_ms
from .clients.blocking_client import BinanceRestClient
from .clients.rest_client import BinanceAsyncRestClient
from .config.models import ClientSettings
from .websockets.streams import BinanceWebSocketClient


class BinanceApiClientFactory:
    """
    Builds every client from one ClientSettings object.

    Example:
        factory = BinanceApiClientFactory(ClientSettings(api_key="...", api_secret="..."))
        async with factory.new_async_rest_client() as client:
            account = await client.get_account()
    """

    def __init__(self, settings: Optional[ClientSettings] = None, clock: Clock = current_time_ms):
        self.settings = settings or ClientSettings()
        self._clock = clock
        if not self.settings.has_credentials:
            log.info("BinanceApiClientFactory created without credentials; only public endpoints will work.")

    @classmethod
    def from_env(cls) -> "BinanceApiClientFactory":
        return cls(ClientSettings.from_env())

    def new_async_rest_client(
        self, http_session: Optional[aiohttp.ClientSession] = None
    ) -> BinanceAsyncRestClient:
        """Creates an asynchronous REST client. A shared session may be passed in."""
        return BinanceAsyncRestClient(self.settings, http_session=http_session, clock=self._clock)

    def new_rest_client(self, timeout_s: Optional[float] = None) -> BinanceRestClient:
        """Creates a blocking REST client backed by its own loop thread."""
        return BinanceRestClient(self.settings, clock=self._clock, timeout_s=timeout_s)

    def new_websocket_client(self) -> BinanceWebSocketClient:
        """Creates a WebSocket client for market and user data streams."""
        return BinanceWebSocketClient(self.settings)
