# src/binance_api/config/models.py

# --- Built Ins  ---
import os
from typing import Mapping, Optional

# --- Installed  ---
from pydantic import BaseModel, ConfigDict, Field, SecretStr, computed_field

# --- Local Application Imports ---
from ..core.constants import MAX_RECV_WINDOW_MS, REST_URL, WSS_URL
from ..core.enums import DomainType


class ClientSettings(BaseModel):
    """
    The single configuration object for every client in this library.
    Credentials are optional so the same model covers public-only usage.
    """

    model_config = ConfigDict(frozen=True)

    api_key: Optional[str] = None
    api_secret: Optional[SecretStr] = None
    domain: DomainType = DomainType.COM

    recv_window: Optional[int] = Field(
        default=None,
        gt=0,
        le=MAX_RECV_WINDOW_MS,
        description="Default recvWindow (ms) appended to signed requests. Omitted when None.",
    )
    request_timeout_s: float = Field(default=10.0, gt=0)
    ws_ping_interval_s: float = Field(default=180.0, gt=0)

    # Explicit URLs override the domain-derived ones (testnet, proxies)
    rest_url_override: Optional[str] = None
    ws_url_override: Optional[str] = None

    @computed_field
    @property
    def rest_base_url(self) -> str:
        if self.rest_url_override:
            return self.rest_url_override.rstrip("/")
        return REST_URL.format(self.domain.value)

    @computed_field
    @property
    def ws_base_url(self) -> str:
        if self.ws_url_override:
            return self.ws_url_override.rstrip("/")
        return WSS_URL.format(self.domain.value)

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key and self.api_secret)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        prefix: str = "BINANCE_",
    ) -> "ClientSettings":
        """
        Builds settings from environment variables:
        BINANCE_API_KEY, BINANCE_API_SECRET, BINANCE_DOMAIN, BINANCE_RECV_WINDOW.
        """
        env = os.environ if environ is None else environ
        values = {
            "api_key": env.get(f"{prefix}API_KEY"),
            "api_secret": env.get(f"{prefix}API_SECRET"),
            "domain": env.get(f"{prefix}DOMAIN", DomainType.COM.value),
            "recv_window": env.get(f"{prefix}RECV_WINDOW"),
        }
        return cls(**{key: value for key, value in values.items() if value})
