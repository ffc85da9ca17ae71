# src/binance_api/auth/signing.py
"""
Authenticated request construction for the Binance REST API.

A signed request carries every business parameter in call order, then
`timestamp` and (optionally) `recvWindow`, then `signature`. The signature is
HMAC-SHA256 over the exact `key=value&key=value` string that is transmitted,
so the builder never reorders parameters and never re-encodes values.
"""

# --- Built Ins ---
import hashlib
import hmac
import time
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Mapping, NamedTuple, Optional

# --- Installed ---
from pydantic import SecretStr

# --- Local Application Imports ---
from ..core.constants import API_KEY_HEADER
from ..core.enums import SecurityType
from ..core.exceptions import InvalidParameterError, MissingCredentialsError

Clock = Callable[[], int]


def current_time_ms() -> int:
    """Wall clock in epoch milliseconds."""
    return int(time.time() * 1000)


def to_wire_value(value: Any) -> str:
    """Renders a single parameter value the way the exchange expects it."""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def build_query_string(params: Mapping[str, str]) -> str:
    """Serializes params in insertion order. Values are taken verbatim."""
    return "&".join(f"{key}={value}" for key, value in params.items())


def compute_signature(secret: str, payload: str) -> str:
    """HMAC-SHA256 of `payload` keyed with `secret`, as lowercase hex."""
    return hmac.new(
        secret.encode("utf-8"),
        payload.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


class PreparedRequest(NamedTuple):
    """Transport-ready parameters and headers for one call."""

    params: Dict[str, str]
    headers: Dict[str, str]

    @property
    def query_string(self) -> str:
        return build_query_string(self.params)


class SignedRequestBuilder:
    """
    Turns a logical call (parameters + security type) into a PreparedRequest.
    Holds the credentials and a clock, nothing else; safe to share between
    concurrent callers.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_secret: Optional[SecretStr] = None,
        clock: Clock = current_time_ms,
        default_recv_window: Optional[int] = None,
    ):
        self._api_key = api_key
        self._api_secret = api_secret
        self._clock = clock
        self._default_recv_window = default_recv_window

    def __repr__(self) -> str:
        return f"{type(self).__name__}(api_key={'set' if self._api_key else None}, api_secret={'**********' if self._api_secret else None})"

    @property
    def has_secret(self) -> bool:
        return self._api_secret is not None and bool(self._api_secret.get_secret_value())

    def normalize(
        self,
        params: Optional[Mapping[str, Any]],
        required: Iterable[str] = (),
    ) -> Dict[str, str]:
        """
        Drops optional parameters set to None and renders the rest as strings.
        Raises InvalidParameterError when a required parameter is missing or None.
        """
        params = params or {}
        for name in required:
            if params.get(name) is None:
                raise InvalidParameterError(name, "mandatory parameter is missing")

        return {key: to_wire_value(value) for key, value in params.items() if value is not None}

    def sign(
        self,
        params: Mapping[str, str],
        timestamp: Optional[int] = None,
        recv_window: Optional[int] = None,
    ) -> Dict[str, str]:
        """
        Appends timestamp, recvWindow and signature to a copy of `params`.
        Keys the caller already placed keep their position and value, except
        a stale `signature`, which is discarded so the fresh one comes last.
        """
        if not self.has_secret:
            raise MissingCredentialsError("An API secret is required to sign this request.")

        signed = {key: value for key, value in params.items() if key != "signature"}
        if "timestamp" not in signed:
            signed["timestamp"] = to_wire_value(self._clock() if timestamp is None else timestamp)

        window = recv_window if recv_window is not None else self._default_recv_window
        if window is not None and "recvWindow" not in signed:
            signed["recvWindow"] = to_wire_value(window)

        payload = build_query_string(signed)
        signed["signature"] = compute_signature(self._api_secret.get_secret_value(), payload)
        return signed

    def prepare(
        self,
        params: Optional[Mapping[str, Any]],
        security: SecurityType,
        required: Iterable[str] = (),
        timestamp: Optional[int] = None,
        recv_window: Optional[int] = None,
    ) -> PreparedRequest:
        """
        Validates, normalizes and (for SIGNED endpoints) signs the parameters.
        The API key header is attached whenever a key is configured.
        """
        normalized = self.normalize(params, required)

        if security != SecurityType.NONE and not self._api_key:
            raise MissingCredentialsError(f"An API key is required for {security.value} endpoints.")

        if security == SecurityType.SIGNED:
            normalized = self.sign(normalized, timestamp=timestamp, recv_window=recv_window)
        else:
            normalized.pop("signature", None)

        headers = {API_KEY_HEADER: self._api_key} if self._api_key else {}
        return PreparedRequest(params=normalized, headers=headers)
