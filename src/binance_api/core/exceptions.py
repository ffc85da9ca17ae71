# src/binance_api/core/exceptions.py

from typing import Optional


class BinanceApiException(Exception):
    """Base class for every error raised by this library."""

    pass


class MissingCredentialsError(BinanceApiException):
    """An authenticated endpoint was called without the required key or secret."""

    pass


class InvalidParameterError(BinanceApiException):
    """A caller-supplied value violates an endpoint's documented constraint."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid parameter '{name}': {reason}")


class TransportError(BinanceApiException):
    """Network or timeout failure reported by the HTTP/WebSocket transport."""

    pass


class ApiError(BinanceApiException):
    """
    The exchange answered with a non-2xx status.
    `code` and `msg` are taken verbatim from the error body, e.g.
    {"code": -1121, "msg": "Invalid symbol."}.
    """

    def __init__(self, status: int, code: Optional[int], msg: str):
        self.status = status
        self.code = code
        self.msg = msg
        super().__init__(f"HTTP {status}, code={code}: {msg}")


class ResponseDecodeError(BinanceApiException):
    """A successful response body could not be mapped onto the expected model."""

    pass
