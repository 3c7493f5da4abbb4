"""
Exceptions raised by the Binance API client.
"""

from typing import Any, Optional


class BinanceError(Exception):
    """Base exception for all client errors."""


class APIError(BinanceError):
    """
    Error reported by the remote service.

    Raised for HTTP responses with status >= 400 and for WebSocket API
    responses with status >= 400. Both transports produce the same type.
    """

    def __init__(
        self,
        code: int = 0,
        message: str = "",
        status: Optional[int] = None,
        rate_limits: Optional[Any] = None,
    ):
        self.code = code
        self.message = message
        self.status = status
        self.rate_limits = rate_limits
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"<APIError> code={self.code}, msg={self.message}"

    def __repr__(self) -> str:
        return f"APIError(code={self.code!r}, message={self.message!r}, status={self.status!r})"


class RequestValidationError(BinanceError):
    """Raised when a request descriptor is incomplete or inconsistent."""


class WsNotConnectedError(BinanceError):
    """Raised when a WebSocket-only call is made without a live session."""


class WsRequestTimeoutError(BinanceError):
    """Raised when no correlated WebSocket response arrives in time."""

    def __init__(self, method: str, request_id: str, timeout: float):
        self.method = method
        self.request_id = request_id
        self.timeout = timeout
        super().__init__(
            f"WebSocket request {method} (id={request_id}) timed out after {timeout}s"
        )
