"""
Binance API Client

Async client for the Binance REST and WebSocket APIs with request signing,
response correlation and automatic WebSocket reconnection.
"""

__version__ = "1.0.0"
__author__ = "binance-api-client contributors"

from .client import Client
from .config import ApiFlavor, ClientConfig, load_config, setup_logging
from .connectors import RateLimits
from .exceptions import (
    APIError,
    BinanceError,
    RequestValidationError,
    WsNotConnectedError,
    WsRequestTimeoutError,
)
from .request import (
    Request,
    SecType,
    with_extra_form,
    with_header,
    with_headers,
    with_recv_window,
)
from .types import WsState

__all__ = [
    "Client",
    "ClientConfig",
    "ApiFlavor",
    "load_config",
    "setup_logging",
    "RateLimits",
    "APIError",
    "BinanceError",
    "RequestValidationError",
    "WsNotConnectedError",
    "WsRequestTimeoutError",
    "Request",
    "SecType",
    "with_recv_window",
    "with_header",
    "with_headers",
    "with_extra_form",
    "WsState",
]
