"""
Transport modules for REST and WebSocket API communication.
"""

from .binance_rest import BinanceRESTClient
from .binance_ws import BinanceWebSocketSession, PendingResponses
from .rate_limits import RateLimits
from .reconnect import ReconnectSupervisor

__all__ = [
    "BinanceRESTClient",
    "BinanceWebSocketSession",
    "PendingResponses",
    "RateLimits",
    "ReconnectSupervisor",
]
