"""
Builder-style services, one per API operation.
"""

from .account import (
    CloseUserStreamService,
    GetAccountService,
    KeepaliveUserStreamService,
    StartUserStreamService,
    SubscribeUserDataService,
)
from .market import DepthService, PingService, ServerTimeService, SetServerTimeService
from .order import CancelOrderService, CreateOrderService, GetOrderService

__all__ = [
    "PingService",
    "ServerTimeService",
    "SetServerTimeService",
    "DepthService",
    "GetAccountService",
    "StartUserStreamService",
    "KeepaliveUserStreamService",
    "CloseUserStreamService",
    "SubscribeUserDataService",
    "CreateOrderService",
    "GetOrderService",
    "CancelOrderService",
]
