"""
Rate limit snapshots reported by Binance.

Each response carries the current usage counters, either as HTTP headers or
as a ``rateLimits`` array in a WebSocket API response. A snapshot is built
fresh for every call; nothing is accumulated on the client side.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

USED_WEIGHT_1M_HEADER = "X-Mbx-Used-Weight-1m"
RAW_REQUESTS_5M_HEADER = "X-Mbx-Raw-Requests-5m"
ORDER_COUNT_10S_HEADER = "X-Mbx-Order-Count-10s"
ORDER_COUNT_1M_HEADER = "X-Mbx-Order-Count-1m"


@dataclass
class RateLimits:
    """Usage counters for the current windows."""
    request_weight_1m: int = 0
    raw_request_5m: int = 0
    order_10s: int = 0
    order_1m: int = 0

    @classmethod
    def from_headers(cls, headers: Optional[Mapping[str, str]]) -> "RateLimits":
        """Build a snapshot from HTTP response headers. Missing values are 0."""
        if headers is None:
            return cls()
        return cls(
            request_weight_1m=_to_int(_header(headers, USED_WEIGHT_1M_HEADER)),
            raw_request_5m=_to_int(_header(headers, RAW_REQUESTS_5M_HEADER)),
            order_10s=_to_int(_header(headers, ORDER_COUNT_10S_HEADER)),
            order_1m=_to_int(_header(headers, ORDER_COUNT_1M_HEADER)),
        )

    @classmethod
    def from_ws_rate_limits(cls, rate_limits: Optional[Iterable[Any]]) -> "RateLimits":
        """
        Build a snapshot from a WebSocket API ``rateLimits`` array.

        Entries are matched on (rateLimitType, interval, intervalNum).
        """
        entries = list(rate_limits or [])

        def locate(limit_type: str, interval: str, interval_num: int) -> int:
            for entry in entries:
                if (
                    entry.rate_limit_type == limit_type
                    and entry.interval == interval
                    and entry.interval_num == interval_num
                ):
                    return entry.count
            return 0

        return cls(
            request_weight_1m=locate("REQUEST_WEIGHT", "MINUTE", 1),
            raw_request_5m=locate("RAW_REQUESTS", "MINUTE", 5),
            order_10s=locate("ORDERS", "SECOND", 10),
            order_1m=locate("ORDERS", "MINUTE", 1),
        )


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    value = headers.get(name)
    if value is None:
        # plain dicts are case sensitive, aiohttp's CIMultiDict is not
        lowered = name.lower()
        for key, candidate in headers.items():
            if key.lower() == lowered:
                return candidate
    return value


def _to_int(value: Optional[str]) -> int:
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
