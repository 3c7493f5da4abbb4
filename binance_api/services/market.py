"""
Connectivity and market data services.
"""

from typing import TYPE_CHECKING, Optional

from ..exceptions import RequestValidationError
from ..request import Request, RequestOption
from ..signing import current_timestamp
from ..types import DepthResponse, ServerTime

if TYPE_CHECKING:
    from ..client import Client


class PingService:
    """Test connectivity."""

    def __init__(self, client: "Client"):
        self.c = client

    async def do(self, *options: RequestOption) -> None:
        r = Request(method="GET", endpoint="/api/v3/ping", ws_method="ping")
        await self.c.call_api(r, *options)


class ServerTimeService:
    """Get the server time in milliseconds."""

    def __init__(self, client: "Client"):
        self.c = client

    async def do(self, *options: RequestOption) -> int:
        r = Request(method="GET", endpoint="/api/v3/time", ws_method="time")
        data, _ = await self.c.call_api(r, *options)
        return ServerTime.model_validate(data).server_time


class SetServerTimeService:
    """
    Measure the clock offset against the server and store it on the client.

    Signed requests are stamped with local time minus the offset.
    """

    def __init__(self, client: "Client"):
        self.c = client

    async def do(self, *options: RequestOption) -> int:
        server_time = await ServerTimeService(self.c).do(*options)
        time_offset = current_timestamp() - server_time
        self.c.time_offset = time_offset
        return time_offset


class DepthService:
    """Get the order book of a symbol."""

    def __init__(self, client: "Client"):
        self.c = client
        self._symbol: Optional[str] = None
        self._limit: Optional[int] = None

    def symbol(self, symbol: str) -> "DepthService":
        self._symbol = symbol
        return self

    def limit(self, limit: int) -> "DepthService":
        self._limit = limit
        return self

    async def do(self, *options: RequestOption) -> DepthResponse:
        if not self._symbol:
            raise RequestValidationError("symbol is required")
        r = Request(method="GET", endpoint="/api/v3/depth", ws_method="depth")
        r.set_param("symbol", self._symbol)
        if self._limit is not None:
            r.set_param("limit", self._limit)
        data, _ = await self.c.call_api(r, *options)
        return DepthResponse.model_validate(data)
