"""
Binance WebSocket API session.
Owns one duplex connection, correlates responses to requests and routes push events.
"""

import asyncio
import json
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict, Optional

import websockets
from pydantic import ValidationError
from websockets.exceptions import ConnectionClosed, WebSocketException

from ..config import SPOT_WS_TIMEOUT
from ..events import AnyUserDataEvent, decode_user_data_event
from ..exceptions import APIError, WsRequestTimeoutError
from ..types import WsApiResponse
from .rate_limits import RateLimits

EventHandler = Callable[[AnyUserDataEvent], Awaitable[None]]
ErrorHandler = Callable[[Exception], Awaitable[None]]


class PendingResponses:
    """
    Correlation table of in-flight WebSocket requests.

    Maps request ids to single-use futures. None of the operations await,
    so each one is atomic on the event loop.
    """

    def __init__(self):
        self._pending: Dict[str, asyncio.Future] = {}

    def register(self, request_id: str) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        return future

    def pop(self, request_id: Optional[str]) -> Optional[asyncio.Future]:
        """Find and remove the slot for ``request_id``."""
        if request_id is None:
            return None
        return self._pending.pop(request_id, None)

    def discard(self, request_id: str) -> None:
        self._pending.pop(request_id, None)

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, request_id: str) -> bool:
        return request_id in self._pending


class BinanceWebSocketSession:
    """
    One connection to the Binance WebSocket API.

    Handles:
    - Request/response correlation by id
    - Push event decoding and routing
    - Serialized writes on the shared connection
    - Telling caller-initiated closes apart from unexpected disconnects
    """

    def __init__(
        self,
        connection: Any,
        url: str = "",
        timeout: float = SPOT_WS_TIMEOUT,
        on_event: Optional[EventHandler] = None,
        on_error: Optional[ErrorHandler] = None,
        pending: Optional[PendingResponses] = None
    ):
        """
        Wrap an open connection and start the reader task.

        Args:
            connection: Open websockets client connection
            url: Endpoint the connection was dialed to
            timeout: Seconds to wait for a correlated response
            on_event: Coroutine called with every decoded push event
            on_error: Coroutine called with read/decode/handler errors
            pending: Correlation table, one per session by default
        """
        self.url = url
        self.timeout = timeout
        self.on_event = on_event
        self.on_error = on_error
        self.logger = logging.getLogger(__name__)

        self._connection = connection
        self._pending = pending if pending is not None else PendingResponses()
        self._write_lock = asyncio.Lock()
        self._closing = False

        # Set when the reader exits, for any reason
        self.done = asyncio.Event()
        # Set when the reader exits without close() having been called
        self.disconnected = asyncio.Event()

        # Statistics
        self.messages_received = 0
        self.events_received = 0
        self.dropped_responses = 0

        self._reader = asyncio.create_task(self._read_loop())

    @classmethod
    async def connect(
        cls,
        url: str,
        timeout: float = SPOT_WS_TIMEOUT,
        on_event: Optional[EventHandler] = None,
        on_error: Optional[ErrorHandler] = None,
        handshake_timeout: float = 45.0,
        ping_interval: Optional[float] = 20.0,
        ping_timeout: Optional[float] = 10.0,
        max_size: Optional[int] = 655350
    ) -> Optional["BinanceWebSocketSession"]:
        """
        Dial ``url`` and return a running session.

        Returns:
            The session, or None if the connection could not be established.
        """
        logger = logging.getLogger(__name__)
        try:
            logger.info(f"Connecting to WebSocket API: {url}")
            connection = await websockets.connect(
                url,
                open_timeout=handshake_timeout,
                ping_interval=ping_interval,
                ping_timeout=ping_timeout,
                close_timeout=10,
                max_size=max_size
            )
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            logger.error(f"Failed to connect to WebSocket API {url}: {e}")
            return None

        logger.info("WebSocket API connected")
        return cls(connection, url=url, timeout=timeout, on_event=on_event, on_error=on_error)

    @property
    def is_closing(self) -> bool:
        return self._closing

    @property
    def is_open(self) -> bool:
        return not self._closing and not self.done.is_set()

    @property
    def pending(self) -> PendingResponses:
        return self._pending

    async def call(
        self,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None
    ) -> WsApiResponse:
        """
        Send one request and wait for its correlated response.

        Args:
            method: WebSocket API method name
            params: Request parameters, omitted from the frame when empty
            timeout: Overrides the session timeout for this call

        Returns:
            The response envelope.

        Raises:
            APIError: The response status is >= 400.
            WsRequestTimeoutError: No response arrived in time.
        """
        timeout = self.timeout if timeout is None else timeout
        request_id = str(uuid.uuid4())
        future = self._pending.register(request_id)

        frame: Dict[str, Any] = {"id": request_id, "method": method}
        if params:
            frame["params"] = params
        self.logger.debug(f"request: {frame}")

        try:
            async with self._write_lock:
                # Decimal amounts go out as strings
                await self._connection.send(json.dumps(frame, default=str))
            response: WsApiResponse = await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            self.logger.warning(f"No response for {method} (id={request_id}) within {timeout}s")
            raise WsRequestTimeoutError(method, request_id, timeout) from None
        finally:
            # no-op when the reader already matched it
            self._pending.discard(request_id)

        self.logger.debug(f"response status code: {response.status}")
        self.logger.debug(f"response raw: {response.result}")

        if response.status >= 400:
            error = response.error
            raise APIError(
                code=error.code if error else 0,
                message=error.msg if error else "",
                status=response.status,
                rate_limits=RateLimits.from_ws_rate_limits(response.rate_limits),
            )
        return response

    async def close(self) -> None:
        """Close the connection on purpose. ``disconnected`` is not raised."""
        if self._closing:
            return
        self._closing = True
        try:
            await self._connection.close()
        except WebSocketException as e:
            self.logger.debug(f"Error while closing WebSocket: {e}")
        await self.done.wait()
        self.logger.info("WebSocket API session closed")

    async def _read_loop(self) -> None:
        """Read frames until the connection ends."""
        try:
            async for message in self._connection:
                try:
                    await self._handle_message(message)
                except Exception as e:
                    # one bad frame must not end the session
                    self.logger.error(f"Error handling message: {e}")
                    await self._report_error(e)

        except ConnectionClosed as e:
            if not self._closing:
                self.logger.warning(f"WebSocket connection closed: {e}")
                await self._report_error(e)

        except WebSocketException as e:
            if not self._closing:
                self.logger.error(f"WebSocket error: {e}")
                await self._report_error(e)

        except OSError as e:
            if not self._closing:
                self.logger.error(f"WebSocket transport error: {e}")
                await self._report_error(e)

        finally:
            self.done.set()
            if not self._closing:
                self.disconnected.set()

    async def _handle_message(self, message: Any) -> None:
        """Route one inbound frame to a pending request or the event handler."""
        self.messages_received += 1
        try:
            data = json.loads(message)
        except ValueError as e:
            self.logger.error(f"Failed to parse message: {e}")
            await self._report_error(e)
            return

        if not isinstance(data, dict):
            self.logger.debug(f"Ignoring non-object frame: {data!r}")
            return

        if "subscriptionId" in data:
            await self._handle_event(data)
            return

        try:
            response = WsApiResponse.model_validate(data)
        except ValidationError as e:
            self.logger.error(f"Malformed response frame: {e}")
            await self._report_error(e)
            return

        future = self._pending.pop(response.id)
        if future is None or future.done():
            self.dropped_responses += 1
            self.logger.debug(f"Dropping response without waiter: id={response.id}")
            return
        future.set_result(response)

    async def _handle_event(self, data: Dict[str, Any]) -> None:
        self.events_received += 1
        if not self.on_event:
            self.logger.debug(f"Dropping push event, no handler: {data}")
            return

        try:
            event = decode_user_data_event(data.get("event") or {})
        except ValidationError as e:
            self.logger.error(f"Failed to decode push event: {e}")
            await self._report_error(e)
            return

        try:
            await self.on_event(event)
        except Exception as e:
            self.logger.error(f"Error in event handler: {e}")
            await self._report_error(e)

    async def _report_error(self, error: Exception) -> None:
        if not self.on_error:
            return
        try:
            await self.on_error(error)
        except Exception as e:
            self.logger.error(f"Error in error handler: {e}")

    def get_stats(self) -> Dict[str, Any]:
        """Get session statistics."""
        return {
            'url': self.url,
            'is_open': self.is_open,
            'pending_requests': len(self._pending),
            'messages_received': self.messages_received,
            'events_received': self.events_received,
            'dropped_responses': self.dropped_responses,
        }
