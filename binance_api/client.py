"""
Binance API client.

Every service sends its requests through ``Client.call_api``, which picks
the WebSocket API when a session is connected and the request has a
WebSocket method, and the REST API otherwise.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, Optional, Tuple

import aiohttp

from .config import ClientConfig
from .connectors.binance_rest import BinanceRESTClient
from .connectors.binance_ws import BinanceWebSocketSession, ErrorHandler, EventHandler
from .connectors.rate_limits import RateLimits
from .connectors.reconnect import ReconnectSupervisor
from .exceptions import RequestValidationError, WsNotConnectedError
from .request import Request, RequestOption, SecType
from .services import (
    CancelOrderService,
    CloseUserStreamService,
    CreateOrderService,
    DepthService,
    GetAccountService,
    GetOrderService,
    KeepaliveUserStreamService,
    PingService,
    ServerTimeService,
    SetServerTimeService,
    StartUserStreamService,
    SubscribeUserDataService,
)
from .signing import (
    API_KEY_KEY,
    RECV_WINDOW_KEY,
    SIGNATURE_KEY,
    TIMESTAMP_KEY,
    current_timestamp,
    encode_params,
    sign,
)
from .types import WsState


class Client:
    """
    Binance API client with REST and WebSocket API transports.

    Usage::

        async with Client(api_key, api_secret) as client:
            order = await client.new_create_order_service().symbol("BTCUSDT")...do()
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        config: Optional[ClientConfig] = None,
        on_event: Optional[EventHandler] = None,
        on_error: Optional[ErrorHandler] = None,
        http_session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize the client. No connection is made until ``initialize``.

        Args:
            api_key: Binance API key, overrides the config value
            api_secret: Binance API secret, overrides the config value
            config: Client configuration
            on_event: Coroutine receiving user data push events
            on_error: Coroutine receiving WebSocket read errors
            http_session: Externally managed aiohttp session
        """
        self.config = config or ClientConfig()
        self.api_key = api_key if api_key is not None else (self.config.api_key or "")
        self.api_secret = api_secret if api_secret is not None else (self.config.api_secret or "")
        self.base_url = self.config.http_base_url
        self.ws_url = self.config.ws_api_url
        self.on_event = on_event
        self.on_error = on_error
        self.logger = logging.getLogger(__name__)

        # Local clock minus server clock, in milliseconds
        self.time_offset = 0

        self.rest = BinanceRESTClient(
            self.api_key,
            self.api_secret,
            base_url=self.base_url,
            timeout=self.config.http_timeout,
            session=http_session
        )

        # WebSocket API state
        self.state = WsState.INIT
        self._ws: Optional[BinanceWebSocketSession] = None
        self._supervisor: Optional[ReconnectSupervisor] = None
        self._session_lock = asyncio.Lock()

    async def __aenter__(self) -> "Client":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def ws_session(self) -> Optional[BinanceWebSocketSession]:
        return self._ws

    @property
    def ws_connected(self) -> bool:
        session = self._ws
        return self.state == WsState.CONNECTED and session is not None and session.is_open

    async def initialize(self) -> None:
        """Open the HTTP session and, if enabled, the WebSocket API session."""
        await self.rest.initialize()

        if not self.config.ws_enabled:
            return

        session = await self.dial()
        if session is None:
            self.logger.warning("WebSocket API unavailable, using REST only")
            return
        await self.install_session(session)

    async def close(self) -> None:
        """
        Close the client.

        Moves the connection to ADMIN_CLOSING so no reconnection happens,
        stops the supervisor and closes both transports.
        """
        async with self._session_lock:
            if self.state in (WsState.CONNECTED, WsState.CONNECTING):
                self.state = WsState.ADMIN_CLOSING
            supervisor, self._supervisor = self._supervisor, None
            session = self._ws

        if supervisor:
            await supervisor.cancel()
        if session:
            await session.close()
        await self.rest.close()

    async def dial(self) -> Optional[BinanceWebSocketSession]:
        """Open a new WebSocket API session, None on failure."""
        return await BinanceWebSocketSession.connect(
            self.ws_url,
            timeout=self.config.ws_request_timeout,
            on_event=self.on_event,
            on_error=self.on_error,
            handshake_timeout=self.config.ws_handshake_timeout,
            ping_interval=self.config.ws_ping_interval,
            ping_timeout=self.config.ws_ping_timeout,
            max_size=self.config.ws_max_size
        )

    async def install_session(self, session: BinanceWebSocketSession) -> bool:
        """
        Make ``session`` the live session and supervise it.

        Returns:
            False if the client was closed meanwhile; the session is closed.
        """
        async with self._session_lock:
            if self.state == WsState.ADMIN_CLOSING:
                await session.close()
                return False

            self._ws = session
            self.state = WsState.CONNECTED
            self._supervisor = ReconnectSupervisor(
                self, session, interval=self.config.reconnect_interval
            ).start()
        return True

    async def call_api(self, request: Request, *options: RequestOption) -> Tuple[Any, RateLimits]:
        """
        Send a request over the preferred transport.

        The WebSocket API is used when a session is connected and the request
        names a WebSocket method; otherwise the REST API is used.

        Returns:
            Decoded payload and rate limit snapshot.
        """
        self._apply_options(request, options)

        if self.ws_connected and request.ws_method:
            return await self._call_ws(request)

        if not request.endpoint:
            raise WsNotConnectedError(f"{request.ws_method} requires a WebSocket API connection")
        return await self._call_http(request)

    async def call_ws_api(self, request: Request, *options: RequestOption) -> Tuple[Any, RateLimits]:
        """Send a request over the WebSocket API only."""
        self._apply_options(request, options)

        if not request.ws_method:
            raise RequestValidationError("request has no WebSocket method")
        if not self.ws_connected:
            raise WsNotConnectedError(f"{request.ws_method} requires a WebSocket API connection")
        return await self._call_ws(request)

    def _apply_options(self, request: Request, options: Iterable[RequestOption]) -> None:
        for option in options:
            option(request)
        request.validate()

        if request.recv_window == 0 and request.sec_type == SecType.SIGNED:
            request.recv_window = self.config.recv_window

    def _timestamp(self) -> int:
        return current_timestamp() - self.time_offset

    async def _call_http(self, request: Request) -> Tuple[Any, RateLimits]:
        if request.recv_window > 0:
            request.set_param(RECV_WINDOW_KEY, request.recv_window)
        if request.sec_type == SecType.SIGNED:
            request.set_param(TIMESTAMP_KEY, self._timestamp())

        self.logger.debug(f"http {request.method} {request.endpoint}")
        return await self.rest.call(request)

    def _ws_params(self, request: Request) -> Dict[str, Any]:
        """Collect query and form params and sign them for the WebSocket API."""
        if request.recv_window > 0:
            request.set_param(RECV_WINDOW_KEY, request.recv_window)
        if request.sec_type in (SecType.API_KEY, SecType.SIGNED):
            request.set_param(API_KEY_KEY, self.api_key)
        if request.sec_type == SecType.SIGNED:
            request.set_param(TIMESTAMP_KEY, self._timestamp())

        params = request.ws_params()
        if request.sec_type == SecType.SIGNED:
            signature = sign(self.api_secret, encode_params(params))
            request.set_param(SIGNATURE_KEY, signature)
            params[SIGNATURE_KEY] = signature
        return params

    async def _call_ws(self, request: Request) -> Tuple[Any, RateLimits]:
        session = self._ws
        if session is None:
            raise WsNotConnectedError(f"{request.ws_method} requires a WebSocket API connection")

        params = self._ws_params(request)
        self.logger.debug(f"ws-method: {request.ws_method}, params: {params}")

        response = await session.call(request.ws_method, params)
        return response.result, RateLimits.from_ws_rate_limits(response.rate_limits)

    # Services

    def new_ping_service(self) -> PingService:
        return PingService(self)

    def new_server_time_service(self) -> ServerTimeService:
        return ServerTimeService(self)

    def new_set_server_time_service(self) -> SetServerTimeService:
        return SetServerTimeService(self)

    def new_depth_service(self) -> DepthService:
        return DepthService(self)

    def new_get_account_service(self) -> GetAccountService:
        return GetAccountService(self)

    def new_create_order_service(self) -> CreateOrderService:
        return CreateOrderService(self)

    def new_get_order_service(self) -> GetOrderService:
        return GetOrderService(self)

    def new_cancel_order_service(self) -> CancelOrderService:
        return CancelOrderService(self)

    def new_start_user_stream_service(self) -> StartUserStreamService:
        return StartUserStreamService(self)

    def new_keepalive_user_stream_service(self) -> KeepaliveUserStreamService:
        return KeepaliveUserStreamService(self)

    def new_close_user_stream_service(self) -> CloseUserStreamService:
        return CloseUserStreamService(self)

    def new_subscribe_user_data_service(self) -> SubscribeUserDataService:
        return SubscribeUserDataService(self)

    def get_stats(self) -> Dict[str, Any]:
        """Get client statistics."""
        session = self._ws
        return {
            'state': self.state.name,
            'base_url': self.base_url,
            'ws_url': self.ws_url,
            'time_offset': self.time_offset,
            'reconnect_attempts': self._supervisor.attempts if self._supervisor else 0,
            'ws_session': session.get_stats() if session else None,
        }
