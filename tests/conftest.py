"""
Shared fixtures: in-memory stand-ins for the aiohttp session and the
WebSocket connection.
"""

import asyncio
import json
from typing import Any, Callable, Dict, List, Optional

import pytest
from websockets.exceptions import ConnectionClosedError

from binance_api.config import ClientConfig
from binance_api.connectors.binance_ws import BinanceWebSocketSession

_CLOSE = object()
_DROP = object()


class FakeWebSocket:
    """Duplex connection fed by the test."""

    def __init__(self, responder: Optional[Callable[[Dict[str, Any]], List[Any]]] = None):
        self.sent: List[Dict[str, Any]] = []
        self.responder = responder
        self.closed = False
        self.dropped = False
        self._incoming: asyncio.Queue = asyncio.Queue()

    async def send(self, message: str) -> None:
        if self.closed or self.dropped:
            raise ConnectionClosedError(None, None)
        frame = json.loads(message)
        self.sent.append(frame)
        if self.responder:
            for reply in self.responder(frame):
                self.push(reply)

    def push(self, payload: Any) -> None:
        """Queue an inbound frame."""
        if not isinstance(payload, str):
            payload = json.dumps(payload)
        self._incoming.put_nowait(payload)

    def drop(self) -> None:
        """Simulate the server going away."""
        self.dropped = True
        self._incoming.put_nowait(_DROP)

    async def close(self) -> None:
        self.closed = True
        self._incoming.put_nowait(_CLOSE)

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        item = await self._incoming.get()
        if item is _CLOSE:
            raise StopAsyncIteration
        if item is _DROP:
            raise ConnectionClosedError(None, None)
        return item


def echo_responder(result: Any = None, status: int = 200, rate_limits: Optional[list] = None):
    """Responder answering every request with ``result``."""
    def respond(frame: Dict[str, Any]) -> List[Any]:
        reply = {"id": frame["id"], "status": status, "result": result}
        if rate_limits is not None:
            reply["rateLimits"] = rate_limits
        return [reply]
    return respond


class FakeResponse:
    """aiohttp response stand-in usable as an async context manager."""

    def __init__(self, status: int = 200, body: Any = b"{}", headers: Optional[Dict[str, str]] = None):
        self.status = status
        if isinstance(body, (dict, list)):
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode('utf-8')
        self._body = body
        self.headers = headers or {}

    async def read(self) -> bytes:
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeHTTPSession:
    """Records requests and replays canned responses."""

    def __init__(self, responses: Optional[List[FakeResponse]] = None):
        self.responses = list(responses or [])
        self.requests: List[Dict[str, Any]] = []
        self.closed = False

    def request(self, method, url, headers=None, data=None):
        self.requests.append({
            'method': method,
            'url': str(url),
            'headers': dict(headers or {}),
            'data': data,
        })
        if self.responses:
            return self.responses.pop(0)
        return FakeResponse()

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_ws_factory():
    """Build FakeWebSocket instances (must be called inside the event loop)."""
    return FakeWebSocket


@pytest.fixture
def responder():
    return echo_responder


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def http_session():
    return FakeHTTPSession()


@pytest.fixture
def make_session():
    """Wrap a fake connection in a running BinanceWebSocketSession."""
    def factory(connection, **kwargs) -> BinanceWebSocketSession:
        kwargs.setdefault('timeout', 1.0)
        return BinanceWebSocketSession(connection, url="wss://test/ws-api/v3", **kwargs)
    return factory


@pytest.fixture
def config():
    return ClientConfig(
        api_key="test_key",
        api_secret="test_secret",
        testnet=True,
        ws_timeout=1.0,
        reconnect_interval=0.01,
    )
