"""
Automatic reconnection of the WebSocket API session.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Optional

from ..types import WsState

if TYPE_CHECKING:
    from ..client import Client
    from .binance_ws import BinanceWebSocketSession


class ReconnectSupervisor:
    """
    Watches one session generation and replaces it when it dies.

    The supervisor waits for the session's ``disconnected`` signal. A session
    closed on purpose never raises it, and the client's ADMIN_CLOSING state is
    checked again before every step, so an intentional close is never undone.
    Dial attempts run at a fixed interval until one succeeds; the client then
    installs the new session and arms a fresh supervisor for it.
    """

    def __init__(self, client: "Client", session: "BinanceWebSocketSession", interval: float = 10.0):
        self.client = client
        self.session = session
        self.interval = interval
        self.logger = logging.getLogger(__name__)

        self.attempts = 0
        self._task: Optional[asyncio.Task] = None

    def start(self) -> "ReconnectSupervisor":
        self._task = asyncio.create_task(self._run())
        return self

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def cancel(self) -> None:
        """Stop supervising and wait for the task to finish."""
        task = self._task
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        await asyncio.wait([task])

    async def wait(self) -> None:
        """Wait for the supervisor task to finish on its own."""
        if self._task is not None:
            await asyncio.wait([self._task])

    async def _run(self) -> None:
        await self.session.disconnected.wait()

        # triggered by an intentional close, just ignore
        if self.client.state == WsState.ADMIN_CLOSING:
            return

        self.client.state = WsState.CONNECTING
        self.logger.warning("WebSocket API disconnected, reconnecting later...")

        while True:
            await asyncio.sleep(self.interval)
            if self.client.state == WsState.ADMIN_CLOSING:
                return

            self.attempts += 1
            session = await self.client.dial()
            if session is not None:
                try:
                    installed = await self.client.install_session(session)
                except asyncio.CancelledError:
                    await session.close()
                    raise
                if installed:
                    self.logger.info(f"Reconnected to {session.url} after {self.attempts} attempt(s)")
                return

            self.logger.warning(
                f"Failed to connect to {self.client.ws_url}, retrying in {self.interval}s"
            )
