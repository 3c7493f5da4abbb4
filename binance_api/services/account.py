"""
Account and user data stream services.
"""

from typing import TYPE_CHECKING, Optional

from ..request import Request, RequestOption, SecType
from ..types import Account, UserDataSubscription

if TYPE_CHECKING:
    from ..client import Client


class GetAccountService:
    """Get account information."""

    def __init__(self, client: "Client"):
        self.c = client
        self._omit_zero_balances: Optional[bool] = None

    def omit_zero_balances(self, v: bool) -> "GetAccountService":
        self._omit_zero_balances = v
        return self

    async def do(self, *options: RequestOption) -> Account:
        r = Request(
            method="GET",
            endpoint="/api/v3/account",
            ws_method="account.status",
            sec_type=SecType.SIGNED,
        )
        if self._omit_zero_balances is not None:
            r.set_param("omitZeroBalances", self._omit_zero_balances)
        data, _ = await self.c.call_api(r, *options)
        return Account.model_validate(data)


class StartUserStreamService:
    """Create a listen key for the legacy user data stream."""

    def __init__(self, client: "Client"):
        self.c = client

    async def do(self, *options: RequestOption) -> str:
        r = Request(method="POST", endpoint="/api/v3/userDataStream", sec_type=SecType.API_KEY)
        data, _ = await self.c.call_api(r, *options)
        return data["listenKey"]


class KeepaliveUserStreamService:
    """Extend the validity of a listen key."""

    def __init__(self, client: "Client"):
        self.c = client
        self._listen_key = ""

    def listen_key(self, listen_key: str) -> "KeepaliveUserStreamService":
        self._listen_key = listen_key
        return self

    async def do(self, *options: RequestOption) -> None:
        r = Request(method="PUT", endpoint="/api/v3/userDataStream", sec_type=SecType.API_KEY)
        r.set_form_param("listenKey", self._listen_key)
        await self.c.call_api(r, *options)


class CloseUserStreamService:
    """Invalidate a listen key."""

    def __init__(self, client: "Client"):
        self.c = client
        self._listen_key = ""

    def listen_key(self, listen_key: str) -> "CloseUserStreamService":
        self._listen_key = listen_key
        return self

    async def do(self, *options: RequestOption) -> None:
        r = Request(method="DELETE", endpoint="/api/v3/userDataStream", sec_type=SecType.API_KEY)
        r.set_form_param("listenKey", self._listen_key)
        await self.c.call_api(r, *options)


class SubscribeUserDataService:
    """
    Subscribe the WebSocket API session to user data events.

    Events are delivered to the client's ``on_event`` handler. Only
    available over the WebSocket API.
    """

    def __init__(self, client: "Client"):
        self.c = client

    async def do(self, *options: RequestOption) -> int:
        r = Request(ws_method="userDataStream.subscribe.signature", sec_type=SecType.SIGNED)
        data, _ = await self.c.call_ws_api(r, *options)
        return UserDataSubscription.model_validate(data).subscription_id
