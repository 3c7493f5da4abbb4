"""
User data push events delivered over the WebSocket API.

Events arrive wrapped as ``{"subscriptionId": ..., "event": {...}}``. The
``e`` field of the inner object names the event type and selects the model
used to decode it. Types without a model decode to ``UnknownEvent`` so a new
event kind on the exchange side never breaks the read loop.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Type, Union

from pydantic import Field

from .types import BinanceModel


class UserDataEventType:
    """Discriminator values of the ``e`` field."""
    OUTBOUND_ACCOUNT_POSITION = "outboundAccountPosition"
    BALANCE_UPDATE = "balanceUpdate"
    EXECUTION_REPORT = "executionReport"
    LIST_STATUS = "listStatus"


class UserDataEvent(BinanceModel):
    """Fields shared by every user data event."""
    event_type: str = Field(alias="e")
    event_time: int = Field(0, alias="E")


class AccountBalance(BinanceModel):
    asset: str = Field(alias="a")
    free: Decimal = Field(Decimal("0"), alias="f")
    locked: Decimal = Field(Decimal("0"), alias="l")


class AccountUpdateEvent(UserDataEvent):
    """``outboundAccountPosition``: balances changed by an account update."""
    last_update_time: int = Field(0, alias="u")
    balances: List[AccountBalance] = Field(default_factory=list, alias="B")


class BalanceUpdateEvent(UserDataEvent):
    """``balanceUpdate``: deposit, withdrawal or transfer."""
    asset: str = Field(alias="a")
    delta: Decimal = Field(alias="d")
    clear_time: int = Field(0, alias="T")


class ExecutionReportEvent(UserDataEvent):
    """``executionReport``: order update."""
    symbol: str = Field(alias="s")
    client_order_id: str = Field("", alias="c")
    side: str = Field("", alias="S")
    order_type: str = Field("", alias="o")
    time_in_force: str = Field("", alias="f")
    quantity: Decimal = Field(Decimal("0"), alias="q")
    price: Decimal = Field(Decimal("0"), alias="p")
    stop_price: Decimal = Field(Decimal("0"), alias="P")
    orig_client_order_id: str = Field("", alias="C")
    execution_type: str = Field("", alias="x")
    status: str = Field("", alias="X")
    reject_reason: str = Field("", alias="r")
    order_id: int = Field(0, alias="i")
    last_filled_quantity: Decimal = Field(Decimal("0"), alias="l")
    filled_quantity: Decimal = Field(Decimal("0"), alias="z")
    last_filled_price: Decimal = Field(Decimal("0"), alias="L")
    commission: Decimal = Field(Decimal("0"), alias="n")
    commission_asset: Optional[str] = Field(None, alias="N")
    transaction_time: int = Field(0, alias="T")
    trade_id: int = Field(-1, alias="t")
    is_in_order_book: bool = Field(False, alias="w")
    is_maker: bool = Field(False, alias="m")
    create_time: int = Field(0, alias="O")
    filled_quote_quantity: Decimal = Field(Decimal("0"), alias="Z")


class ListStatusOrder(BinanceModel):
    symbol: str = Field(alias="s")
    order_id: int = Field(alias="i")
    client_order_id: str = Field("", alias="c")


class ListStatusEvent(UserDataEvent):
    """``listStatus``: OCO/order list update."""
    symbol: str = Field(alias="s")
    order_list_id: int = Field(alias="g")
    contingency_type: str = Field("", alias="c")
    list_status_type: str = Field("", alias="l")
    list_order_status: str = Field("", alias="L")
    list_reject_reason: str = Field("", alias="r")
    list_client_order_id: str = Field("", alias="C")
    transaction_time: int = Field(0, alias="T")
    orders: List[ListStatusOrder] = Field(default_factory=list, alias="O")


class UnknownEvent(UserDataEvent):
    """Event type without a dedicated model; ``raw`` keeps the payload."""
    event_type: str = Field("", alias="e")
    raw: Dict[str, Any] = Field(default_factory=dict)


AnyUserDataEvent = Union[
    AccountUpdateEvent,
    BalanceUpdateEvent,
    ExecutionReportEvent,
    ListStatusEvent,
    UnknownEvent,
]

EVENT_MODELS: Dict[str, Type[UserDataEvent]] = {
    UserDataEventType.OUTBOUND_ACCOUNT_POSITION: AccountUpdateEvent,
    UserDataEventType.BALANCE_UPDATE: BalanceUpdateEvent,
    UserDataEventType.EXECUTION_REPORT: ExecutionReportEvent,
    UserDataEventType.LIST_STATUS: ListStatusEvent,
}


def decode_user_data_event(payload: Dict[str, Any]) -> AnyUserDataEvent:
    """
    Decode the inner ``event`` object of a push frame.

    Raises:
        pydantic.ValidationError: A known event type with a malformed body.
    """
    event_type = payload.get("e", "") if isinstance(payload, dict) else ""
    if not isinstance(event_type, str):
        event_type = ""
    model = EVENT_MODELS.get(event_type)
    if model is None:
        raw = payload if isinstance(payload, dict) else {"value": payload}
        return UnknownEvent(e=event_type or "", E=raw.get("E", 0) or 0, raw=raw)
    return model.model_validate(payload)
