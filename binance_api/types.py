"""
Type definitions and data models for the Binance API client.
"""

from decimal import Decimal
from enum import Enum, IntEnum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WsState(IntEnum):
    """WebSocket connection state held by the client."""
    INIT = 0
    CONNECTING = 1
    CONNECTED = 2
    ADMIN_CLOSING = 3


class OrderSide(str, Enum):
    """Order side enumeration."""
    BUY = "BUY"
    SELL = "SELL"


class OrderType(str, Enum):
    """Order type enumeration."""
    LIMIT = "LIMIT"
    MARKET = "MARKET"
    STOP_LOSS = "STOP_LOSS"
    STOP_LOSS_LIMIT = "STOP_LOSS_LIMIT"
    TAKE_PROFIT = "TAKE_PROFIT"
    TAKE_PROFIT_LIMIT = "TAKE_PROFIT_LIMIT"
    LIMIT_MAKER = "LIMIT_MAKER"


class OrderStatus(str, Enum):
    """Order status enumeration."""
    NEW = "NEW"
    PARTIALLY_FILLED = "PARTIALLY_FILLED"
    FILLED = "FILLED"
    CANCELED = "CANCELED"
    PENDING_CANCEL = "PENDING_CANCEL"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"
    EXPIRED_IN_MATCH = "EXPIRED_IN_MATCH"  # STP


class TimeInForce(str, Enum):
    """Time in force enumeration."""
    GTC = "GTC"  # Good Till Canceled
    IOC = "IOC"  # Immediate or Cancel
    FOK = "FOK"  # Fill or Kill


class NewOrderRespType(str, Enum):
    """Verbosity of the order placement response."""
    ACK = "ACK"
    RESULT = "RESULT"
    FULL = "FULL"


class BinanceModel(BaseModel):
    """Base for models decoded from exchange payloads."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# WebSocket API envelope

class WsApiError(BinanceModel):
    """Error object of a WebSocket API response."""
    code: int = 0
    msg: str = ""


class WsRateLimit(BinanceModel):
    """One entry of a WebSocket API ``rateLimits`` array."""
    rate_limit_type: str = Field("", alias="rateLimitType")
    interval: str = ""
    interval_num: int = Field(0, alias="intervalNum")
    limit: int = 0
    count: int = 0


class WsApiResponse(BinanceModel):
    """
    Correlated WebSocket API response.

    ``result`` is passed through untouched so each service can apply its
    own schema.
    """
    id: Optional[str] = None
    status: int = 0
    error: Optional[WsApiError] = None
    result: Any = None
    rate_limits: List[WsRateLimit] = Field(default_factory=list, alias="rateLimits")

    @field_validator("id", mode="before")
    @classmethod
    def id_as_string(cls, v):
        return None if v is None else str(v)


# Response payloads

class ServerTime(BinanceModel):
    """Server time response."""
    server_time: int = Field(alias="serverTime")


class DepthResponse(BinanceModel):
    """Order book snapshot."""
    last_update_id: int = Field(alias="lastUpdateId")
    bids: List[List[Decimal]] = Field(default_factory=list)
    asks: List[List[Decimal]] = Field(default_factory=list)


class Balance(BinanceModel):
    """Single asset balance."""
    asset: str
    free: Decimal = Decimal("0")
    locked: Decimal = Decimal("0")


class Account(BinanceModel):
    """Account information."""
    maker_commission: int = Field(0, alias="makerCommission")
    taker_commission: int = Field(0, alias="takerCommission")
    buyer_commission: int = Field(0, alias="buyerCommission")
    seller_commission: int = Field(0, alias="sellerCommission")
    can_trade: bool = Field(False, alias="canTrade")
    can_withdraw: bool = Field(False, alias="canWithdraw")
    can_deposit: bool = Field(False, alias="canDeposit")
    update_time: int = Field(0, alias="updateTime")
    account_type: str = Field("SPOT", alias="accountType")
    balances: List[Balance] = Field(default_factory=list)
    permissions: List[str] = Field(default_factory=list)


class Fill(BinanceModel):
    """Trade fill reported in a FULL order response."""
    trade_id: int = Field(0, alias="tradeId")
    price: Decimal
    quantity: Decimal = Field(alias="qty")
    commission: Decimal = Decimal("0")
    commission_asset: str = Field("", alias="commissionAsset")


class CreateOrderResponse(BinanceModel):
    """Order placement response. ACK responses only carry the ids."""
    symbol: str
    order_id: int = Field(alias="orderId")
    client_order_id: str = Field("", alias="clientOrderId")
    transact_time: int = Field(0, alias="transactTime")
    price: Optional[Decimal] = None
    orig_quantity: Optional[Decimal] = Field(None, alias="origQty")
    executed_quantity: Optional[Decimal] = Field(None, alias="executedQty")
    cummulative_quote_quantity: Optional[Decimal] = Field(None, alias="cummulativeQuoteQty")
    status: Optional[OrderStatus] = None
    time_in_force: Optional[TimeInForce] = Field(None, alias="timeInForce")
    type: Optional[OrderType] = None
    side: Optional[OrderSide] = None
    fills: List[Fill] = Field(default_factory=list)


class Order(BinanceModel):
    """Order status."""
    symbol: str
    order_id: int = Field(alias="orderId")
    order_list_id: int = Field(-1, alias="orderListId")
    client_order_id: str = Field("", alias="clientOrderId")
    price: Decimal = Decimal("0")
    orig_quantity: Decimal = Field(Decimal("0"), alias="origQty")
    executed_quantity: Decimal = Field(Decimal("0"), alias="executedQty")
    cummulative_quote_quantity: Decimal = Field(Decimal("0"), alias="cummulativeQuoteQty")
    status: OrderStatus
    time_in_force: TimeInForce = Field(TimeInForce.GTC, alias="timeInForce")
    type: OrderType
    side: OrderSide
    stop_price: Decimal = Field(Decimal("0"), alias="stopPrice")
    iceberg_quantity: Decimal = Field(Decimal("0"), alias="icebergQty")
    time: int = 0
    update_time: int = Field(0, alias="updateTime")
    is_working: bool = Field(False, alias="isWorking")


class CancelOrderResponse(BinanceModel):
    """Order cancellation response."""
    symbol: str
    orig_client_order_id: str = Field("", alias="origClientOrderId")
    order_id: int = Field(alias="orderId")
    order_list_id: int = Field(-1, alias="orderListId")
    client_order_id: str = Field("", alias="clientOrderId")
    price: Decimal = Decimal("0")
    orig_quantity: Decimal = Field(Decimal("0"), alias="origQty")
    executed_quantity: Decimal = Field(Decimal("0"), alias="executedQty")
    cummulative_quote_quantity: Decimal = Field(Decimal("0"), alias="cummulativeQuoteQty")
    status: OrderStatus
    time_in_force: TimeInForce = Field(TimeInForce.GTC, alias="timeInForce")
    type: OrderType
    side: OrderSide


class UserDataSubscription(BinanceModel):
    """Result of ``userDataStream.subscribe.signature``."""
    subscription_id: int = Field(alias="subscriptionId")
