"""
Order services. Each one can travel over REST or the WebSocket API.
"""

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

from ..exceptions import RequestValidationError
from ..request import Request, RequestOption, SecType
from ..types import (
    CancelOrderResponse,
    CreateOrderResponse,
    NewOrderRespType,
    Order,
    OrderSide,
    OrderType,
    TimeInForce,
)

if TYPE_CHECKING:
    from ..client import Client

Number = Union[Decimal, float, int, str]


class CreateOrderService:
    """
    Place a new order.

    Example::

        order = await (
            client.new_create_order_service()
            .symbol("BTCUSDT")
            .side(OrderSide.BUY)
            .type(OrderType.LIMIT)
            .time_in_force(TimeInForce.GTC)
            .quantity("0.001")
            .price("50000")
            .do()
        )
    """

    def __init__(self, client: "Client"):
        self.c = client
        self._params: Dict[str, Any] = {}

    def symbol(self, symbol: str) -> "CreateOrderService":
        self._params["symbol"] = symbol
        return self

    def side(self, side: OrderSide) -> "CreateOrderService":
        self._params["side"] = side
        return self

    def type(self, order_type: OrderType) -> "CreateOrderService":
        self._params["type"] = order_type
        return self

    def time_in_force(self, time_in_force: TimeInForce) -> "CreateOrderService":
        self._params["timeInForce"] = time_in_force
        return self

    def quantity(self, quantity: Number) -> "CreateOrderService":
        self._params["quantity"] = quantity
        return self

    def quote_order_qty(self, quote_order_qty: Number) -> "CreateOrderService":
        self._params["quoteOrderQty"] = quote_order_qty
        return self

    def price(self, price: Number) -> "CreateOrderService":
        self._params["price"] = price
        return self

    def new_client_order_id(self, client_order_id: str) -> "CreateOrderService":
        self._params["newClientOrderId"] = client_order_id
        return self

    def stop_price(self, stop_price: Number) -> "CreateOrderService":
        self._params["stopPrice"] = stop_price
        return self

    def iceberg_quantity(self, iceberg_quantity: Number) -> "CreateOrderService":
        self._params["icebergQty"] = iceberg_quantity
        return self

    def new_order_resp_type(self, resp_type: NewOrderRespType) -> "CreateOrderService":
        self._params["newOrderRespType"] = resp_type
        return self

    def self_trade_prevention_mode(self, mode: str) -> "CreateOrderService":
        self._params["selfTradePreventionMode"] = mode
        return self

    async def do(self, *options: RequestOption) -> CreateOrderResponse:
        for required in ("symbol", "side", "type"):
            if required not in self._params:
                raise RequestValidationError(f"{required} is required")

        r = Request(
            method="POST",
            endpoint="/api/v3/order",
            ws_method="order.place",
            sec_type=SecType.SIGNED,
        )
        r.set_form_params(self._params)
        data, _ = await self.c.call_api(r, *options)
        return CreateOrderResponse.model_validate(data)


class _OrderLookup:
    """Shared builder for services addressing one existing order."""

    def __init__(self, client: "Client"):
        self.c = client
        self._symbol: Optional[str] = None
        self._order_id: Optional[int] = None
        self._orig_client_order_id: Optional[str] = None

    def symbol(self, symbol: str):
        self._symbol = symbol
        return self

    def order_id(self, order_id: int):
        self._order_id = order_id
        return self

    def orig_client_order_id(self, client_order_id: str):
        self._orig_client_order_id = client_order_id
        return self

    def _lookup_params(self) -> Dict[str, Any]:
        if not self._symbol:
            raise RequestValidationError("symbol is required")
        if self._order_id is None and not self._orig_client_order_id:
            raise RequestValidationError("either order_id or orig_client_order_id must be provided")

        params: Dict[str, Any] = {"symbol": self._symbol}
        if self._order_id is not None:
            params["orderId"] = self._order_id
        if self._orig_client_order_id:
            params["origClientOrderId"] = self._orig_client_order_id
        return params


class GetOrderService(_OrderLookup):
    """Check an order's status."""

    async def do(self, *options: RequestOption) -> Order:
        r = Request(
            method="GET",
            endpoint="/api/v3/order",
            ws_method="order.status",
            sec_type=SecType.SIGNED,
        )
        r.set_params(self._lookup_params())
        data, _ = await self.c.call_api(r, *options)
        return Order.model_validate(data)


class CancelOrderService(_OrderLookup):
    """Cancel an active order."""

    def __init__(self, client: "Client"):
        super().__init__(client)
        self._new_client_order_id: Optional[str] = None

    def new_client_order_id(self, client_order_id: str) -> "CancelOrderService":
        self._new_client_order_id = client_order_id
        return self

    async def do(self, *options: RequestOption) -> CancelOrderResponse:
        r = Request(
            method="DELETE",
            endpoint="/api/v3/order",
            ws_method="order.cancel",
            sec_type=SecType.SIGNED,
        )
        r.set_form_params(self._lookup_params())
        if self._new_client_order_id:
            r.set_form_param("newClientOrderId", self._new_client_order_id)
        data, _ = await self.c.call_api(r, *options)
        return CancelOrderResponse.model_validate(data)
