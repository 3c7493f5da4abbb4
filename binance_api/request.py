"""
Request descriptor and request options shared by every service.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping

from .exceptions import RequestValidationError


class SecType(str, Enum):
    """Security classification of an endpoint."""
    NONE = "NONE"
    API_KEY = "API_KEY"
    SIGNED = "SIGNED"


HTTP_METHODS = frozenset({"GET", "POST", "PUT", "DELETE"})


@dataclass
class Request:
    """
    One logical API call.

    ``endpoint`` is used for HTTP, ``ws_method`` for the WebSocket API. A
    request carrying both may travel over either transport; the client
    prefers WebSocket when a session is connected.

    The dispatcher injects ``timestamp``, ``recvWindow`` and ``signature``
    into the parameters in place, so a request must not be reused.
    """
    method: str = "GET"
    endpoint: str = ""
    ws_method: str = ""
    sec_type: SecType = SecType.NONE
    query: Dict[str, Any] = field(default_factory=dict)
    form: Dict[str, Any] = field(default_factory=dict)
    recv_window: int = 0
    header: Dict[str, str] = field(default_factory=dict)

    def set_param(self, key: str, value: Any) -> "Request":
        self.query[key] = value
        return self

    def set_params(self, params: Mapping[str, Any]) -> "Request":
        for key, value in params.items():
            self.set_param(key, value)
        return self

    def set_form_param(self, key: str, value: Any) -> "Request":
        self.form[key] = value
        return self

    def set_form_params(self, params: Mapping[str, Any]) -> "Request":
        for key, value in params.items():
            self.set_form_param(key, value)
        return self

    def validate(self) -> None:
        """Reject descriptors that cannot be sent over any transport."""
        if not self.endpoint and not self.ws_method:
            raise RequestValidationError("request needs an endpoint or a WebSocket method")
        if self.endpoint and self.method.upper() not in HTTP_METHODS:
            raise RequestValidationError(f"unsupported HTTP method: {self.method}")
        if self.recv_window < 0:
            raise RequestValidationError("recv_window must not be negative")
        self.method = self.method.upper()

    def ws_params(self) -> Dict[str, Any]:
        """Merge query and form parameters into one WebSocket params object."""
        params: Dict[str, Any] = {}
        params.update(self.query)
        params.update(self.form)
        return params


RequestOption = Callable[[Request], None]


def with_recv_window(recv_window: int) -> RequestOption:
    """Set ``recvWindow`` (milliseconds) for a signed request."""
    def option(request: Request) -> None:
        request.recv_window = recv_window
    return option


def with_header(key: str, value: str) -> RequestOption:
    """Set a single HTTP header."""
    def option(request: Request) -> None:
        request.header[key] = value
    return option


def with_headers(headers: Mapping[str, str]) -> RequestOption:
    """Replace all extra HTTP headers."""
    def option(request: Request) -> None:
        request.header = dict(headers)
    return option


def with_extra_form(params: Mapping[str, Any]) -> RequestOption:
    """Add form parameters not covered by a service's builder methods."""
    def option(request: Request) -> None:
        request.set_form_params(params)
    return option
