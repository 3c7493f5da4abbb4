"""
Binance REST transport with request signing and error mapping.
Issues one HTTP request per call and normalizes the response.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Tuple

import aiohttp
from yarl import URL

from ..config import SPOT_API_URL
from ..exceptions import APIError
from ..request import Request, SecType
from ..signing import SIGNATURE_KEY, encode_params, sign
from .rate_limits import RateLimits

API_KEY_HEADER = "X-MBX-APIKEY"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class BinanceRESTClient:
    """
    HTTP transport for the Binance REST API.

    Handles:
    - Query string and form body encoding
    - API key header and HMAC signature for secured endpoints
    - Rate limit header extraction
    - Mapping of error responses to APIError
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        base_url: str = SPOT_API_URL,
        timeout: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize the REST transport.

        Args:
            api_key: Binance API key
            api_secret: Binance API secret
            base_url: Base URL for API calls
            timeout: Total timeout for one request, in seconds
            session: Externally managed aiohttp session
        """
        self.api_key = api_key or ""
        self.api_secret = api_secret or ""
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

        self.logger = logging.getLogger(__name__)
        self.session: Optional[aiohttp.ClientSession] = session
        self._owns_session = session is None

    async def initialize(self) -> None:
        """Create the HTTP session if none was provided."""
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={'User-Agent': 'binance-api-client/python'}
            )
            self._owns_session = True

    async def close(self) -> None:
        """Close the HTTP session if this transport created it."""
        if self.session and self._owns_session:
            await self.session.close()
        self.session = None

    def prepare(self, request: Request) -> Tuple[str, Dict[str, str], str]:
        """
        Build the full URL, headers and form body of a request.

        Signed requests are signed over the query string followed by the
        body, and the signature is appended to the query string.
        """
        query_string = encode_params(request.query, escape=True)
        body = encode_params(request.form, escape=True)

        headers = dict(request.header)
        if body:
            headers['Content-Type'] = FORM_CONTENT_TYPE
        if request.sec_type in (SecType.API_KEY, SecType.SIGNED):
            headers[API_KEY_HEADER] = self.api_key

        if request.sec_type == SecType.SIGNED:
            signature = f"{SIGNATURE_KEY}={sign(self.api_secret, query_string + body)}"
            query_string = f"{query_string}&{signature}" if query_string else signature

        full_url = f"{self.base_url}{request.endpoint}"
        if query_string:
            full_url = f"{full_url}?{query_string}"
        return full_url, headers, body

    async def call(self, request: Request) -> Tuple[Any, RateLimits]:
        """
        Send a prepared request.

        Returns:
            Decoded JSON payload (None for an empty body) and the rate limit
            snapshot from the response headers.

        Raises:
            APIError: The server answered with status >= 400.
        """
        if not self.session:
            raise RuntimeError("Client not initialized")

        full_url, headers, body = self.prepare(request)
        self.logger.debug(f"full url: {full_url}, body: {body}")

        try:
            async with self.session.request(
                method=request.method,
                url=URL(full_url, encoded=True),
                headers=headers,
                data=body.encode('utf-8') if body else None
            ) as response:
                status = response.status
                data = await response.read()
                rate_limits = RateLimits.from_headers(response.headers)

        except asyncio.TimeoutError:
            self.logger.error(f"Request timeout: {request.method} {request.endpoint}")
            raise
        except aiohttp.ClientError as e:
            self.logger.error(f"Request failed: {request.method} {request.endpoint}: {e}")
            raise

        self.logger.debug(f"response status code: {status}")
        self.logger.debug(f"response body: {data!r}")

        if status >= 400:
            raise self._api_error(status, data, rate_limits)

        if not data:
            return None, rate_limits
        return json.loads(data), rate_limits

    def _api_error(self, status: int, data: bytes, rate_limits: RateLimits) -> APIError:
        """Decode the exchange error envelope ``{"code": ..., "msg": ...}``."""
        text = data.decode('utf-8', errors='replace')
        try:
            payload = json.loads(text)
        except ValueError:
            self.logger.debug(f"failed to decode error body: {text}")
            payload = None

        if isinstance(payload, dict):
            code = payload.get('code', 0)
            message = payload.get('msg', '')
        else:
            code, message = 0, text

        try:
            code = int(code or 0)
        except (TypeError, ValueError):
            code = 0

        self.logger.error(f"API error {status}: code={code}, msg={message}")
        return APIError(code=code, message=message, status=status, rate_limits=rate_limits)
