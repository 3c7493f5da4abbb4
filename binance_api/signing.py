"""
Parameter canonicalization and HMAC request signing.
"""

import hashlib
import hmac
import time
from enum import Enum
from typing import Any, Mapping
from urllib.parse import quote_plus

API_KEY_KEY = "apiKey"
TIMESTAMP_KEY = "timestamp"
SIGNATURE_KEY = "signature"
RECV_WINDOW_KEY = "recvWindow"


def format_value(value: Any) -> str:
    """Render a parameter value the way the exchange expects it on the wire."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return format_value(value.value)
    return str(value)


def encode_params(params: Mapping[str, Any], escape: bool = False) -> str:
    """
    Encode parameters as ``key=value`` pairs joined by ``&``, sorted by key.

    Args:
        params: Parameter mapping. Insertion order is irrelevant.
        escape: Percent-encode keys and values (HTTP query strings and bodies).

    Returns:
        Canonical string, empty for an empty mapping.
    """
    if not params:
        return ""

    pairs = []
    for key in sorted(params):
        value = format_value(params[key])
        if escape:
            pairs.append(f"{quote_plus(key)}={quote_plus(value)}")
        else:
            pairs.append(f"{key}={value}")
    return "&".join(pairs)


def sign(secret: str, payload: str) -> str:
    """Return the hex encoded HMAC SHA256 of ``payload`` keyed by ``secret``."""
    return hmac.new(
        secret.encode('utf-8'),
        payload.encode('utf-8'),
        hashlib.sha256
    ).hexdigest()


def current_timestamp() -> int:
    """Current Unix time in milliseconds."""
    return int(time.time() * 1000)
