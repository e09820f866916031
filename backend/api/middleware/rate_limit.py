"""
Rate limiting middleware using slowapi.

Limits are per client IP with in-memory storage, which is enough for the
single process the service runs as.

Rate Limits:
- Webhook deliveries: 100 per minute
- User sync: 5 per minute
- Default: 100 requests per minute
"""

import ipaddress
import re

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

# Simple pattern to quickly reject obviously invalid IPs before parsing
_IP_LIKE = re.compile(r"^[\d.:a-fA-F]+$")


def _is_valid_ip(value: str) -> bool:
    """Return True if *value* looks like a valid IPv4 or IPv6 address."""
    if not _IP_LIKE.match(value):
        return False
    try:
        ipaddress.ip_address(value)
        return True
    except ValueError:
        return False


def _is_private_ip(value: str) -> bool:
    """Return True if *value* is a private, loopback, or link-local address.

    Private IPs in X-Forwarded-For are untrustworthy: a client can send
    X-Forwarded-For: 127.0.0.1 to land in someone else's bucket.
    """
    try:
        addr = ipaddress.ip_address(value)
        return addr.is_private or addr.is_loopback or addr.is_link_local
    except ValueError:
        return False


def _get_real_ip(request: Request) -> str:
    """Extract real client IP from proxy headers, falling back to remote address."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        # X-Forwarded-For can be a comma-separated list; first entry is the client
        candidate = forwarded.split(",")[0].strip()
        if _is_valid_ip(candidate) and not _is_private_ip(candidate):
            return candidate
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        candidate = real_ip.strip()
        if _is_valid_ip(candidate) and not _is_private_ip(candidate):
            return candidate
    return get_remote_address(request)


# Format: "count/period" where period can be: second, minute, hour, day
RATE_LIMITS = {
    "webhook": "100/minute",
    "user_sync": "5/minute",
    "default": "100/minute",
}

limiter = Limiter(
    key_func=_get_real_ip,
    storage_uri="memory://",
    default_limits=[RATE_LIMITS["default"]],
)


def get_rate_limit(endpoint: str) -> str:
    """
    Get rate limit configuration for a specific endpoint.

    Example:
        >>> get_rate_limit("webhook")
        "100/minute"
        >>> get_rate_limit("unknown")
        "100/minute"
    """
    return RATE_LIMITS.get(endpoint, RATE_LIMITS["default"])
