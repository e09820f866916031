"""Payment adapters for billing webhooks."""

from .lemonsqueezy_adapter import (
    EMAIL_PATTERN,
    LemonSqueezyAdapter,
    create_lemonsqueezy_adapter,
    parse_custom_data,
    parse_event,
)

__all__ = [
    "EMAIL_PATTERN",
    "LemonSqueezyAdapter",
    "create_lemonsqueezy_adapter",
    "parse_custom_data",
    "parse_event",
]
