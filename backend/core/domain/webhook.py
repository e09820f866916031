"""
Billing webhook domain types.

A delivery is parsed into exactly one event variant. Known event names get
their own payload shape; anything else becomes ``UnknownEvent`` so the
dispatcher never has to compare raw strings.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Optional, Union


class WebhookEventType(StrEnum):
    """Lemon Squeezy webhook event types handled by the service."""

    SUBSCRIPTION_CREATED = "subscription_created"
    SUBSCRIPTION_UPDATED = "subscription_updated"
    SUBSCRIPTION_CANCELLED = "subscription_cancelled"
    ORDER_CREATED = "order_created"
    UNKNOWN = "unknown"

    @classmethod
    def from_name(cls, event_name: Optional[str]) -> "WebhookEventType":
        try:
            event_type = cls(event_name)
        except ValueError:
            return cls.UNKNOWN
        return event_type


@dataclass(frozen=True)
class CustomData:
    """Checkout custom data carried through to every webhook."""

    user_id: str
    email: str


@dataclass(frozen=True)
class SubscriptionCreated:
    product_id: Any
    subscription_id: Optional[str]
    status: Optional[str]
    created_at: Optional[str]
    renews_at: Optional[str]

    event_type = WebhookEventType.SUBSCRIPTION_CREATED


@dataclass(frozen=True)
class SubscriptionUpdated:
    status: Optional[str]
    renews_at: Optional[str]
    ends_at: Optional[str]

    event_type = WebhookEventType.SUBSCRIPTION_UPDATED


@dataclass(frozen=True)
class SubscriptionCancelled:
    subscription_id: Optional[str]

    event_type = WebhookEventType.SUBSCRIPTION_CANCELLED


@dataclass(frozen=True)
class OrderCreated:
    order_id: Optional[str]
    attributes: dict[str, Any] = field(default_factory=dict)

    event_type = WebhookEventType.ORDER_CREATED


@dataclass(frozen=True)
class UnknownEvent:
    event_name: Optional[str]

    event_type = WebhookEventType.UNKNOWN


WebhookEvent = Union[
    SubscriptionCreated,
    SubscriptionUpdated,
    SubscriptionCancelled,
    OrderCreated,
    UnknownEvent,
]


@dataclass(frozen=True)
class WebhookDelivery:
    """A validated webhook: who it is for and what happened."""

    event_name: Optional[str]
    custom_data: CustomData
    event: WebhookEvent

    @property
    def user_id(self) -> str:
        return self.custom_data.user_id
