# Domain Entities
# Pure business objects with no external dependencies
from .subscription import Subscription, SubscriptionChange
from .user import DirectoryUser, UserPlanChange
from .webhook import (
    CustomData,
    OrderCreated,
    SubscriptionCancelled,
    SubscriptionCreated,
    SubscriptionUpdated,
    UnknownEvent,
    WebhookDelivery,
    WebhookEvent,
    WebhookEventType,
)

__all__ = [
    "Subscription",
    "SubscriptionChange",
    "DirectoryUser",
    "UserPlanChange",
    "CustomData",
    "WebhookDelivery",
    "WebhookEvent",
    "WebhookEventType",
    "SubscriptionCreated",
    "SubscriptionUpdated",
    "SubscriptionCancelled",
    "OrderCreated",
    "UnknownEvent",
]
