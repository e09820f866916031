"""API request/response schemas."""

from .billing import TierInfo, TierLimitsInfo, TiersResponse, WebhookAck, WebhookErrorResponse
from .users import BulkSyncResponse, SyncCounts, SyncFailureInfo, UserSyncResponse

__all__ = [
    "TierInfo",
    "TierLimitsInfo",
    "TiersResponse",
    "WebhookAck",
    "WebhookErrorResponse",
    "BulkSyncResponse",
    "SyncCounts",
    "SyncFailureInfo",
    "UserSyncResponse",
]
