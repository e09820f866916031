"""Error types shared by the webhook handler, the stores and the user sync."""


class SyncServiceError(Exception):
    """Base exception for subscription sync errors."""

    kind = "sync_error"


class AuthenticationError(SyncServiceError):
    """Raised when a webhook signature is missing or does not match."""

    kind = "authentication_error"

    def __init__(self, message: str = "Invalid signature"):
        super().__init__(message)


class ValidationError(SyncServiceError):
    """Raised when webhook custom data is missing or malformed.

    ``reason`` is a stable code for logs; ``message`` is what the caller sees.
    """

    kind = "validation_error"

    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason
        self.message = message


class MappingError(SyncServiceError):
    """Raised when a billing product id has no tier."""

    kind = "mapping_error"

    def __init__(self, product_id: object, message: str | None = None):
        super().__init__(message or f"Unknown product ID: {product_id}")
        self.product_id = product_id


class StoreError(SyncServiceError):
    """Raised when the data store rejects or times out on an operation."""

    kind = "store_error"

    def __init__(self, table: str, operation: str, detail: str):
        super().__init__(f"{operation} on {table} failed: {detail}")
        self.table = table
        self.operation = operation
        self.detail = detail


class DirectoryError(SyncServiceError):
    """Raised when the directory provider (Clerk) request fails."""

    kind = "directory_error"
