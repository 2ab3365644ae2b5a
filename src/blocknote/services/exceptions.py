"""Custom exceptions for blocknote services."""

from typing import Optional


class RemoteStoreError(Exception):
    """Raised when the remote store rejects or fails an operation.

    Attributes:
        operation: Remote operation that failed (probe, fetch, upsert, delete)
        message: Human-readable error message
        status_code: HTTP status code, if the failure came from a response
    """

    def __init__(self, operation: str, message: str, status_code: Optional[int] = None):
        """Initialize RemoteStoreError.

        Args:
            operation: Remote operation that failed
            message: Human-readable error message
            status_code: HTTP status code, if any
        """
        self.operation = operation
        self.message = message
        self.status_code = status_code
        super().__init__(f"Remote {operation} failed: {message}")


class LocalCacheError(Exception):
    """Raised when the local durable cache cannot be read or written.

    Attributes:
        key: Cache key involved in the failure
        message: Human-readable error message
    """

    def __init__(self, key: str, message: str):
        """Initialize LocalCacheError.

        Args:
            key: Cache key involved in the failure
            message: Human-readable error message
        """
        self.key = key
        self.message = message
        super().__init__(f"{message}: {key}")
