"""Custom exception hierarchy for hierarchical copy/move operations."""


class S3TreeError(Exception):
    """Base exception for all s3tree operations."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class RetryableError(S3TreeError):
    """Errors that may succeed when retried (throttling, transient failures)."""
    pass


class NonRetryableError(S3TreeError):
    """Errors that should NOT be retried (bad input, access denied)."""
    pass


class AccessDeniedError(NonRetryableError):
    """Access denied - check IAM roles and bucket policies."""
    pass


class InvalidPathError(NonRetryableError):
    """Malformed scheme://bucket/key path."""
    pass


class BucketNotFoundError(NonRetryableError):
    """Source or destination bucket does not exist."""
    pass


class OverwriteNotAllowedError(NonRetryableError):
    """A planned destination already exists and overwrite is disabled."""
    pass


class BucketCreationError(NonRetryableError):
    """Bucket creation failed for a reason other than already-exists."""
    pass


class ObjectTooLargeError(NonRetryableError):
    """Object exceeds maximum supported size."""
    pass


class StoreError(S3TreeError):
    """A call to the object store failed.

    ``retryable`` tells the calling layer whether the failure looked
    transient. The core itself never retries.
    """

    def __init__(
        self, message: str, details: dict | None = None, retryable: bool = False
    ):
        super().__init__(message, details=details)
        self.retryable = retryable


class ListingError(StoreError):
    """Listing or metadata lookup failed."""
    pass


class TransferError(StoreError):
    """Copy, delete or metadata update of an object failed."""
    pass


class PartialMoveError(TransferError):
    """Source delete failed after the copy succeeded.

    The destination holds a complete copy and the source still exists, so
    re-running the move is safe.
    """

    def __init__(self, message: str, source: str, destination: str, details=None):
        details = dict(details or {})
        details.update({"source": source, "destination": destination})
        super().__init__(message, details=details, retryable=True)
        self.source = source
        self.destination = destination


class TransferCancelledError(S3TreeError):
    """Execution was cancelled between objects; completed pairs are kept."""

    def __init__(self, message: str, completed: int, remaining: int):
        super().__init__(
            message, details={"completed": completed, "remaining": remaining}
        )
        self.completed = completed
        self.remaining = remaining
