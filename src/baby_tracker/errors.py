"""Error taxonomy for record store and timer operations."""


class BabyTrackerError(Exception):
    """Base error for the baby tracker."""


class RecordStoreError(BabyTrackerError):
    """Raised when a call to the remote record store fails."""


class NotConfiguredError(RecordStoreError):
    """Raised when the token or base id is missing."""

    def __init__(self) -> None:
        super().__init__("Record store is not configured")


class UnauthorizedError(RecordStoreError):
    """Raised when the record store rejects the token."""

    def __init__(self) -> None:
        super().__init__("Unauthorized")


class RemoteError(RecordStoreError):
    """Raised for any other non-success response."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class RateLimitedError(RemoteError):
    """Raised when rate limiting persists after every retry."""


class RecordStoreConnectionError(RecordStoreError):
    """Raised when the record store cannot be reached."""
