"""Error taxonomy for Time Ledger."""

from typing import Optional


class TimeLedgerError(Exception):
    """Base class for all Time Ledger errors."""

    kind = "error"


class ValidationError(TimeLedgerError):
    """User input rejected before any state mutation (local or remote)."""

    kind = "validation_error"


class RemoteError(TimeLedgerError):
    """Failure originating from the remote store."""

    kind = "remote_error"

    def __init__(self, message: str, record_id: Optional[str] = None):
        super().__init__(message)
        self.record_id = record_id


class AccessDenied(RemoteError):
    """A user-scoped mutation matched zero rows."""

    kind = "access_denied"


class RemoteUnavailable(RemoteError):
    """Transport or query failure."""

    kind = "remote_unavailable"


class NotFound(RemoteError):
    """Entity absent during a targeted update or delete."""

    kind = "not_found"
