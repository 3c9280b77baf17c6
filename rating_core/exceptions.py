"""
Error kinds raised by the rating workflows.

Every error carries a ``context`` dictionary with whatever identifies the
failing call (dataset id, user id, offending value) so hosts can log and
report it without parsing the message.
"""

from typing import Any, Dict, Optional


class RatingError(Exception):
    """Base exception for rating-related errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert the error to a dictionary for reporting."""
        return {"error": type(self).__name__, "message": self.message, **self.context}


class ValidationError(RatingError):
    """Raised for invalid caller input. No I/O has been performed."""

    pass


class RemoteFetchError(RatingError):
    """Raised when the dataset document cannot be fetched from the catalog."""

    pass


class RemoteUpdateError(RatingError):
    """Raised when the updated dataset document cannot be pushed to the catalog."""

    pass


class LedgerError(RatingError):
    """Raised by ledger stores on upsert or aggregate failures."""

    pass


class AggregationError(RatingError):
    """Raised when the ledger has no aggregate for a dataset that was just rated."""

    pass


class InvariantError(RatingError):
    """Raised when a ledger mean falls outside the rating domain."""

    def __init__(self, value: float, context: Optional[Dict[str, Any]] = None):
        super().__init__(f"rating {value} is out of range 0-5", {"value": value, **(context or {})})
        self.value = value
