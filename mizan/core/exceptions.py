"""
Custom exceptions for the schedule engine.

Expected scheduling situations (not found, ambiguous, conflict, infeasible)
are returned as outcome values; exceptions here cover malformed input and
infrastructure failures.
"""

from typing import Any, Optional


class MizanError(Exception):
    """Base exception for mizan."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(MizanError):
    """Resource not found."""

    pass


class ValidationError(MizanError):
    """Validation error."""

    pass


class IntentParseError(ValidationError):
    """Structured intent payload was rejected at the trust boundary."""

    def __init__(self, message: str, errors: Optional[list[dict]] = None):
        super().__init__(message, details={"errors": errors or []})
        self.errors = errors or []


class InfrastructureError(MizanError):
    """Infrastructure-related error (store, anchor source, etc.)."""

    pass


class StoreError(InfrastructureError):
    """Commitment store failed to flush; nothing from the intent is committed."""

    pass

