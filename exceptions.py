"""Typed errors raised by the record store."""


class TrackedEmailError(Exception):
    """Base class for record store errors."""

    default_message = "Tracked email operation failed"

    def __init__(self, message: str = "", **context):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.context = context


class ValidationError(TrackedEmailError):
    """Required input is missing or empty."""
    default_message = "Email is required"


class LimitExceeded(TrackedEmailError):
    """The store already holds the maximum number of records."""
    default_message = "Email limit reached"


class DuplicateKey(TrackedEmailError):
    """A record with the same address already exists."""
    default_message = "Email already exists"


class NotFound(TrackedEmailError):
    """No record with the requested id."""
    default_message = "Email entry not found"
