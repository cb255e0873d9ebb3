"""Domain exceptions, rendered as JSON by the global error handlers."""

from __future__ import annotations


class LearnTermsError(Exception):
    """Base class for errors raised by LearnTerms components."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(LearnTermsError):
    """Input rejected before any state was touched."""

    status_code = 422

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field
