from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base exception for business rule violations.

    Every subclass carries the HTTP status it maps to, so the API layer can
    format any domain failure without knowing where it came from. `code`
    overrides the status-derived error code (e.g. ALREADY_CHECKED_IN).
    """

    status_code = 400
    default_code: Optional[str] = None

    def __init__(self, message: str = "", *, details: Optional[Any] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        self.code = code or self.default_code


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    status_code = 400


class ConflictError(DomainError):
    """Raised on unique violations (duplicate email, employee id, name)."""

    status_code = 400
    default_code = "DUPLICATE_ENTRY"


class AuthenticationError(DomainError):
    """Raised when there is no valid session or login credentials are invalid."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class NotFoundError(DomainError):
    """Raised when a looked-up record does not exist."""

    status_code = 404
