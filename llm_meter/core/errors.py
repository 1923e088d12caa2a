"""Application-level exception types.

Domain errors raised by the stores and the access gate. The exception
handlers translate each class into an HTTP status and a JSON error body.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context returned to clients."""

    tier: str
    known_tiers: list[str]
    applied: list[str]
    method: str
    allowed_methods: list[str]
    errors: list[dict[str, Any]]
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for clients and logs.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when a request body does not have the expected shape."""


class InvalidTierError(ValidationAppError):
    """Raised when a bulk update names a tier the registry doesn't know."""


class AuthenticationAppError(AppError):
    """Raised when credentials are missing or wrong."""


class MethodNotAllowedAppError(AppError):
    """Raised when a known path is called with an unsupported method."""
