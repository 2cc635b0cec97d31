"""
Custom exceptions for service layer.

Provides specific exception types for business logic errors
that can be translated to appropriate HTTP responses.
"""

from typing import Any, Optional


class ServiceError(Exception):
    """Base exception for service layer errors."""
    pass


class NotFoundError(ServiceError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: Any):
        self.resource = resource
        self.identifier = identifier
        self.message = f"{resource} {identifier} not found"
        super().__init__(self.message)


class ConflictError(ServiceError):
    """Raised when an operation conflicts with existing stored state.

    reason is a short machine-readable code (e.g. "capacity_reached").
    """

    def __init__(self, message: str, reason: Optional[str] = None):
        self.message = message
        self.reason = reason
        super().__init__(message)


class ValidationError(ServiceError):
    """Raised when input validation fails, before any write."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class ForbiddenError(ServiceError):
    """Raised when the acting user lacks the capability for an action."""

    def __init__(self, message: str, actor: Optional[str] = None):
        self.message = message
        self.actor = actor
        super().__init__(message)


class InvalidStateError(ServiceError):
    """Raised when a transition is not allowed from the current state.

    Answering an invitation or task request that was already approved or
    rejected is the typical case.
    """

    def __init__(self, message: str, current: Optional[str] = None):
        self.message = message
        self.current = current
        super().__init__(message)
