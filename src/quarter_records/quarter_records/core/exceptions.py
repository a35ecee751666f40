from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base exception for business rule violations.

    Keyword arguments are kept as context so callers can render an
    actionable message (package id, expected vs. actual state, ...).
    """

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = {k: v for k, v in context.items() if v is not None}

    def to_dict(self) -> dict:
        out = {"error": type(self).__name__, "message": self.message}
        for k, v in self.context.items():
            out[k] = v.value if hasattr(v, "value") else v
        return out


class ValidationError(DomainError):
    """Raised when input data is incomplete, out of range or otherwise invalid."""

    def __init__(self, message: str, *, student_id: Optional[int] = None, **context: Any):
        super().__init__(message, student_id=student_id, **context)
        self.student_id = student_id


class FutureDateError(DomainError):
    """Raised when attendance is recorded for a day after today."""


class NotFoundError(DomainError):
    """Raised when a referenced package does not exist."""


class UnauthorizedError(DomainError):
    """Raised when an actor lacks the role relationship required for an action."""


class InvalidTransitionError(DomainError):
    """Raised when the package's current state does not permit the action."""

    def __init__(self, message: str, *, package_id=None, action=None, actual=None, **context: Any):
        super().__init__(message, package_id=package_id, action=action, actual=actual, **context)
        self.package_id = package_id
        self.action = action
        self.actual = actual


class PackageLockedError(DomainError):
    """Raised when grades/attendance/feedback are edited outside Draft/Returned."""

    def __init__(self, message: str, *, package_id=None, actual=None, **context: Any):
        super().__init__(message, package_id=package_id, actual=actual, **context)
        self.package_id = package_id
        self.actual = actual


class ConcurrentModificationError(DomainError):
    """Raised when a transition lost a compare-and-set race on the package row."""

    def __init__(self, message: str, *, package_id=None, expected=None, **context: Any):
        super().__init__(message, package_id=package_id, expected=expected, **context)
        self.package_id = package_id
        self.expected = expected
