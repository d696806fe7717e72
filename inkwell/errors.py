"""Error hierarchy - typed, categorized exceptions for Inkwell failure modes.

Invariants:
    - Every error has a code (str) and a category (ErrorCategory)
    - Persistence failures inside a unit of work are translated, never swallowed
    - to_dict() produces the envelope the calling layer renders
"""

from enum import Enum
from typing import Any, Optional

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    PERMISSION = "permission"
    CONFLICT = "conflict"
    INVARIANT = "invariant"


class InkwellError(Exception):
    """Base exception for all Inkwell errors."""

    category: ErrorCategory = ErrorCategory.VALIDATION
    default_code: str = "INKWELL_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": True,
            "code": self.code,
            "category": self.category.value,
            "message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.code}: {self.message}>"


class NotFoundError(InkwellError):
    """Lookup by id or unique field found nothing."""
    category = ErrorCategory.NOT_FOUND
    default_code = "NOT_FOUND"

    def __init__(self, entity: str, identifier: Any):
        super().__init__(
            f"{entity} not found",
            details={"entity": entity, "id": str(identifier)},
        )


class ValidationFailedError(InkwellError):
    """A write violated a structural constraint (required, foreign key, unique)."""
    category = ErrorCategory.VALIDATION
    default_code = "VALIDATION_FAILED"


class PermissionDeniedError(InkwellError):
    """The actor lacks the publication role the operation requires."""
    category = ErrorCategory.PERMISSION
    default_code = "PERMISSION_DENIED"


class ConflictError(InkwellError):
    """A state-machine precondition failed or a uniqueness race was lost."""
    category = ErrorCategory.CONFLICT
    default_code = "CONFLICT"


class InvariantViolationError(InkwellError):
    """The operation targets a relationship that does not exist."""
    category = ErrorCategory.INVARIANT
    default_code = "INVARIANT_VIOLATION"


def from_integrity_error(
    exc: IntegrityError,
    message: str,
    error_cls: type[InkwellError] = ValidationFailedError,
    **details: Any,
) -> InkwellError:
    """Wrap a database IntegrityError in the given Inkwell error type."""
    details["reason"] = _driver_reason(exc)
    return error_cls(message, details=details)


def from_operational_error(
    exc: OperationalError,
    message: str,
    **details: Any,
) -> ConflictError:
    """
    Wrap a lock or serialization failure in a ConflictError.

    A concurrent writer committed first; the unit of work was rolled back
    and the caller may reload and try again.
    """
    details["reason"] = _driver_reason(exc)
    return ConflictError(message, details=details)


def _driver_reason(exc: DBAPIError) -> str:
    return str(exc.orig) if exc.orig is not None else str(exc)
