"""
Error taxonomy for the rule configuration engine.

Errors fall into two families:

- Validation errors (caller-correctable): IncompleteTemplateError,
  InvalidRangeError, DuplicateNameError, DuplicateIdError, LockedEntryError.
  The stored configuration is never partially updated when one is raised.
- Lookup errors: NotFoundError, raised whenever an operation targets an id
  that does not exist. Unknown ids are never ignored silently.

Every error carries a stable ``code`` and a ``details`` dict and can be
rendered as an ``ErrorResponse`` for the API layer.
"""

from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error body returned by the API."""

    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class ConfigurationError(Exception):
    """Base exception for rule configuration failures."""

    status_code: int = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(code=self.code, message=self.message, details=self.details)


class IncompleteTemplateError(ConfigurationError):
    """A signal template was saved with required fields missing."""

    status_code = 422

    def __init__(self, missing_fields: Iterable[str]):
        self.missing_fields: List[str] = list(missing_fields)
        super().__init__(
            "INCOMPLETE_TEMPLATE",
            f"Signal template is missing required field(s): {', '.join(self.missing_fields)}",
            {"missing_fields": self.missing_fields},
        )


class InvalidRangeError(ConfigurationError):
    """A numeric field is outside its allowed range."""

    status_code = 422

    def __init__(self, field: str, message: str, value: Any = None):
        self.field = field
        super().__init__("INVALID_RANGE", message, {"field": field, "value": value})


class NotFoundError(ConfigurationError):
    """An operation targeted an id that does not exist."""

    status_code = 404

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(
            "NOT_FOUND",
            f"{kind} '{identifier}' not found",
            {"kind": kind, "id": identifier},
        )


class DuplicateNameError(ConfigurationError):
    """A name collides with an existing entry where uniqueness is enforced."""

    status_code = 409

    def __init__(self, kind: str, name: str):
        super().__init__(
            "DUPLICATE_NAME",
            f"{kind} named '{name}' already exists",
            {"kind": kind, "name": name},
        )


class DuplicateIdError(ConfigurationError):
    """An entry with the same id is already present in the collection."""

    status_code = 409

    def __init__(self, kind: str, identifier: str):
        super().__init__(
            "DUPLICATE_ID",
            f"{kind} with id '{identifier}' already exists",
            {"kind": kind, "id": identifier},
        )


class LockedEntryError(ConfigurationError):
    """A required entry or an immutable field was asked to change."""

    status_code = 409

    def __init__(self, kind: str, identifier: str, message: str):
        super().__init__(
            "LOCKED_ENTRY",
            message,
            {"kind": kind, "id": identifier},
        )
