"""
Custom exceptions for Travelogue catalog operations.

Every error raised by a repository or the reorder coordinator carries a
stable ``code`` and, where one input is to blame, the ``field`` that caused
it. The HTTP layer translates these verbatim.
"""

from __future__ import annotations


class CatalogError(Exception):
    """Base exception for all catalog errors."""

    code = "INTERNAL"
    status_code = 500
    error_label = "internal_error"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_body(self) -> dict[str, str]:
        body = {"error": self.error_label, "message": self.message}
        if self.field:
            body["field"] = self.field
        return body

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}, field={self.field!r})"


class ValidationError(CatalogError):
    """Raised when input shape or format is invalid."""

    code = "VALIDATION"
    status_code = 400
    error_label = "validation_error"


class ConflictError(CatalogError):
    """Raised when a slug collides with a sibling's."""

    code = "CONFLICT"
    status_code = 409
    error_label = "conflict"


class HasCollectionsError(ConflictError):
    """Raised when deleting a location that still has collections attached."""

    code = "HAS_COLLECTIONS"
    error_label = "has_collections"


class NotFoundError(CatalogError):
    """Raised when an entity does not exist in the requested scope."""

    code = "NOT_FOUND"
    status_code = 404
    error_label = "not_found"


class InternalError(CatalogError):
    """Raised when storage fails in an unexpected way."""

    pass
