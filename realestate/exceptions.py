"""
Real Estate API - Custom Exception Hierarchy
============================================

What:  Application-specific exceptions for each failure kind the API reports.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers registered in main.py turn them into structured
       JSON error responses with the matching HTTP status code.
Who:   Raised by services and security dependencies; caught by global handlers.

Exception Hierarchy:
    RealEstateError (base)
    ├── ValidationError              → 400 Bad Request
    │   └── OutOfRangeError          → 400 Bad Request
    ├── UnauthorizedError            → 401 Unauthorized
    ├── NotFoundError                → 404 Not Found
    ├── DuplicateKeyError            → 409 Conflict
    ├── ConcurrencyConflictError     → 409 Conflict (refresh and retry)
    └── DatabaseError                → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class RealEstateError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(RealEstateError):
    """
    Raised when client input fails a business rule.

    When:    Empty image payload, malformed version token, oversized upload.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Image file is empty.",
            "details": {"field": "file"}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class OutOfRangeError(ValidationError):
    """A numeric field fell outside its allowed bounds (e.g. construction year)."""

    def __init__(
        self,
        field: str,
        value: Any,
        minimum: Any,
        maximum: Any,
    ):
        super().__init__(
            message=f"{field} must be between {minimum} and {maximum} (got {value}).",
            field=field,
            context={"value": value, "min": minimum, "max": maximum},
        )
        self.value = value
        self.minimum = minimum
        self.maximum = maximum


class UnauthorizedError(RealEstateError):
    """
    Raised when a protected route is called without a valid bearer token,
    or when login credentials are rejected.

    HTTP:    401 Unauthorized, with `WWW-Authenticate: Bearer`
    """

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(RealEstateError):
    """
    Raised when a requested resource does not exist.

    When:    Property or owner id absent (including the owner referenced by a
             new property).
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class DuplicateKeyError(RealEstateError):
    """
    Raised when a write would violate a uniqueness constraint.

    When:    Creating a property whose internal code already exists.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        field: str,
        value: Any,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx.update({"field": field, "value": value})
        super().__init__(message=f"{field} '{value}' already exists.", context=ctx)
        self.field = field
        self.value = value


class ConcurrencyConflictError(RealEstateError):
    """
    Raised when the caller's version token no longer matches the stored row.

    When:    Another writer changed the property after the client read it.
    HTTP:    409 Conflict

    The client is expected to re-read the property and retry with the
    fresh token; the server never retries on its own.
    """

    def __init__(
        self,
        resource: str = "property",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(
            message=(
                f"The {resource} was modified by another process. "
                "Please refresh and retry."
            ),
            context=ctx,
        )


class DatabaseError(RealEstateError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; the context is
    logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
