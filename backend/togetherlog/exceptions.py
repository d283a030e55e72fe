"""
TogetherLog Backend - Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for the different error scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return `{"error": ..., "request_id": ...}` JSON bodies with the
       matching HTTP status code.
Who:   Raised by services and route dependencies; caught by global handlers.

Exception Hierarchy:
    TogetherLogError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    │   └── InvalidCoordinates   → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── NotFoundError            → 404 Not Found
    ├── ProviderError            → 500 Internal Server Error (not retried)
    └── PersistenceError         → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class TogetherLogError(Exception):
    """
    Base exception for all TogetherLog application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(TogetherLogError):
    """
    Raised when client input fails validation.

    When:    Missing required fields, out-of-range coordinates, unknown enum
             values, malformed identifiers.
    HTTP:    400 Bad Request

    Raised before any side effect: no provider call and no write happens
    for a request that fails validation.
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


class InvalidCoordinates(ValidationError):
    """
    Raised when a latitude/longitude pair is outside the valid ranges.

    Valid: latitude in [-90, 90], longitude in [-180, 180], both finite numbers.
    """

    def __init__(self, lat: Any = None, lng: Any = None, message: str = "Invalid coordinates"):
        super().__init__(message=message, context={"lat": lat, "lng": lng})
        self.lat = lat
        self.lng = lng


class AuthenticationError(TogetherLogError):
    """
    Raised when the caller identity is missing or malformed.

    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Missing authorization header",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(TogetherLogError):
    """
    Raised when a requested resource does not exist or is not owned by the caller.

    HTTP:    404 Not Found

    Ownership failures use the same message as missing rows so that clients
    cannot discover other users' identifiers.
    """

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ProviderError(TogetherLogError):
    """
    Raised when the upstream reverse-geocoding provider fails.

    When:    Network failure, timeout, non-success status, malformed payload.
    HTTP:    500 Internal Server Error

    The workers never retry automatically; the caller re-submits the job.
    """

    def __init__(
        self,
        message: str = "Reverse geocoding provider failed",
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if status_code is not None:
            ctx["status_code"] = status_code
        super().__init__(message=message, context=ctx)
        self.status_code = status_code


class PersistenceError(TogetherLogError):
    """
    Raised when database reads or write-backs fail unexpectedly.

    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic.
        SQL and constraint details are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
