"""
RecipeBox Backend - Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for the recipe service.
Why:   Targeted error handling with the right HTTP status code, and a clean
       boundary between driver exceptions (SQLAlchemy, Redis) and the rest of
       the application.
How:   Each exception carries a user-facing message and an optional context
       dict. Global exception handlers (registered in main.py) turn them into
       structured JSON error responses.
Who:   Raised by adapters, the repository and route handlers.

Exception Hierarchy:
    RecipeBoxError (base)
    ├── ValidationError          → 400 Bad Request
    ├── NotFoundError            → 404 Not Found
    ├── StoreError               → 500 Internal Server Error
    ├── CacheError               → recovered inside the repository, never surfaced
    └── CircuitBreakerOpenError  → converted to CacheError by the cache adapter

Cache errors have no status code mapping: the repository falls back to the
store on cache failures, so a request never fails because the cache is down.
"""

from typing import Any, Dict, Optional


class RecipeBoxError(Exception):
    """
    Base exception for all RecipeBox application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned for 5xx errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(RecipeBoxError):
    """
    Raised when client input fails validation.

    When:    Blank recipe name, blank search tag, empty update payload.
    HTTP:    400 Bad Request

    FastAPI's own RequestValidationError (unparsable JSON, wrong field types,
    malformed UUID in the path) is mapped to the same 400 response in main.py.
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


class NotFoundError(RecipeBoxError):
    """
    Raised when a requested recipe does not exist.

    When:    GET/PUT/DELETE /recipes/{id} with an id that matches no document.
    HTTP:    404 Not Found

    The store adapter reports "no match" as None or a zero count; the
    repository converts that into this exception.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class StoreError(RecipeBoxError):
    """
    Raised when a document store operation fails.

    What:    A find, insert, update or delete against the store failed.
    When:    Connection lost mid-query, constraint violation, pool timeout.
    HTTP:    500 Internal Server Error

    A mutation that fails with StoreError must not invalidate the cache:
    nothing changed in the store, so the cached snapshot is no more stale
    than it was before the attempt.

    Security Note:
        The response message is always generic. Driver details (SQL text,
        constraint names) are kept in `context` and logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class CacheError(RecipeBoxError):
    """
    Raised by the cache adapter when the cache backend fails.

    What:    The backend is unreachable, timed out, or returned an error.
    Not:     A missing key. Absent keys are reported as None by
             RecipeCache.get(), never as an exception.

    Handling:
        - On a list read: the repository falls back to the store (degraded read).
        - On population or invalidation: logged and counted, request still succeeds.
    """

    def __init__(
        self,
        message: str = "Cache backend operation failed",
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if operation:
            ctx["operation"] = operation
        super().__init__(message=message, context=ctx)
        self.operation = operation


class CircuitBreakerOpenError(RecipeBoxError):
    """
    Raised when the cache circuit breaker is in OPEN state.

    What:    Too many consecutive cache failures tripped the breaker.
    When:    After cache_cb_failure_threshold consecutive failures (default: 5).

    How the breaker moves:
        CLOSED (normal) → failures increment counter
        → threshold reached → OPEN (reject calls for recovery_time seconds)
        → recovery timeout elapsed → HALF_OPEN (calls pass through again)
        → next call succeeds → CLOSED, next call fails → OPEN again

    While OPEN, cache calls fail in under a millisecond instead of waiting
    for a socket timeout on every request.
    """

    def __init__(
        self,
        recovery_time: int = 30,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Cache is temporarily bypassed due to repeated failures. "
            f"A new attempt will be made in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time
