"""
Storefront API — Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for the different failure kinds.
How:   Each exception class carries a user-safe message and an optional
       context dict. Global exception handlers (registered in main.py) catch
       these and return structured JSON error responses.
Who:   Raised by services, adapters and middleware; caught by global handlers.

Exception Hierarchy:
    StorefrontError (base)
    ├── ValidationError          → 400 Bad Request
    ├── NotFoundError            → 404 Not Found
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── DatabaseError            → 500 Internal Server Error
    ├── PaymentGatewayError      → 502 Bad Gateway
    └── ImageHostError           → 502 Bad Gateway

Upstream error text (processor messages, driver errors) goes into `context`,
which is logged but never returned to the client.
"""

from typing import Any, Dict, Optional


class StorefrontError(Exception):
    """
    Base exception for all Storefront application errors.

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


class ValidationError(StorefrontError):
    """
    Raised when client input fails validation.

    When:    Malformed payment body, oversized search query, invalid object id,
             unsupported image upload.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "shippingAddress: Field required",
            "details": {"field": "shippingAddress"}
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


class NotFoundError(StorefrontError):
    """Raised when a requested document does not exist. HTTP 404."""

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


class DatabaseError(StorefrontError):
    """
    Raised when a document store operation fails.

    When:    Server selection timeout, network error, query failure.
    HTTP:    500 Internal Server Error

    The client always sees a generic message. The driver error is kept in
    context for the server log.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PaymentGatewayError(StorefrontError):
    """
    Raised when any payment processor call fails.

    When:    Customer, ephemeral key or payment intent creation rejected or
             unreachable.
    HTTP:    502 Bad Gateway (one status for every payment endpoint)

    Attributes:
        step: Which orchestration step failed ("customer", "ephemeral_key",
              "payment_intent"). Logged, not returned.
    """

    def __init__(
        self,
        message: str = "The payment could not be initialised. Please try again later.",
        step: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if step:
            ctx["step"] = step
        super().__init__(message=message, context=ctx)
        self.step = step


class ImageHostError(StorefrontError):
    """Raised when the image host rejects or fails an upload. HTTP 502."""

    def __init__(
        self,
        message: str = "The image could not be uploaded. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(StorefrontError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:    429 Too Many Requests, with a Retry-After header.
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
