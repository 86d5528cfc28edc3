"""
Storefront API — Shared Response Schemas
==========================================

Error envelope, health report and simple message payloads shared by every
router.
"""

from typing import Optional

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "validation_error", "not_found")
        message: Human-readable description, never containing upstream detail
        details: Optional extra context (e.g., which field failed validation)
        request_id: Correlation ID for tracing this error in server logs

    Example:
        {
            "error": "payment_gateway_error",
            "message": "The payment could not be initialised. Please try again later.",
            "request_id": "1f0c2a9b"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring and load balancer probes."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Document store connectivity: connected, disconnected")
    payments: str = Field(description="Payment processor credentials: configured, unconfigured")
    images: str = Field(description="Image host credentials: configured, unconfigured")
    uptime_seconds: float = Field(description="Seconds since service started")
