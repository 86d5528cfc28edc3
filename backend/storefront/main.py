"""
Storefront API — FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers and
       returns the app; the lifespan builds the external clients.
Who:   uvicorn (storefront.main:app) and the test suite.

Application Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                     FastAPI App                         │
    │                                                         │
    │  Middleware: RequestID → RateLimit → Logging →          │
    │              Sanitize → SecurityHeaders → GZip → CORS   │
    │                                                         │
    │  Routes: /api  /api/v1/payments  /api/v1/payment        │
    │          /api/v1/search  /api/v1/product  /api/v1/cat   │
    │          /api/v1/test  /health                          │
    │                                                         │
    │  Exception Handlers:                                    │
    │  Validation→400  NotFound→404  Payment/Image→502        │
    │  Database→500    anything else→500                      │
    └─────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config check → MongoDB client, Cloudinary config,
              Stripe gateway (unless services were injected)
    Shutdown: close the MongoDB client
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront import __version__
from storefront.config import settings
from storefront.dependencies import Services, build_services, close_services
from storefront.exceptions import (
    DatabaseError,
    ImageHostError,
    NotFoundError,
    PaymentGatewayError,
    RateLimitExceededError,
    StorefrontError,
    ValidationError,
)
from storefront.middleware.logging import RequestLoggingMiddleware
from storefront.middleware.rate_limit import RateLimitMiddleware
from storefront.middleware.request_id import RequestIDMiddleware, request_id_var
from storefront.middleware.sanitize import SanitizeMiddleware
from storefront.middleware.security_headers import SecurityHeadersMiddleware
from storefront.routes import health, payments, products, search

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries log every operation at DEBUG/INFO.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("stripe").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("Storefront API %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: health checks and non-payment routes still work.
        logger.error("Configuration error: %s", str(e))

    owns_services = getattr(app.state, "services", None) is None
    if owns_services:
        app.state.services = build_services(settings)

    logger.info("Server ready at http://%s:%d", settings.host, settings.port)
    logger.info("=" * 60)

    yield

    logger.info("Storefront API shutting down...")
    if owns_services:
        await close_services(app.state.services)
        app.state.services = None
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error(status_code: int, error: str, message: str, details=None, headers=None) -> JSONResponse:
    content = {
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _describe_validation_errors(exc: RequestValidationError):
    """Turns FastAPI's error list into one readable message and a field list."""
    fields = []
    parts = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "header", "path")]
        field = ".".join(loc) or "body"
        fields.append(field)
        parts.append(f"{field}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts) or "Invalid request", fields


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        ValidationError / RequestValidationError → 400
        NotFoundError                            → 404
        HTTPException (routing)                  → its own status
        RateLimitExceededError                   → 429
        PaymentGatewayError                      → 502
        ImageHostError                           → 502
        DatabaseError                            → 500
        StorefrontError (base)                   → 500
        Exception (fallback)                     → 500

    Upstream detail (exc.context) is logged with the request ID and never
    included in the response body, except for client validation details.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return _error(400, "validation_error", exc.message, details={"field": exc.field} if exc.field else None)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        message, fields = _describe_validation_errors(exc)
        logger.warning("[%s] Request validation failed on %s: %s", rid, request.url.path, fields)
        return _error(400, "validation_error", message, details={"fields": fields})

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error(404, "not_found", exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        # Unknown routes and wrong methods from the router.
        error = "not_found" if exc.status_code == 404 else "http_error"
        return _error(exc.status_code, error, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return _error(
            429,
            "rate_limit_exceeded",
            exc.message,
            details={"retry_after": exc.retry_after},
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(PaymentGatewayError)
    async def handle_payment_gateway_error(request: Request, exc: PaymentGatewayError):
        rid = request_id_var.get("")
        logger.error("[%s] Payment gateway error at step %s | Context: %s", rid, exc.step, exc.context)
        return _error(502, "payment_gateway_error", exc.message)

    @app.exception_handler(ImageHostError)
    async def handle_image_host_error(request: Request, exc: ImageHostError):
        rid = request_id_var.get("")
        logger.error("[%s] Image host error: %s | Context: %s", rid, exc.message, exc.context)
        return _error(502, "image_host_error", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return _error(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(StorefrontError)
    async def handle_storefront_error(request: Request, exc: StorefrontError):
        rid = request_id_var.get("")
        logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        return _error(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return _error(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(services: Optional[Services] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        services: Pre-built collaborators. When given, the lifespan uses them
                  as-is instead of connecting to MongoDB, Stripe and
                  Cloudinary (used by tests).
    """
    app = FastAPI(
        title="Storefront API",
        description=(
            "E-commerce REST API: product search and catalog over MongoDB, "
            "Stripe payment sheet provisioning and Cloudinary product images."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.services = services

    # Middleware executes in REVERSE order of addition (last added runs first).
    origins = settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(SanitizeMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware)
    # Outermost, so rejected requests still carry an ID.
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(payments.router)
    app.include_router(search.router)
    app.include_router(products.router)
    app.include_router(products.category_router)

    return app


# uvicorn expects `storefront.main:app` to be importable
app = create_app()
