"""
Storefront API — Middleware Package
=====================================

Cross-cutting concerns applied to every request.

Middleware Chain (request direction):
    Request → [Request ID] → [Rate Limit] → [Logging] → [Sanitize]
            → [Security Headers] → [GZip] → [CORS] → Route Handler

Responses travel back through the same chain in reverse, so the request ID
header and the access-log line see the final status code.
"""
