"""
Real Estate API - Middleware Package
=====================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → Route Handler

    1. Request ID: assigns the correlation ID echoed in error bodies and
       the X-Request-ID response header
    2. Access Log: one line per request with status and duration, tagged
       with the request ID

    Responses travel the chain in reverse, so the access log sees the final
    status code and the request ID header is added last.
"""

from realestate.middleware.logging import RequestLoggingMiddleware
from realestate.middleware.request_id import RequestIDMiddleware, request_id_var

__all__ = ["RequestIDMiddleware", "RequestLoggingMiddleware", "request_id_var"]
