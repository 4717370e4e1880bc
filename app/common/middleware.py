"""
Middleware for handling multi-tenancy
"""
from fastapi import Request, status
from fastapi.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware
from uuid import UUID, uuid4
import logging

logger = logging.getLogger(__name__)

TENANT_HEADER = "X-Tenant-ID"
REQUEST_ID_HEADER = "X-Request-ID"


class TenantMiddleware(BaseHTTPMiddleware):
    """
    Middleware that extracts tenant_id from the X-Tenant-ID header
    and sets it on request.state for use in endpoint handlers.

    The header is optional: when absent, the auth dependency falls back
    to the user's default membership.
    """

    async def dispatch(self, request: Request, call_next):
        request.state.tenant_id = None

        tenant_header = request.headers.get(TENANT_HEADER)
        if tenant_header:
            try:
                request.state.tenant_id = UUID(tenant_header)
            except ValueError:
                return Response(
                    content='{"detail":"Invalid X-Tenant-ID format. Must be a valid UUID"}',
                    status_code=status.HTTP_400_BAD_REQUEST,
                    media_type="application/json"
                )
            logger.debug(f"Request to {request.url.path} with tenant_id: {request.state.tenant_id}")

        response = await call_next(request)

        if request.state.tenant_id:
            response.headers[TENANT_HEADER] = str(request.state.tenant_id)

        return response


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Assigns a request id (or reuses the caller's) so error bodies and logs can be correlated
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers for production
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response
