"""Security headers middleware for the Asthma API.

This middleware adds security headers to all HTTP responses to protect
against common web vulnerabilities including clickjacking and MIME type
sniffing attacks.
"""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from asthma_api.core.config import Settings, get_settings


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses.

    Headers added:
    - X-Content-Type-Options: Prevents MIME type sniffing
    - X-Frame-Options: Prevents clickjacking attacks
    - Strict-Transport-Security: Enforces HTTPS (production only)
    - Content-Security-Policy: Prevents XSS and injection attacks
    - Permissions-Policy: Restricts browser features
    - Referrer-Policy: Controls referrer information
    - Cache-Control: Keeps authenticated responses out of shared caches
    """

    def __init__(self, app: ASGIApp, settings: Settings | None = None) -> None:
        super().__init__(app)
        self.settings = settings

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Process the request and add security headers to the response.

        Args:
            request: The incoming request.
            call_next: The next middleware/endpoint to call.

        Returns:
            The response with security headers added.
        """
        settings = self.settings or get_settings()

        if not settings.security_headers_enabled:
            return await call_next(request)

        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"

        if settings.is_production:
            response.headers["Strict-Transport-Security"] = (
                f"max-age={settings.hsts_max_age}; includeSubDomains"
            )

        response.headers["Content-Security-Policy"] = settings.csp_policy
        response.headers["Permissions-Policy"] = settings.permissions_policy
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # Responses may carry PHI or tokens
        response.headers.setdefault("Cache-Control", "no-store")

        return response
