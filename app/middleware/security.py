"""
Security middleware for the Movies API
Adds browser-facing security headers to every response
"""
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers (XSS, CSP, HSTS, etc.)"""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        # XSS Protection & Clickjacking
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"

        # HSTS
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        # Content Security Policy - swagger UI assets come from jsdelivr
        csp_directives = [
            "default-src 'self'",
            "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net",
            "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net",
            "img-src 'self' https://fastapi.tiangolo.com data:",
        ]
        response.headers["Content-Security-Policy"] = "; ".join(csp_directives)

        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response
