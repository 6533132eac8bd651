"""HTTP middleware: security headers and request body size limits."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from config.settings import get_settings

logger = logging.getLogger(__name__)

CONTENT_SECURITY_POLICY = "; ".join(
    [
        "default-src 'self'",
        "style-src 'self' 'unsafe-inline' https://unpkg.com",
        "script-src 'self' 'unsafe-inline' https://unpkg.com",
        "img-src 'self' data: https: blob:",
        "connect-src 'self' https://unpkg.com",
        "font-src 'self' https://unpkg.com",
        "object-src 'none'",
        "media-src 'self' blob:",
        "frame-src 'none'",
    ]
)

SECURITY_HEADERS = {
    "Content-Security-Policy": CONTENT_SECURITY_POLICY,
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
}

# Multipart uploads have their own per-file limit
_LIMITED_CONTENT_TYPES = ("application/json", "application/x-www-form-urlencoded")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject JSON and form bodies whose declared length exceeds the configured limit."""

    async def dispatch(self, request: Request, call_next):
        content_type = request.headers.get("content-type", "")
        content_length = request.headers.get("content-length")
        if content_length and content_type.startswith(_LIMITED_CONTENT_TYPES):
            limit = get_settings().json_body_limit_mb * 1024 * 1024
            try:
                too_large = int(content_length) > limit
            except ValueError:
                return JSONResponse(
                    status_code=400,
                    content={"success": False, "error": "Invalid Content-Length header"},
                )
            if too_large:
                logger.warning(f"Rejected {content_length} byte body on {request.url.path}")
                return JSONResponse(
                    status_code=413,
                    content={"success": False, "error": "Request body too large"},
                )
        return await call_next(request)
