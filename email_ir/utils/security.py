"""
Email IR Security Utilities

Provides security middleware and utilities for the API:
- Security headers
- Error sanitization (credentials never reach a response body or log line)
"""

import re
import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


# ============================================================================
# SECURITY HEADERS
# ============================================================================

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Cache-Control"] = "no-store"

        return response


# ============================================================================
# ERROR SANITIZATION
# ============================================================================

SENSITIVE_PATTERNS = [
    # Bearer credentials
    (re.compile(r'Bearer\s+[A-Za-z0-9\-._~+/]+=*', re.IGNORECASE), 'Bearer [hidden]'),
    # Provider API keys
    (re.compile(r'sk-[A-Za-z0-9_\-]{16,}'), '[api_key]'),
    (re.compile(r'(access_?token|api_?key)=[^\s&]+', re.IGNORECASE), r'\1=[hidden]'),
    # File paths
    (re.compile(r'/(?:home|usr|app|root)/\S+'), '[path]'),
]


def sanitize_error_message(error, max_length: int = 300) -> str:
    """
    Sanitize error message for safe display to users.

    Removes credentials and file paths and truncates long messages.
    """
    error_str = str(error)

    for pattern, replacement in SENSITIVE_PATTERNS:
        error_str = pattern.sub(replacement, error_str)

    if len(error_str) > max_length:
        error_str = error_str[:max_length] + "..."

    return error_str


def redact_token(token: str) -> str:
    """Loggable form of a credential: length and last four characters."""
    if not token:
        return "<empty>"
    return f"<{len(token)} chars, ...{token[-4:]}>"
