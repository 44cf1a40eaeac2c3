"""
Security hardening module.

Provides CSRF protection, rate limiting, input sanitization and security
headers for the application.
"""

import re
from datetime import timedelta
from typing import Any

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_wtf.csrf import CSRFProtect


# Initialize extensions at module level
csrf = CSRFProtect()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200 per day", "50 per hour"]
)


# Security configuration defaults
DEFAULT_CONFIG = {
    'SESSION_COOKIE_SECURE': True,
    'SESSION_COOKIE_HTTPONLY': True,
    'SESSION_COOKIE_SAMESITE': 'Lax',
    'PERMANENT_SESSION_LIFETIME': timedelta(hours=1),
    'WTF_CSRF_TIME_LIMIT': 3600,  # 1 hour
    'WTF_CSRF_SSL_STRICT': True,
}


def add_security_headers(response):
    """
    Add security headers to response.
    This is a standalone function that can be used as an after_request handler.
    """
    response.headers['Content-Security-Policy'] = "default-src 'none'; frame-ancestors 'none'"
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
    response.headers['Cache-Control'] = 'no-store'

    return response


def init_security(app):
    """Initialize security extensions with the app."""
    for key, value in DEFAULT_CONFIG.items():
        if key not in app.config:
            app.config[key] = value

    csrf.init_app(app)
    limiter.init_app(app)


# Rate limit configurations
RATE_LIMITS = {
    'read': "120 per minute",
    'validate': "60 per minute",
    'write': "20 per minute",
}


def rate_limit_read():
    """Decorator for read endpoint rate limiting."""
    return limiter.limit(RATE_LIMITS['read'])


def rate_limit_validate():
    """Decorator for validation endpoint rate limiting."""
    return limiter.limit(RATE_LIMITS['validate'])


def rate_limit_write():
    """Decorator for create/update endpoint rate limiting."""
    return limiter.limit(RATE_LIMITS['write'])


# Input sanitization
CONTROL_CHAR_PATTERN = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]')


def sanitize_string(value: Any, max_length: int = 10000) -> Any:
    """
    Remove control characters from a string value and cap its length.

    HTML is left in place; validation rejects it with a field message.

    Args:
        value: Input value; non-strings are returned unchanged
        max_length: Maximum allowed length

    Returns:
        Sanitized value
    """
    if not isinstance(value, str):
        return value

    value = CONTROL_CHAR_PATTERN.sub('', value)
    return value[:max_length]


def sanitize_payload(payload: Any) -> Any:
    """
    Recursively sanitize all string values in a payload.

    Args:
        payload: Dictionary, list or scalar to sanitize

    Returns:
        Sanitized copy with the same structure
    """
    if isinstance(payload, dict):
        return {k: sanitize_payload(v) for k, v in payload.items()}
    elif isinstance(payload, list):
        return [sanitize_payload(item) for item in payload]
    else:
        return sanitize_string(payload)

