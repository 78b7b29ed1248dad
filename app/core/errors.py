"""
Error taxonomy shared by services and the HTTP layer.

Every error carries the HTTP status it maps to, a stable machine-readable
``error_code`` and optional ``details``/``headers``. Services raise these
directly; ``app.core.middleware`` renders them.
"""
from typing import Any, Dict, Optional


class APIError(Exception):
    """Base application error"""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.headers = headers or {}


class ValidationError(APIError):
    """Malformed or out-of-range input. Never retried server-side."""
    status_code = 400
    error_code = "validation_error"


class AuthError(APIError):
    """Missing or unknown caller identity"""
    status_code = 401
    error_code = "auth_error"


class ForbiddenError(APIError):
    """Authenticated caller lacks the required role"""
    status_code = 403
    error_code = "forbidden"


class RateLimitError(APIError):
    """Quota exceeded for the caller's traffic class"""
    status_code = 429
    error_code = "rate_limited"

    def __init__(self, retry_after: int, message: str = "Rate limit exceeded"):
        retry_after = max(1, int(retry_after))
        super().__init__(
            message,
            details={"retry_after": retry_after},
            headers={"Retry-After": str(retry_after)},
        )
        self.retry_after = retry_after


class DependencyError(APIError):
    """A store, cache or model call failed"""
    status_code = 500
    error_code = "dependency_error"


class TransientDependencyError(DependencyError):
    """Timeouts, quota, connection resets: safe to retry idempotent work"""
    error_code = "dependency_unavailable"


class PermanentDependencyError(DependencyError):
    """Malformed model input, schema mismatch: never retried"""
    error_code = "dependency_rejected"


class GenerationError(APIError):
    """Answer generation failed (model unavailable, quota, bad output)"""
    status_code = 503
    error_code = "generation_failed"
