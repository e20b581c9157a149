"""
Application error taxonomy.

Every error carries the HTTP status it maps to and a user-facing message.
Diagnostics that must never reach the client (upstream bodies, raw
completions) are kept on the exception for logging only.
"""
from typing import Any, Dict, Optional


class AppError(Exception):
    """Base class for errors rendered as ``{"error": message}``."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def extra(self) -> Dict[str, Any]:
        """Additional fields merged into the JSON body."""
        return {}


class Unauthenticated(AppError):
    status_code = 401
    default_message = "Authorization header missing"


class InvalidToken(AppError):
    status_code = 401
    default_message = "Invalid or expired token"


class InvalidInput(AppError):
    status_code = 400
    default_message = "Invalid request"


class QuotaExceeded(AppError):
    status_code = 429
    default_message = "Daily free limit reached"

    def __init__(self, feature: str, limit: int, used: int, message: Optional[str] = None):
        self.feature = feature
        self.limit = limit
        self.used = used
        super().__init__(message or f"Daily free limit reached for {feature} ({limit} per day)")

    def extra(self) -> Dict[str, Any]:
        return {"limit": self.limit, "used": self.used}


class UpstreamError(AppError):
    status_code = 502
    default_message = "AI service error. Please try again later."

    def __init__(
        self,
        message: Optional[str] = None,
        upstream_status: Optional[int] = None,
        upstream_body: Optional[str] = None,
    ):
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body
        super().__init__(message)


class EmptyCompletion(AppError):
    status_code = 502
    default_message = "AI returned an empty response"


class MalformedCompletion(AppError):
    status_code = 502
    default_message = "Could not parse AI response"

    def __init__(self, raw_text: str = "", message: Optional[str] = None):
        self.raw_text = raw_text
        super().__init__(message)


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class InternalError(AppError):
    status_code = 500
    default_message = "Internal server error"
