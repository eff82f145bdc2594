"""
Custom exceptions for Newswire.
Provides structured error handling with detailed context.
"""
from typing import Any, Dict, Optional


class NewswireError(Exception):
    """Base exception class for Newswire."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        self.message = message
        self.details = details or {}
        self.cause = cause
        super().__init__(self.message)

    def __str__(self) -> str:
        result = self.message
        if self.details:
            result += f" | Details: {self.details}"
        if self.cause:
            result += f" | Caused by: {self.cause}"
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "cause": str(self.cause) if self.cause else None,
        }


# ============================================================
# News Collection Exceptions
# ============================================================


class NewsError(NewswireError):
    """Base exception for news-related errors."""
    pass


class NewsCollectionError(NewsError):
    """Raised when a provider cannot be reached or is not configured."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        cause: Optional[Exception] = None,
        **kwargs,
    ):
        details = {"provider": provider} if provider else {}
        details.update(kwargs)
        super().__init__(message, details=details, cause=cause)


class NewsParsingError(NewsError):
    """Raised when a provider payload cannot be parsed into articles."""
    pass


# ============================================================
# API Exceptions
# ============================================================


class APIError(NewswireError):
    """Base exception for API-related errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        **kwargs,
    ):
        details = {
            "status_code": status_code,
            "response_body": response_body,
        }
        details.update(kwargs)
        super().__init__(message, details=details)
        self.status_code = status_code


class AuthenticationError(APIError):
    """Raised when API authentication fails."""
    pass


class RateLimitError(APIError):
    """Raised when API rate limit is exceeded."""

    def __init__(
        self,
        message: str,
        retry_after: Optional[int] = None,
        **kwargs,
    ):
        kwargs.setdefault("retry_after_seconds", retry_after)
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


# ============================================================
# Configuration Exceptions
# ============================================================


class ConfigurationError(NewswireError):
    """Raised when configuration is invalid or missing."""
    pass
