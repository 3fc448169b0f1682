"""
Unified exception definitions for polyarb.

All custom exceptions inherit from PolyArbError for easy catching.
"""

from typing import Any, Optional


class PolyArbError(Exception):
    """Base exception for all polyarb errors."""

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "POLYARB_ERROR"
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for logging/serialization."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(PolyArbError):
    """Configuration-related errors."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, code="CONFIG_ERROR", **kwargs)


class ProviderError(PolyArbError):
    """Data provider errors (API failures, rate limits, etc.)."""

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        recoverable: bool = True,
        status_code: Optional[int] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        details["provider"] = provider
        details["recoverable"] = recoverable
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, code="PROVIDER_ERROR", details=details, **kwargs)
        self.provider = provider
        self.recoverable = recoverable
        self.status_code = status_code


class RateLimitError(ProviderError):
    """API rate limit exceeded."""

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        retry_after: Optional[int] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        details["retry_after"] = retry_after
        super().__init__(
            message,
            provider=provider,
            recoverable=True,
            status_code=429,
            details=details,
            **kwargs,
        )
        self.code = "RATE_LIMIT"
        self.retry_after = retry_after


class UpstreamUnavailable(ProviderError):
    """The market catalog could not be fetched for this cycle."""

    def __init__(self, message: str, *, provider: str, **kwargs):
        super().__init__(message, provider=provider, recoverable=True, **kwargs)
        self.code = "UPSTREAM_UNAVAILABLE"


class TokenBookUnusable(PolyArbError):
    """
    An order book for one token could not be used.

    Expected during normal scanning (thin or delisted books). Providers
    convert it into an `Unusable` result instead of letting it escape.
    """

    def __init__(self, message: str, *, token_id: str, reason: str, **kwargs):
        details = kwargs.pop("details", {})
        details["token_id"] = token_id
        details["reason"] = reason
        super().__init__(message, code="TOKEN_BOOK_UNUSABLE", details=details, **kwargs)
        self.token_id = token_id
        self.reason = reason


class NotificationDeliveryFailed(PolyArbError):
    """A notification channel failed to deliver a message."""

    def __init__(
        self,
        message: str,
        *,
        channel: str,
        cause: Optional[Exception] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        details["channel"] = channel
        if cause:
            details["cause"] = str(cause)
        super().__init__(message, code="NOTIFICATION_FAILED", details=details, **kwargs)
        self.channel = channel
        self.cause = cause


class InvalidTransitionError(PolyArbError):
    """Illegal opportunity status transition."""

    def __init__(self, message: str, *, current: str, requested: str, **kwargs):
        details = kwargs.pop("details", {})
        details["current"] = current
        details["requested"] = requested
        super().__init__(message, code="INVALID_TRANSITION", details=details, **kwargs)
        self.current = current
        self.requested = requested
