"""Error taxonomy and helpers for consistent error responses."""

import logging
from enum import Enum
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Standard error codes for API responses."""

    # Request errors
    INVALID_REQUEST = "INVALID_REQUEST"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Dispatch precondition errors
    CREDENTIAL_MISSING = "CREDENTIAL_MISSING"
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"

    # Provider errors
    AUTH_INVALID = "AUTH_INVALID"
    RATE_LIMITED = "RATE_LIMITED"
    MODEL_NOT_FOUND = "MODEL_NOT_FOUND"
    PROVIDER_ERROR = "PROVIDER_ERROR"

    # Transport and server errors
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse(BaseModel):
    """HTTP error response model."""

    detail: str
    code: ErrorCode | None = None
    request_id: str | None = None


# User-friendly error messages by error code
USER_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_REQUEST: "Invalid request format",
    ErrorCode.VALIDATION_ERROR: "Request validation failed",
    ErrorCode.CREDENTIAL_MISSING: "An API key for the selected provider is not set",
    ErrorCode.PROVIDER_UNAVAILABLE: (
        "The selected provider is not available here. Please choose a different provider."
    ),
    ErrorCode.AUTH_INVALID: "The provider rejected the API key",
    ErrorCode.RATE_LIMITED: (
        "The provider is experiencing high demand. Please try again in a moment."
    ),
    ErrorCode.MODEL_NOT_FOUND: "The requested model was not found",
    ErrorCode.PROVIDER_ERROR: "Failed to get response from API",
    ErrorCode.NETWORK_ERROR: "Could not reach the provider. Please check your connection.",
    ErrorCode.TIMEOUT: "The request timed out. Please try again.",
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred",
}

DEFAULT_USER_MESSAGE = "An unexpected error occurred"

# Maximum length for error details
MAX_ERROR_LENGTH = 500


class DispatchError(Exception):
    """Base class for failures of a provider dispatch.

    Attributes:
        message: Human-readable message, safe to show to the user.
        provider: Provider the call was meant for, if known.
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500

    def __init__(self, message: str | None = None, *, provider: str | None = None):
        self.message = message or get_user_message(self.code)
        self.provider = provider
        super().__init__(self.message)


class ConfigurationError(DispatchError):
    """A required credential is not configured."""

    code = ErrorCode.CREDENTIAL_MISSING
    status_code = 400


class UnavailableError(DispatchError):
    """The local-only provider was selected from a non-local context."""

    code = ErrorCode.PROVIDER_UNAVAILABLE
    status_code = 400


class ProviderError(DispatchError):
    """The provider answered with a non-2xx status or an unusable body.

    Attributes:
        upstream_status: HTTP status returned by the provider, if any.
    """

    code = ErrorCode.PROVIDER_ERROR
    status_code = 502

    def __init__(
        self,
        message: str | None = None,
        *,
        provider: str | None = None,
        upstream_status: int | None = None,
    ):
        self.upstream_status = upstream_status
        super().__init__(message, provider=provider)
        if upstream_status is not None:
            self.code = _code_for_status(upstream_status)


class NetworkError(DispatchError):
    """The request never produced an HTTP response."""

    code = ErrorCode.NETWORK_ERROR
    status_code = 503


class UnknownError(DispatchError):
    """Anything the other dispatch errors do not describe."""

    code = ErrorCode.INTERNAL_ERROR
    status_code = 500


def _code_for_status(status_code: int) -> ErrorCode:
    if status_code in (401, 403):
        return ErrorCode.AUTH_INVALID
    if status_code == 429:
        return ErrorCode.RATE_LIMITED
    if status_code == 404:
        return ErrorCode.MODEL_NOT_FOUND
    return ErrorCode.PROVIDER_ERROR


def get_user_message(code: ErrorCode | None, default: str | None = None) -> str:
    """Get user-appropriate error message for an error code.

    Args:
        code: The error code.
        default: Default message if code not found.

    Returns:
        User-friendly error message.
    """
    if code is None:
        return default or DEFAULT_USER_MESSAGE

    return USER_MESSAGES.get(code, default or DEFAULT_USER_MESSAGE)


def truncate_error(error: str, max_length: int = MAX_ERROR_LENGTH) -> str:
    """Truncate error message if too long."""
    if len(error) <= max_length:
        return error

    return error[: max_length - 3] + "..."


def create_error_response(
    code: ErrorCode,
    detail: str | None = None,
    request_id: str | None = None,
) -> ErrorResponse:
    """Create a standardized error response.

    Args:
        code: The error code.
        detail: Optional custom detail message.
        request_id: Optional request ID.

    Returns:
        ErrorResponse model.
    """
    message = detail if detail else get_user_message(code)
    return ErrorResponse(
        detail=truncate_error(message),
        code=code,
        request_id=request_id,
    )


def classify_exception(exc: Exception) -> ErrorCode:
    """Classify an exception to an error code.

    Args:
        exc: The exception to classify.

    Returns:
        Appropriate error code.
    """
    if isinstance(exc, DispatchError):
        return exc.code

    if isinstance(exc, ValidationError):
        return ErrorCode.VALIDATION_ERROR

    if isinstance(exc, httpx.HTTPStatusError):
        return _code_for_status(exc.response.status_code)

    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        return ErrorCode.TIMEOUT

    if isinstance(exc, (httpx.TransportError, ConnectionError)):
        return ErrorCode.NETWORK_ERROR

    return ErrorCode.INTERNAL_ERROR


def log_error(
    exc: Exception,
    code: ErrorCode | None = None,
    request_id: str | None = None,
    **context: Any,
) -> None:
    """Log an error with context.

    Internal errors are logged with their traceback, user-facing ones as a
    single error line.

    Args:
        exc: The exception that occurred.
        code: Optional pre-classified error code.
        request_id: Optional request ID.
        **context: Additional context to include in log.
    """
    if code is None:
        code = classify_exception(exc)

    log_extra = {
        "error_code": code.value,
        "error_type": type(exc).__name__,
        "request_id": request_id,
        **context,
    }

    if code == ErrorCode.INTERNAL_ERROR:
        logger.exception("Internal error occurred", extra=log_extra)
    else:
        logger.error(f"Request error: {exc}", extra=log_extra)
