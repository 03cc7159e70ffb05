"""Error taxonomy and error handling utilities."""

from promptlab.utils.errors import (
    ConfigurationError,
    DispatchError,
    ErrorCode,
    NetworkError,
    ProviderError,
    UnavailableError,
    UnknownError,
)

__all__ = [
    "ConfigurationError",
    "DispatchError",
    "ErrorCode",
    "NetworkError",
    "ProviderError",
    "UnavailableError",
    "UnknownError",
]
