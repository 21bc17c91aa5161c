"""
Kickbase API Integration Module.

Provides the HTTP client, retry policy and response cache for the Kickbase API.
"""

from .cache import APICache, CachedKickbaseClient
from .client import (
    ClientTooOldError,
    EmptyResponseError,
    HTMLResponseError,
    InvalidJSONError,
    KickbaseAPIError,
    KickbaseClient,
    KickbaseHTTPError,
    KickbaseTransportError,
    SyncKickbaseClient,
    UnexpectedFormatError,
    is_retryable,
    parse_response,
)
from .retry import RetryExhaustedError, RetryPolicy

__all__ = [
    # Client
    "KickbaseClient",
    "SyncKickbaseClient",
    "parse_response",
    "is_retryable",
    # Retry
    "RetryPolicy",
    "RetryExhaustedError",
    # Cache
    "APICache",
    "CachedKickbaseClient",
    # Errors
    "KickbaseAPIError",
    "EmptyResponseError",
    "HTMLResponseError",
    "InvalidJSONError",
    "ClientTooOldError",
    "KickbaseHTTPError",
    "KickbaseTransportError",
    "UnexpectedFormatError",
]
