"""
Outbound API gateway for the Naver Cloud Platform.

This module provides functionality for:
- Signing requests with API-key headers or HMAC-SHA256 signatures
- Executing GET requests with timeouts and exponential backoff retries
- Classifying failures into a stable error taxonomy

Main classes:
- MapsApiClient: Geocode, reverse geocode, directions and static map calls
- BillingApiClient: Signed cost/usage calls
- RequestExecutor: Retry/backoff/timeout state machine
- RetryPolicy: Per-call timeout and retry budget

Errors:
- GatewayError: Base classified failure (MapsApiError, BillingApiError)
- ProviderResponseError: Envelope reported a failure status
- ValidationError: Malformed caller input
"""

from .gateway_auth import ApiKeyCredential, SignedCredential, build_headers, make_signature
from .gateway_client import BillingApiClient, MapsApiClient
from .gateway_errors import (
    BillingApiError,
    ClientErrorCause,
    ErrorKind,
    ErrorRecord,
    GatewayError,
    MapsApiError,
    ProviderResponseError,
    ValidationError,
    format_error_response,
)
from .gateway_executor import AttemptOutcome, RequestAttempt, RequestExecutor, RetryPolicy

__all__ = [
    # Main classes
    "MapsApiClient",
    "BillingApiClient",
    "RequestExecutor",
    "RetryPolicy",
    "RequestAttempt",
    "AttemptOutcome",

    # Auth
    "ApiKeyCredential",
    "SignedCredential",
    "build_headers",
    "make_signature",

    # Errors
    "GatewayError",
    "MapsApiError",
    "BillingApiError",
    "ProviderResponseError",
    "ValidationError",
    "ErrorKind",
    "ErrorRecord",
    "ClientErrorCause",
    "format_error_response",
]
