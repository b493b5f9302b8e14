"""
Failure taxonomy for calls to the Naver Cloud Platform APIs.

Every failed call is reduced to an ErrorRecord whose kind is one of a small,
stable set. User-facing messages are rendered from the record alone, so no
stack traces or internal identifiers ever reach a caller.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import requests
from pydantic import ValidationError as SchemaValidationError


class ErrorKind(Enum):
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"


class ClientErrorCause(Enum):
    BAD_REQUEST = "bad_request"
    AUTH = "auth"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    OTHER = "other"


_CLIENT_CAUSES = {
    400: ClientErrorCause.BAD_REQUEST,
    401: ClientErrorCause.AUTH,
    403: ClientErrorCause.FORBIDDEN,
    404: ClientErrorCause.NOT_FOUND,
}

_SERVER_STATUSES = (500, 502, 503)


def classify_status(status_code: int) -> Tuple[ErrorKind, Optional[ClientErrorCause]]:
    """
    Map an HTTP status code to an error kind (and client sub-cause).

    Args:
        status_code: HTTP status of a non-2xx response

    Returns:
        Tuple of (ErrorKind, ClientErrorCause or None)
    """
    if status_code in _CLIENT_CAUSES:
        return ErrorKind.CLIENT_ERROR, _CLIENT_CAUSES[status_code]
    if status_code == 429:
        return ErrorKind.RATE_LIMITED, None
    if status_code in _SERVER_STATUSES:
        return ErrorKind.SERVER_ERROR, None
    if 400 <= status_code < 500:
        return ErrorKind.CLIENT_ERROR, ClientErrorCause.OTHER
    return ErrorKind.UNKNOWN, None


def classify_exception(exc: BaseException) -> ErrorKind:
    """Map a transport-level exception to an error kind."""
    if isinstance(exc, requests.exceptions.Timeout):
        return ErrorKind.TIMEOUT
    return ErrorKind.UNKNOWN


_MAPS_TEMPLATES = {
    ClientErrorCause.BAD_REQUEST: "Bad request. Please check the input values.{details}",
    ClientErrorCause.AUTH: (
        "Authentication failed. Check the NAVER_CLIENT_ID and "
        "NAVER_CLIENT_SECRET environment variables."
    ),
    ClientErrorCause.FORBIDDEN: (
        "Access to the API is forbidden. Check that the API is enabled "
        "for this application in the Naver Cloud Platform console."
    ),
    ClientErrorCause.NOT_FOUND: "The requested resource could not be found.",
    ErrorKind.RATE_LIMITED: "The API call quota was exceeded. Please try again shortly.",
    ErrorKind.SERVER_ERROR: (
        "The Naver API server is temporarily unavailable. Please try again shortly."
    ),
    ErrorKind.TIMEOUT: "The request to the Naver API timed out. Please try again.",
}

_BILLING_TEMPLATES = dict(_MAPS_TEMPLATES)
_BILLING_TEMPLATES.update({
    ClientErrorCause.AUTH: (
        "Billing API authentication failed. Check the NCLOUD_ACCESS_KEY and "
        "NCLOUD_SECRET_KEY environment variables."
    ),
    ClientErrorCause.FORBIDDEN: (
        "Access to the Billing API is forbidden. Check the permissions "
        "in the Naver Cloud Platform console."
    ),
})


@dataclass(frozen=True)
class ErrorRecord:
    """A classified failure of one logical call."""

    kind: ErrorKind
    status_code: Optional[int] = None
    details: str = ""
    cause: Optional[ClientErrorCause] = None

    @classmethod
    def from_status(cls, status_code: int, details: str = "") -> "ErrorRecord":
        kind, cause = classify_status(status_code)
        return cls(kind=kind, status_code=status_code, details=details, cause=cause)

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorRecord":
        return cls(kind=classify_exception(exc), details=str(exc))

    def to_user_message(self, service: str = "API") -> str:
        """
        Render the user-facing message for this record.

        Args:
            service: "API" for the Maps endpoints, "Billing API" for billing

        Returns:
            Message text built only from kind, cause, status and details
        """
        templates = _BILLING_TEMPLATES if service == "Billing API" else _MAPS_TEMPLATES
        key = self.cause if self.kind == ErrorKind.CLIENT_ERROR else self.kind

        template = templates.get(key)
        if template is not None:
            suffix = f" Details: {self.details}" if self.details else ""
            return template.format(details=suffix)

        status = self.status_code if self.status_code is not None else "n/a"
        return f"{service} error occurred ({status}): {self.details}"


class GatewayError(Exception):
    """Base exception for a classified gateway failure."""

    service = "API"

    def __init__(self, record: ErrorRecord, message: str = None):
        self.record = record
        super().__init__(message or f"{self.service} request failed ({record.status_code or record.kind.value})")

    @property
    def kind(self) -> ErrorKind:
        return self.record.kind

    @property
    def status_code(self) -> Optional[int]:
        return self.record.status_code

    @property
    def details(self) -> str:
        return self.record.details

    def to_user_message(self) -> str:
        return self.record.to_user_message(self.service)


class MapsApiError(GatewayError):
    """Raised when a Maps endpoint call fails."""

    service = "API"


class BillingApiError(GatewayError):
    """Raised when the billing endpoint call fails."""

    service = "Billing API"


class ProviderResponseError(Exception):
    """Raised when a 2xx envelope reports failure in its status field."""

    def __init__(self, message: str, code=None):
        super().__init__(message)
        self.code = code


class ValidationError(Exception):
    """Raised for malformed caller input."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.field = field


def format_error_response(error: BaseException) -> str:
    """
    Format any error to a user-friendly string.

    Args:
        error: Exception raised while serving a tool call

    Returns:
        Message safe to show to the caller
    """
    # config_module imports this package at load time
    from ..config.config_module import ConfigError

    if isinstance(error, GatewayError):
        return error.to_user_message()

    if isinstance(error, ProviderResponseError):
        return str(error)

    if isinstance(error, ConfigError):
        return f"Configuration error: {error}"

    if isinstance(error, ValidationError):
        field = f" ({error.field})" if error.field else ""
        return f"Invalid input{field}: {error}"

    if isinstance(error, SchemaValidationError):
        messages = [
            f"{'.'.join(str(part) for part in issue['loc'])}: {issue['msg']}"
            for issue in error.errors()
        ]
        return f"Input validation failed: {', '.join(messages)}"

    return f"Error: {error}"
