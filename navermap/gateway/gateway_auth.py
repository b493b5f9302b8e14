"""
Request signing for the Naver Cloud Platform API gateway.

Two credential schemes are supported:
- ApiKeyCredential: static client id / secret header pair (Maps APIs)
- SignedCredential: per-request HMAC-SHA256 signature (Billing API)
"""

import base64
import hashlib
import hmac
import time
from dataclasses import dataclass, field
from typing import Dict, Optional, Union
from urllib.parse import urlparse


API_KEY_ID_HEADER = "x-ncp-apigw-api-key-id"
API_KEY_HEADER = "x-ncp-apigw-api-key"

TIMESTAMP_HEADER = "x-ncp-apigw-timestamp"
ACCESS_KEY_HEADER = "x-ncp-iam-access-key"
SIGNATURE_HEADER = "x-ncp-apigw-signature-v2"


@dataclass(frozen=True)
class ApiKeyCredential:
    """Client id / secret pair issued for the Maps application."""

    client_id: str = field(repr=False)
    client_secret: str = field(repr=False)


@dataclass(frozen=True)
class SignedCredential:
    """Access key / secret key pair used to sign Billing API requests."""

    access_key: str = field(repr=False)
    secret_key: str = field(repr=False)


Credential = Union[ApiKeyCredential, SignedCredential]


def make_signature(method: str,
                   url_path: str,
                   timestamp: str,
                   access_key: str,
                   secret_key: str) -> str:
    """
    Compute the signature-v2 value for one request.

    The signed message is "METHOD path\\ntimestamp\\naccess_key".

    Args:
        method: HTTP method, e.g. "GET"
        url_path: Path component of the URL only
        timestamp: Epoch milliseconds as a string
        access_key: NCP access key
        secret_key: NCP secret key

    Returns:
        Base64-encoded HMAC-SHA256 digest
    """
    message = f"{method} {url_path}\n{timestamp}\n{access_key}"
    digest = hmac.new(
        secret_key.encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256
    ).digest()
    return base64.b64encode(digest).decode("utf-8")


def current_timestamp() -> str:
    """Current time in epoch milliseconds."""
    return str(int(time.time() * 1000))


def build_headers(credential: Credential,
                  method: str,
                  url: str,
                  timestamp: Optional[str] = None) -> Dict[str, str]:
    """
    Build the authentication headers for a request.

    Args:
        credential: ApiKeyCredential or SignedCredential
        method: HTTP method
        url: Full request URL; only its path is signed
        timestamp: Epoch millis override (current time when None)

    Returns:
        Header dictionary

    Raises:
        TypeError: For an unsupported credential type
    """
    if isinstance(credential, ApiKeyCredential):
        return {
            API_KEY_ID_HEADER: credential.client_id,
            API_KEY_HEADER: credential.client_secret,
        }

    if isinstance(credential, SignedCredential):
        timestamp = timestamp or current_timestamp()
        url_path = urlparse(url).path
        signature = make_signature(
            method.upper(), url_path, timestamp,
            credential.access_key, credential.secret_key
        )
        return {
            TIMESTAMP_HEADER: timestamp,
            ACCESS_KEY_HEADER: credential.access_key,
            SIGNATURE_HEADER: signature,
        }

    raise TypeError(f"Unsupported credential type: {type(credential).__name__}")
