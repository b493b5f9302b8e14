"""
Naver Cloud Platform API clients.

MapsApiClient covers the geocode, reverse geocode, directions and static
map endpoints (API-key headers). BillingApiClient covers the cost/usage
endpoint (HMAC-signed headers). Both run their calls through a
RequestExecutor and turn non-2xx responses into classified errors.
"""

from typing import Any, Dict, Optional

import requests

from ..config.logger_module import log_info, log_error
from .gateway_auth import ApiKeyCredential, SignedCredential
from .gateway_errors import BillingApiError, ErrorKind, ErrorRecord, MapsApiError
from .gateway_executor import RequestExecutor, RetryPolicy


GEOCODE_URL = "https://naveropenapi.apigw.ntruss.com/map-geocode/v2/geocode"
REVERSE_GEOCODE_URL = "https://naveropenapi.apigw.ntruss.com/map-reversegeocode/v2/gc"
DIRECTIONS_URL = "https://naveropenapi.apigw.ntruss.com/map-direction/v1/driving"
STATIC_MAP_URL = "https://naveropenapi.apigw.ntruss.com/map-static/v2/raster"
BILLING_URL = "https://billingapi.apigw.ntruss.com/billing/v1/cost/getProductDemandCostList"

MAX_ERROR_DETAILS = 500


def _error_details(response: requests.Response) -> str:
    text = response.text or ""
    if len(text) <= MAX_ERROR_DETAILS:
        return text
    return text[:MAX_ERROR_DETAILS - 3] + "..."


def _raise_for_status(response: requests.Response, error_class) -> None:
    if 200 <= response.status_code < 300:
        return
    record = ErrorRecord.from_status(response.status_code, _error_details(response))
    log_error(f"HTTP {response.status_code} from {response.url}: {record.kind.value}")
    raise error_class(record)


def _parse_json(response: requests.Response, error_class) -> Dict[str, Any]:
    try:
        return response.json()
    except ValueError:
        raise error_class(ErrorRecord(
            kind=ErrorKind.UNKNOWN,
            status_code=response.status_code,
            details="Response body is not valid JSON"
        ))


class MapsApiClient:
    """Client for the Maps endpoints, authenticated with an API-key pair."""

    def __init__(self,
                 credential: ApiKeyCredential,
                 policy: RetryPolicy = None,
                 executor: RequestExecutor = None):
        """
        Initialize the Maps client.

        Args:
            credential: Client id / secret pair
            policy: Timeout and retry budget (defaults to RetryPolicy())
            executor: Request executor (a new one is created when None)
        """
        self.credential = credential
        self.policy = policy or RetryPolicy()
        self._executor = executor or RequestExecutor()

        log_info(
            f"MapsApiClient initialized (timeout={self.policy.timeout_ms}ms, "
            f"max_retries={self.policy.max_retries})"
        )

    def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        GET a JSON endpoint.

        Raises:
            MapsApiError: On timeout, transport failure or non-2xx status
        """
        response = self._executor.execute(url, params, self.credential, self.policy,
                                          error_class=MapsApiError)
        _raise_for_status(response, MapsApiError)
        return _parse_json(response, MapsApiError)

    def get_binary(self, url: str, params: Optional[Dict[str, Any]] = None) -> bytes:
        """
        GET a binary payload (e.g. a PNG image).

        Raises:
            MapsApiError: On timeout, transport failure, non-2xx status or
                an empty body
        """
        response = self._executor.execute(url, params, self.credential, self.policy,
                                          error_class=MapsApiError)
        _raise_for_status(response, MapsApiError)

        content = response.content
        if not content:
            raise MapsApiError(ErrorRecord(
                kind=ErrorKind.UNKNOWN,
                status_code=response.status_code,
                details="Empty response body"
            ))

        log_info(f"Fetched {len(content)} bytes from {url}")
        return content


class BillingApiClient:
    """Client for the cost/usage endpoint, authenticated with a signed triad."""

    def __init__(self,
                 credential: SignedCredential,
                 policy: RetryPolicy = None,
                 executor: RequestExecutor = None):
        if not isinstance(credential, SignedCredential):
            raise TypeError("BillingApiClient requires a SignedCredential")
        self.credential = credential
        self.policy = policy or RetryPolicy()
        self._executor = executor or RequestExecutor()

    def get_product_demand_cost_list(self, start_month: str, end_month: str) -> Dict[str, Any]:
        """
        Fetch usage and cost line items.

        Args:
            start_month: First month, YYYYMM
            end_month: Last month, YYYYMM

        Returns:
            Decoded response envelope

        Raises:
            BillingApiError: On timeout, transport failure or non-2xx status
        """
        params = {
            "startMonth": start_month,
            "endMonth": end_month,
            "responseFormatType": "json",
        }
        response = self._executor.execute(BILLING_URL, params, self.credential, self.policy,
                                          error_class=BillingApiError)
        _raise_for_status(response, BillingApiError)
        return _parse_json(response, BillingApiError)

