"""
Retrying request executor for the Naver Cloud Platform APIs.

Drives one logical GET call through at most max_retries + 1 attempts.
Each attempt produces a tagged RequestAttempt (success, retryable failure
or terminal failure); tenacity decides from that tag whether to back off
and try again. Backoff before attempt i + 1 is 2 ** i seconds.
"""

import itertools
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterator, Optional, Type

import requests
from tenacity import Retrying, retry_if_result, stop_after_attempt, wait_exponential

from ..config.logger_module import log_debug, log_info, log_warning, log_error
from .gateway_auth import Credential, build_headers
from .gateway_errors import ErrorRecord, GatewayError


USER_AGENT = "navermap-gateway/1.0"


@dataclass(frozen=True)
class RetryPolicy:
    """Per-call timeout and retry budget."""

    timeout_ms: int = 30000
    max_retries: int = 3

    def __post_init__(self):
        if not isinstance(self.timeout_ms, int) or self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be a positive integer, got {self.timeout_ms}")
        if not isinstance(self.max_retries, int) or self.max_retries < 0:
            raise ValueError(f"max_retries must be a non-negative integer, got {self.max_retries}")


class AttemptOutcome(Enum):
    SUCCESS = "success"
    RETRYABLE_FAILURE = "retryable_failure"
    TERMINAL_FAILURE = "terminal_failure"


@dataclass
class RequestAttempt:
    """Result of a single try."""

    index: int
    budget_ms: int
    outcome: AttemptOutcome
    response: Optional[requests.Response] = None
    error: Optional[ErrorRecord] = None
    elapsed_ms: float = 0.0

    @property
    def retryable(self) -> bool:
        return self.outcome == AttemptOutcome.RETRYABLE_FAILURE


class DeadlineExceeded(requests.exceptions.Timeout):
    """No response arrived within the attempt's wall-clock budget."""


def _close_late_response(future: Future) -> None:
    # A request abandoned at its deadline may still finish; free its connection
    if future.cancelled() or future.exception() is not None:
        return
    future.result().close()


class AttemptDeadline:
    """
    Wall-clock deadline for one attempt.

    wait() blocks on the in-flight request for at most timeout_ms in total,
    however slowly the server trickles bytes. On expiry the guard fires,
    the request is abandoned and DeadlineExceeded is raised.
    """

    def __init__(self, timeout_ms: int, clock: Callable[[], float] = time.monotonic):
        self.timeout_ms = timeout_ms
        self._clock = clock
        self.started_at: Optional[float] = None
        self.fired = False
        self.released = False

    @property
    def seconds(self) -> float:
        return self.timeout_ms / 1000.0

    def arm(self) -> None:
        self.started_at = self._clock()
        self.fired = False
        self.released = False

    def elapsed_ms(self) -> float:
        if self.started_at is None:
            return 0.0
        return (self._clock() - self.started_at) * 1000.0

    def wait(self, future: Future) -> Any:
        """
        Return the future's result, or fire once the budget is spent.

        Raises:
            DeadlineExceeded: When the future is still pending at the deadline
        """
        try:
            return future.result(timeout=self.seconds)
        except FuturesTimeout:
            self.fired = True
            if not future.cancel():
                future.add_done_callback(_close_late_response)
            raise DeadlineExceeded(f"No response within {self.timeout_ms}ms")

    def release(self) -> None:
        self.released = True


@contextmanager
def attempt_deadline(timeout_ms: int,
                     clock: Callable[[], float] = time.monotonic) -> Iterator[AttemptDeadline]:
    """Arm a deadline for the duration of the block, releasing it on any exit."""
    deadline = AttemptDeadline(timeout_ms, clock)
    deadline.arm()
    try:
        yield deadline
    finally:
        deadline.release()


def classify_response(status_code: int) -> AttemptOutcome:
    """Decide what an HTTP status means for the retry loop."""
    if 200 <= status_code < 300:
        return AttemptOutcome.SUCCESS
    if 400 <= status_code < 500 and status_code != 429:
        return AttemptOutcome.TERMINAL_FAILURE
    return AttemptOutcome.RETRYABLE_FAILURE


def _drop_empty(params: Optional[Dict[str, Any]]) -> Dict[str, str]:
    if not params:
        return {}
    return {key: str(value) for key, value in params.items() if value is not None}


class RequestExecutor:
    """
    Executes authenticated GET requests under a RetryPolicy.

    Timeouts end the call at once; 429, 5xx and transport errors are
    retried with exponential backoff; other 4xx responses are returned
    without retrying. Each GET runs on a worker thread so the attempt
    deadline bounds the whole exchange, not just individual socket reads.
    """

    def __init__(self,
                 session: Optional[requests.Session] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 clock: Callable[[], float] = time.monotonic,
                 max_workers: Optional[int] = None):
        """
        Initialize the executor.

        Args:
            session: requests session (a new one is created when None)
            sleep: Backoff delay function, injectable for tests
            clock: Monotonic clock used to measure attempts
            max_workers: Size of the request thread pool
        """
        self._session = session or requests.Session()
        self._session.headers.update({'User-Agent': USER_AGENT})
        self._sleep = sleep
        self._clock = clock
        self._pool = ThreadPoolExecutor(max_workers=max_workers,
                                        thread_name_prefix="navermap-http")

    def close(self) -> None:
        """Stop the request threads and close the session."""
        self._pool.shutdown(wait=False, cancel_futures=True)
        self._session.close()

    def _attempt(self,
                 index: int,
                 url: str,
                 params: Dict[str, str],
                 credential: Credential,
                 policy: RetryPolicy) -> RequestAttempt:
        headers = build_headers(credential, "GET", url)

        with attempt_deadline(policy.timeout_ms, self._clock) as deadline:
            try:
                response = deadline.wait(self._pool.submit(
                    self._session.get,
                    url,
                    params=params,
                    headers=headers,
                    timeout=deadline.seconds
                ))
            except requests.exceptions.Timeout as e:
                log_error(f"Timeout after {policy.timeout_ms}ms calling {url} (attempt {index + 1})")
                return RequestAttempt(index, policy.timeout_ms, AttemptOutcome.TERMINAL_FAILURE,
                                      error=ErrorRecord.from_exception(e),
                                      elapsed_ms=deadline.elapsed_ms())
            except requests.exceptions.RequestException as e:
                log_warning(f"Transport error calling {url} (attempt {index + 1}): {e}")
                return RequestAttempt(index, policy.timeout_ms, AttemptOutcome.RETRYABLE_FAILURE,
                                      error=ErrorRecord.from_exception(e),
                                      elapsed_ms=deadline.elapsed_ms())

            outcome = classify_response(response.status_code)
            log_debug(
                f"GET {url} -> HTTP {response.status_code} "
                f"(attempt {index + 1}, {deadline.elapsed_ms():.0f}ms)"
            )
            return RequestAttempt(index, policy.timeout_ms, outcome,
                                  response=response,
                                  elapsed_ms=deadline.elapsed_ms())

    def run_attempts(self,
                     url: str,
                     params: Optional[Dict[str, Any]],
                     credential: Credential,
                     policy: RetryPolicy) -> RequestAttempt:
        """
        Run attempts until one is not retryable or the budget is spent.

        Returns:
            The last RequestAttempt made
        """
        clean_params = _drop_empty(params)
        indices = itertools.count()

        def before_sleep(retry_state) -> None:
            attempt = retry_state.outcome.result()
            reason = (f"HTTP {attempt.response.status_code}" if attempt.response is not None
                      else attempt.error.details)
            log_warning(
                f"Retrying {url} in {retry_state.next_action.sleep:.0f}s "
                f"after {reason} (attempt {attempt.index + 1}/{policy.max_retries + 1})"
            )

        retrying = Retrying(
            stop=stop_after_attempt(policy.max_retries + 1),
            wait=wait_exponential(multiplier=1, exp_base=2),
            retry=retry_if_result(lambda attempt: attempt.retryable),
            sleep=self._sleep,
            before_sleep=before_sleep,
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
        )

        return retrying(
            lambda: self._attempt(next(indices), url, clean_params, credential, policy)
        )

    def execute(self,
                url: str,
                params: Optional[Dict[str, Any]],
                credential: Credential,
                policy: RetryPolicy,
                error_class: Type[GatewayError] = GatewayError) -> requests.Response:
        """
        Perform one logical GET call.

        Args:
            url: Endpoint URL
            params: Query parameters; None values are dropped
            credential: Credential used to build auth headers
            policy: Timeout and retry budget
            error_class: GatewayError subclass to raise

        Returns:
            The final response (2xx, a non-retryable 4xx, or the last
            retryable response once the budget is spent)

        Raises:
            GatewayError: On timeout, or when the last attempt failed
                without any response
        """
        log_info(f"GET {url} (timeout={policy.timeout_ms}ms, max_retries={policy.max_retries})")

        attempt = self.run_attempts(url, params, credential, policy)

        if attempt.response is not None:
            if attempt.outcome != AttemptOutcome.SUCCESS:
                log_warning(
                    f"GET {url} finished with HTTP {attempt.response.status_code} "
                    f"after {attempt.index + 1} attempt(s)"
                )
            return attempt.response

        log_error(f"GET {url} failed after {attempt.index + 1} attempt(s): {attempt.error.details}")
        raise error_class(attempt.error)
