"""
HTTP Retry Client.

Single logical GET with bounded retries, exponential backoff and jitter.
Client errors (4xx) fail immediately; server errors (5xx) and transport
failures are retried.
"""

import logging
import random
import time
from typing import Any, Callable, Dict, Optional

import requests

from src.errors import (
    ClientError,
    ExhaustedRetriesError,
    NetworkError,
    ServerError,
    UpstreamResponseError,
)

logger = logging.getLogger(__name__)

RetryCallback = Callable[[int, int, int], None]

JITTER_MAX_MS = 1000


def compute_backoff_delay(
    attempt: int,
    base_delay_ms: float = 1000,
    jitter_max_ms: float = JITTER_MAX_MS
) -> float:
    """
    Delay in milliseconds after failed attempt `attempt` (0-based).

    Returns base_delay_ms * 2**attempt plus up to jitter_max_ms of jitter,
    i.e. a value in [base * 2**attempt, base * 2**attempt + jitter_max_ms).
    """
    return base_delay_ms * (2 ** attempt) + random.random() * jitter_max_ms


def _attempt_request(
    http: Any,
    url: str,
    params: Any,
    timeout: float
) -> requests.Response:
    """Issue one request and classify the outcome."""
    try:
        response = http.get(url, params=params, timeout=timeout)
    except requests.RequestException as e:
        raise NetworkError(f"Network error: {e}") from e

    if response.ok:
        return response

    if 400 <= response.status_code < 500:
        raise ClientError(response.status_code, response.reason or "")

    raise ServerError(response.status_code, response.reason or "")


def fetch_with_retry(
    url: str,
    params: Optional[Any] = None,
    session: Optional[requests.Session] = None,
    max_retries: int = 3,
    base_delay_ms: float = 1000,
    on_retry: Optional[RetryCallback] = None,
    timeout: float = 30
) -> requests.Response:
    """
    GET `url`, retrying server and network failures.

    Args:
        url: Request URL
        params: Query parameters (dict or list of tuples, as accepted by requests)
        session: Session to issue the request through (defaults to module-level requests)
        max_retries: Retries after the first attempt; max_retries + 1 attempts in total
        base_delay_ms: Base of the exponential backoff schedule
        on_retry: Optional callback(attempt_number, total_attempts, delay_ms),
                  invoked before each backoff sleep. Advisory only.
        timeout: Per-attempt timeout in seconds

    Returns:
        The first response with a status below 400

    Raises:
        ClientError: On any 4xx response (no retry)
        ExhaustedRetriesError: When every attempt failed with a 5xx or a
            transport error; chained from the last error
    """
    http = session if session is not None else requests
    total_attempts = max_retries + 1
    last_error: Optional[Exception] = None

    for attempt in range(total_attempts):
        try:
            return _attempt_request(http, url, params, timeout)
        except (ServerError, NetworkError) as e:
            last_error = e

        if attempt == max_retries:
            break

        delay_ms = compute_backoff_delay(attempt, base_delay_ms)
        logger.warning(
            f"Request failed (attempt {attempt + 1}/{total_attempts}), "
            f"retrying in {round(delay_ms)}ms... ({last_error})"
        )

        if on_retry:
            on_retry(attempt + 1, total_attempts, round(delay_ms))

        time.sleep(delay_ms / 1000.0)

    logger.error(f"Giving up on {url} after {total_attempts} attempts: {last_error}")
    raise ExhaustedRetriesError(last_error, total_attempts) from last_error


def decode_json(response: requests.Response) -> Dict[str, Any]:
    """Parse a response body as a JSON object."""
    try:
        data = response.json()
    except ValueError as e:
        raise UpstreamResponseError(f"Invalid JSON from upstream: {e}") from e

    if not isinstance(data, dict):
        raise UpstreamResponseError(
            f"Expected a JSON object from upstream, got {type(data).__name__}"
        )
    return data
