"""JSON-over-HTTP client for the topology fetch and the record sink."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import TracebackType
from typing import Any

import requests
from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from budgetmap.common.constants import USER_AGENT
from budgetmap.common.errors import NetworkError
from budgetmap.common.logging import get_logger, log_event

RETRYABLE_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}

logger = get_logger(__name__)


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 10.0
    read: float = 30.0


@dataclass(frozen=True)
class RetryConfig:
    # Loads and submissions are not retried unless configured otherwise.
    max_attempts: int = 1
    multiplier: float = 1.0
    max_wait: float = 10.0


class HttpRequestError(NetworkError):
    """A failed exchange; ``payload`` holds the decoded error body when there was one."""

    error_code = "HTTP_ERROR"

    def __init__(self, message: str, *, status_code: int | None = None, payload: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class RetryableHttpError(HttpRequestError):
    pass


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    log_event(
        logger,
        f"attempt {state.attempt_number} failed, retrying: {exc}",
        level=logging.WARNING,
        stage="http",
        event="HTTP_RETRY",
        status="retry",
        error_code=getattr(exc, "error_code", None),
    )


class HttpClient:
    def __init__(
        self,
        *,
        timeout: TimeoutConfig | None = None,
        retry: RetryConfig | None = None,
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.retry = retry or RetryConfig()
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_exponential_jitter(initial=self.retry.multiplier, max=self.retry.max_wait, jitter=1.0),
            retry=retry_if_exception_type(RetryableHttpError),
            before_sleep=_log_retry,
            reraise=True,
        )

    @staticmethod
    def _decode(response: requests.Response, url: str) -> Any:
        status = response.status_code
        try:
            payload = response.json()
        except ValueError as exc:
            if status < 400:
                raise HttpRequestError(f"Invalid JSON payload from {url}", status_code=status) from exc
            payload = None

        if status in RETRYABLE_STATUS_CODES:
            raise RetryableHttpError(f"{url} answered {status}", status_code=status, payload=payload)
        if status >= 400:
            raise HttpRequestError(f"{url} answered {status}", status_code=status, payload=payload)
        return payload

    def _send(self, method: str, url: str, timeout: TimeoutConfig, **kwargs: Any) -> Any:
        try:
            response = self.session.request(
                method=method,
                url=url,
                timeout=(timeout.connect, timeout.read),
                **kwargs,
            )
        except requests.RequestException as exc:
            raise HttpRequestError(f"Request to {url} failed: {exc}") from exc
        return self._decode(response, url)

    def request_json(
        self,
        method: str,
        url: str,
        *,
        timeout: TimeoutConfig | None = None,
        **kwargs: Any,
    ) -> Any:
        """Send one request under the retry policy and return the decoded JSON body.

        Extra keyword arguments (``params``, ``json``, ``headers``) go straight
        to ``requests``. Only statuses in ``RETRYABLE_STATUS_CODES`` are retried.
        """
        return self._retrying()(self._send, method, url, timeout or self.timeout, **kwargs)

    def get_json(self, url: str, *, params: dict[str, Any] | None = None, timeout: TimeoutConfig | None = None) -> Any:
        return self.request_json("GET", url, params=params, timeout=timeout)

    def post_json(self, url: str, *, body: Any, timeout: TimeoutConfig | None = None) -> Any:
        return self.request_json("POST", url, json=body, timeout=timeout)
