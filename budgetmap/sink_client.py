"""Client for the record sink API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from budgetmap.common.config_loader import AppConfig
from budgetmap.common.errors import NetworkError
from budgetmap.common.http import HttpClient, HttpRequestError, RetryConfig, TimeoutConfig
from budgetmap.common.logging import get_logger, log_event
from budgetmap.common.models import AllocationSubmission

logger = get_logger(__name__)


@dataclass(frozen=True)
class SubmissionReceipt:
    id: str
    message: str


class RecordSinkClient:
    def __init__(self, base_url: str, *, http: HttpClient | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.http = http or HttpClient()

    @classmethod
    def from_config(cls, config: AppConfig) -> "RecordSinkClient":
        timeout = TimeoutConfig(connect=config.sink_timeout_seconds, read=config.sink_timeout_seconds)
        http = HttpClient(timeout=timeout, retry=RetryConfig(max_attempts=config.sink_retry_max_attempts))
        return cls(config.sink_base_url, http=http)

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def submit(self, submission: AllocationSubmission) -> SubmissionReceipt:
        """Post a submission once; the caller keeps its state and may resubmit on failure."""
        try:
            payload = self.http.post_json(self._url("budget-allocations"), body=submission.to_payload())
        except HttpRequestError as exc:
            message = exc.payload.get("message") if isinstance(exc.payload, dict) else None
            log_event(
                logger,
                f"submission for {submission.municipality_id} failed: {message or exc}",
                level=logging.ERROR,
                stage="submit",
                event="SUBMIT_FAILED",
                status="error",
                error_code=exc.error_code,
            )
            raise NetworkError(message or "Failed to save budget allocation") from exc

        if not isinstance(payload, dict) or not payload.get("success"):
            raise NetworkError("Record sink rejected the budget allocation")
        log_event(logger, f"submission stored as {payload.get('id')}", stage="submit", event="SUBMIT_OK", status="ok")
        return SubmissionReceipt(id=str(payload["id"]), message=str(payload.get("message", "")))

    def recent(self) -> list[dict[str, Any]]:
        payload = self.http.get_json(self._url("budget-allocations"))
        return list(payload.get("data", []))

    def health(self) -> dict[str, Any]:
        return self.http.get_json(self._url("health"))
