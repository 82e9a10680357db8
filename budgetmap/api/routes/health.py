"""Liveness probe."""

from __future__ import annotations

from fastapi import APIRouter

from budgetmap.api.models import HealthOut
from budgetmap.common.time_utils import utc_timestamp_iso

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthOut)
def health() -> HealthOut:
    return HealthOut(status="ok", message="Server is running", timestamp=utc_timestamp_iso())
