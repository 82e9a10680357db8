"""UTC-focused helpers for timestamps."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def utc_timestamp_iso() -> str:
    return utc_now().isoformat(timespec="milliseconds")


def epoch_millis() -> int:
    return int(utc_now().timestamp() * 1000)
