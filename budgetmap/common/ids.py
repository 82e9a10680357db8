"""Identifier helpers."""

from __future__ import annotations

import hashlib
import json
import uuid
from datetime import datetime, timezone
from typing import Any, Mapping


def generate_run_id() -> str:
    now = datetime.now(tz=timezone.utc)
    return now.strftime("run-%Y%m%dT%H%M%S%fZ")


def generate_record_id() -> str:
    return uuid.uuid4().hex


def content_digest(payload: Mapping[str, Any], length: int = 7) -> str:
    """Short stable digest of a mapping, independent of key order."""
    canonical = json.dumps(payload, sort_keys=True, ensure_ascii=False, default=str)
    return hashlib.sha1(canonical.encode("utf-8")).hexdigest()[:length]
