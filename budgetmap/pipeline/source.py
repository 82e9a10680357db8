"""Fetch or read the topology document."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from budgetmap.common.errors import FormatError, NetworkError
from budgetmap.common.fs import read_json
from budgetmap.common.http import HttpClient
from budgetmap.common.logging import get_logger, log_event
from budgetmap.common.time_utils import epoch_millis

logger = get_logger(__name__)


def is_remote(source: str) -> bool:
    return urlparse(source).scheme in ("http", "https")


def fetch_topology(url: str, *, http: HttpClient, cache_bust: bool = True) -> Any:
    params = {"t": epoch_millis()} if cache_bust else None
    log_event(logger, f"fetching topology from {url}", stage="load", source=url, event="FETCH_START", status="ok")
    return http.get_json(url, params=params)


def read_topology(path: Path) -> Any:
    try:
        return read_json(path)
    except FileNotFoundError as exc:
        raise NetworkError(f"Topology file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise FormatError(f"Topology file is not valid JSON: {path}") from exc


def load_topology(source: str, *, http: HttpClient | None = None, cache_bust: bool = True) -> Any:
    if not is_remote(source):
        return read_topology(Path(source))
    if http is not None:
        return fetch_topology(source, http=http, cache_bust=cache_bust)
    with HttpClient() as client:
        return fetch_topology(source, http=client, cache_bust=cache_bust)
