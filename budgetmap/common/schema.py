"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from budgetmap.common.errors import ConfigError


def _assert_mapping(obj, ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    _assert_mapping(obj, ctx)
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def validate_app_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    top_required = {"topology", "sink", "server", "storage"}
    top_known = top_required | {"budget_overrides"}
    _assert_required_keys(cfg, top_required, "app config")
    _assert_no_unknown_keys(cfg, top_known, "app config", allow_unknown)

    _assert_required_keys(cfg["topology"], {"source", "source_epsg"}, "topology")
    _assert_no_unknown_keys(cfg["topology"], {"source", "source_epsg", "cache_bust"}, "topology", allow_unknown)
    _assert_required_keys(cfg["sink"], {"base_url", "timeout_seconds"}, "sink")
    _assert_no_unknown_keys(cfg["sink"], {"base_url", "timeout_seconds", "retry_max_attempts"}, "sink", allow_unknown)
    _assert_required_keys(cfg["server"], {"host", "port"}, "server")
    _assert_no_unknown_keys(cfg["server"], {"host", "port", "cors_origins"}, "server", allow_unknown)
    _assert_required_keys(cfg["storage"], {"path"}, "storage")
    _assert_no_unknown_keys(cfg["storage"], {"path", "list_limit"}, "storage", allow_unknown)

    try:
        int(cfg["topology"]["source_epsg"])
    except (TypeError, ValueError) as exc:
        raise ConfigError("topology.source_epsg must be an integer EPSG code") from exc

    overrides = cfg.get("budget_overrides") or []
    if not isinstance(overrides, list):
        raise ConfigError("budget_overrides must be a list")
    for idx, entry in enumerate(overrides):
        _assert_required_keys(entry, {"name_fragment", "budget"}, f"budget_overrides[{idx}]")
        if not str(entry["name_fragment"]).strip():
            raise ConfigError(f"budget_overrides[{idx}].name_fragment must not be empty")
        try:
            budget = float(entry["budget"])
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"budget_overrides[{idx}].budget must be a number") from exc
        if budget < 0:
            raise ConfigError(f"budget_overrides[{idx}].budget must be non-negative")

    return cfg
