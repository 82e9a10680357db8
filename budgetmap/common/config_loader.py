"""Configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from budgetmap.common.errors import ConfigError
from budgetmap.common.fs import read_yaml
from budgetmap.common.schema import validate_app_config
from budgetmap.pipeline.attributes import BUDGET_OVERRIDES

APP_CONFIG_FILENAME = "app.yml"


@dataclass(frozen=True)
class AppConfig:
    topology_source: str
    source_epsg: int
    cache_bust: bool
    sink_base_url: str
    sink_timeout_seconds: float
    sink_retry_max_attempts: int
    server_host: str
    server_port: int
    cors_origins: tuple[str, ...]
    storage_path: Path
    list_limit: int
    budget_overrides: dict[str, float]

    @classmethod
    def from_mapping(cls, cfg: dict) -> "AppConfig":
        # Config entries extend the built-in corrections.
        overrides = dict(BUDGET_OVERRIDES)
        for entry in cfg.get("budget_overrides") or []:
            overrides[str(entry["name_fragment"])] = float(entry["budget"])
        return cls(
            topology_source=str(cfg["topology"]["source"]),
            source_epsg=int(cfg["topology"]["source_epsg"]),
            cache_bust=bool(cfg["topology"].get("cache_bust", True)),
            sink_base_url=str(cfg["sink"]["base_url"]).rstrip("/"),
            sink_timeout_seconds=float(cfg["sink"]["timeout_seconds"]),
            sink_retry_max_attempts=int(cfg["sink"].get("retry_max_attempts", 1)),
            server_host=str(cfg["server"]["host"]),
            server_port=int(cfg["server"]["port"]),
            cors_origins=tuple(cfg["server"].get("cors_origins") or ("*",)),
            storage_path=Path(cfg["storage"]["path"]),
            list_limit=int(cfg["storage"].get("list_limit", 100)),
            budget_overrides=overrides,
        )


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Missing config file: {path}")
    base = read_yaml(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    if overlay is None:
        return base
    if not isinstance(overlay, dict):
        raise ConfigError(f"Overlay config must be a mapping: {overlay_path}")
    return _deep_merge(base, overlay)


def load_app_config(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
) -> AppConfig:
    overlay_path = None
    if overlay_config_dir is not None:
        overlay_path = overlay_config_dir / APP_CONFIG_FILENAME
    cfg = _load_yaml_with_overlay(config_dir / APP_CONFIG_FILENAME, overlay_path)
    return AppConfig.from_mapping(validate_app_config(cfg, allow_unknown=allow_unknown))
