from pathlib import Path

import pytest

from budgetmap.common.config_loader import load_app_config
from budgetmap.common.errors import ConfigError
from budgetmap.pipeline.attributes import BUDGET_OVERRIDES
from budgetmap.pipeline.store import FeatureStore

BASE_YAML = """topology:
  source: "data/topo-data.json"
  source_epsg: 3857
sink:
  base_url: "http://localhost:3001/api/"
  timeout_seconds: 5
server:
  host: "127.0.0.1"
  port: 3001
storage:
  path: "data/test.sqlite"
"""


def _write(directory: Path, text: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "app.yml").write_text(text, encoding="utf-8")
    return directory


def test_load_app_config_from_repo_config_dir():
    config = load_app_config(Path("config"))

    assert config.source_epsg == 3857
    assert config.cache_bust is True
    assert config.server_port == 3001
    assert config.list_limit == 100
    assert config.budget_overrides == {"เชียงใหม่": 1_755_970_000.0, "แหลมฉบัง": 1_423_500_000.0}


def test_optional_keys_take_defaults(tmp_path: Path):
    config = load_app_config(_write(tmp_path, BASE_YAML))

    assert config.sink_base_url == "http://localhost:3001/api"
    assert config.sink_retry_max_attempts == 1
    assert config.cors_origins == ("*",)
    assert config.budget_overrides == BUDGET_OVERRIDES


def test_load_app_config_applies_overlay_values(tmp_path: Path):
    base = _write(tmp_path / "base", BASE_YAML)
    overlay = _write(
        tmp_path / "overlay",
        """server:
  port: 8080
budget_overrides:
  - name_fragment: "ภูเก็ต"
    budget: 2000000000
""",
    )

    config = load_app_config(base, overlay_config_dir=overlay)

    assert config.server_port == 8080
    assert config.server_host == "127.0.0.1"
    assert config.budget_overrides == {**BUDGET_OVERRIDES, "ภูเก็ต": 2_000_000_000.0}


def test_config_without_overrides_still_corrects_chiang_mai(tmp_path: Path):
    config = load_app_config(_write(tmp_path, BASE_YAML))
    store = FeatureStore(lambda: {}, overrides=config.budget_overrides)

    record = store.resolve({"name": "เทศบาลนครเชียงใหม่", "type": "เทศบาลนคร", "1- clean-extracted_46_to_235_total": "12.0"})

    assert record.budget == 1_755_970_000


def test_config_override_entry_can_replace_a_builtin_figure(tmp_path: Path):
    config = load_app_config(
        _write(tmp_path, BASE_YAML + "budget_overrides:\n  - name_fragment: \"แหลมฉบัง\"\n    budget: 1500000000\n")
    )

    assert config.budget_overrides["แหลมฉบัง"] == 1_500_000_000
    assert config.budget_overrides["เชียงใหม่"] == 1_755_970_000


def test_load_app_config_ignores_empty_overlay_file(tmp_path: Path):
    base = _write(tmp_path / "base", BASE_YAML)
    overlay = _write(tmp_path / "overlay", "")

    assert load_app_config(base, overlay_config_dir=overlay).server_port == 3001


def test_load_app_config_rejects_non_mapping_overlay(tmp_path: Path):
    base = _write(tmp_path / "base", BASE_YAML)
    overlay = _write(tmp_path / "overlay", "- just\n- a list\n")

    with pytest.raises(ConfigError):
        load_app_config(base, overlay_config_dir=overlay)


def test_missing_config_file_raises(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_app_config(tmp_path)


def test_unknown_keys_are_rejected_unless_allowed(tmp_path: Path):
    directory = _write(tmp_path, BASE_YAML + "metrics:\n  enabled: true\n")

    with pytest.raises(ConfigError):
        load_app_config(directory)
    assert load_app_config(directory, allow_unknown=True).server_port == 3001


@pytest.mark.parametrize(
    "extra",
    [
        'budget_overrides:\n  - name_fragment: ""\n    budget: 1\n',
        'budget_overrides:\n  - name_fragment: "x"\n    budget: -1\n',
        'budget_overrides:\n  - name_fragment: "x"\n    budget: lots\n',
        'budget_overrides:\n  - name_fragment: "x"\n',
        "budget_overrides: {x: 1}\n",
    ],
)
def test_invalid_budget_overrides(tmp_path: Path, extra: str):
    with pytest.raises(ConfigError):
        load_app_config(_write(tmp_path, BASE_YAML + extra))


def test_non_integer_epsg_is_rejected(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_app_config(_write(tmp_path, BASE_YAML.replace("3857", "web-mercator")))
