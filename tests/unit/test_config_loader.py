from __future__ import annotations

from pathlib import Path

import pytest

from product_importer.config.loader import (
    CONFIG_ENV_VAR,
    ConfigError,
    ImportConfig,
    load_config,
    resolve_config_path,
)


def test_defaults_when_default_file_missing(temp_workdir: Path):
    cfg = load_config()
    assert cfg == ImportConfig()
    assert cfg.max_bytes == 20 * 1024 * 1024
    assert cfg.processing.mode == "batch"
    assert cfg.history.seed_demo is False


def test_load_sample_config(write_config: Path):
    cfg = load_config()
    assert cfg.processing.batch_size == 2
    assert cfg.processing.interval_seconds == 0.01
    assert cfg.history.path == "./output/history.jsonl"
    assert cfg.template_filename == "plantilla_productos.csv"


def test_partial_config_keeps_defaults(temp_workdir: Path):
    path = temp_workdir / "config" / "import.yml"
    path.write_text("processing:\n  mode: simulated\n  seed: 42\n", encoding="utf-8")
    cfg = load_config()
    assert cfg.processing.mode == "simulated"
    assert cfg.processing.seed == 42
    assert cfg.processing.batch_size == 100
    assert cfg.output_directory == "./output"


def test_explicit_missing_file_is_an_error(temp_workdir: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(temp_workdir / "config" / "missing.yml")


def test_env_var_selects_config(temp_workdir: Path, monkeypatch):
    alt = temp_workdir / "alt.yml"
    alt.write_text("max_file_size_mb: 5\n", encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(alt))
    assert resolve_config_path() == (alt, True)
    assert load_config().max_bytes == 5 * 1024 * 1024


@pytest.mark.parametrize("text", [
    "unknown_key: 1\n",
    "processing:\n  mode: turbo\n",
    "processing:\n  batch_size: 0\n",
    "template_filename: plantilla.xlsx\n",
    "max_file_size_mb: 0\n",
    "history:\n  seed_demo: maybe\n",
])
def test_schema_violations(temp_workdir: Path, text: str):
    (temp_workdir / "config" / "import.yml").write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config()


def test_non_mapping_top_level(temp_workdir: Path):
    (temp_workdir / "config" / "import.yml").write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config()


def test_invalid_yaml(temp_workdir: Path):
    (temp_workdir / "config" / "import.yml").write_text("processing: [\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config()


def test_empty_file_gives_defaults(temp_workdir: Path):
    (temp_workdir / "config" / "import.yml").write_text("", encoding="utf-8")
    assert load_config() == ImportConfig()
