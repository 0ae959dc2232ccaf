from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Config loader.

Responsibilities:
- Resolve the config file (explicit path > $PRODUCT_IMPORTER_CONFIG > config/import.yml)
- Load YAML and validate it against config_schema.json
- Apply defaults for every missing key

A missing default file is not an error (built-in defaults apply); a missing
file that was asked for explicitly is.
"""

__all__ = [
    "ConfigError",
    "ProcessingConfig",
    "HistoryConfig",
    "ImportConfig",
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
    "resolve_config_path",
]

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/import.yml")
CONFIG_ENV_VAR = "PRODUCT_IMPORTER_CONFIG"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class ProcessingConfig:
    mode: str = "batch"
    interval_seconds: float = 0.5
    batch_size: int = 100
    seed: int | None = None  # simulated モード用乱数シード


@dataclass(frozen=True)
class HistoryConfig:
    path: str | None = "./output/history.jsonl"
    seed_demo: bool = False


@dataclass(frozen=True)
class ImportConfig:
    max_file_size_mb: float = 20
    output_directory: str = "./output"
    logs_directory: str = "./logs"
    template_filename: str = "plantilla_productos.csv"
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)

    @property
    def max_bytes(self) -> int:
        return int(self.max_file_size_mb * 1024 * 1024)


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing/broken, or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def resolve_config_path(path: Path | None = None) -> tuple[Path, bool]:
    """Pick the config file. Returns (path, explicit)."""
    if path is not None:
        return Path(path), True
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path), True
    return DEFAULT_CONFIG_PATH, False


def load_config(path: Path | None = None) -> ImportConfig:
    config_path, explicit = resolve_config_path(path)
    if not config_path.exists():
        if explicit:
            raise ConfigError(f"config file not found: {config_path}")
        return ImportConfig()
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top level must be a mapping")

    _validate_config_schema(data)

    defaults = ImportConfig()
    proc_raw = data.get("processing") or {}
    hist_raw = data.get("history") or {}
    processing = ProcessingConfig(
        mode=proc_raw.get("mode", defaults.processing.mode),
        interval_seconds=float(proc_raw.get("interval_seconds", defaults.processing.interval_seconds)),
        batch_size=int(proc_raw.get("batch_size", defaults.processing.batch_size)),
        seed=proc_raw.get("seed", defaults.processing.seed),
    )
    history = HistoryConfig(
        path=hist_raw.get("path", defaults.history.path),
        seed_demo=bool(hist_raw.get("seed_demo", defaults.history.seed_demo)),
    )
    return ImportConfig(
        max_file_size_mb=data.get("max_file_size_mb", defaults.max_file_size_mb),
        output_directory=data.get("output_directory", defaults.output_directory),
        logs_directory=data.get("logs_directory", defaults.logs_directory),
        template_filename=data.get("template_filename", defaults.template_filename),
        processing=processing,
        history=history,
    )
