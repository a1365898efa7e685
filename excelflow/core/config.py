from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from excelflow.core.schema import TableShape

DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]

# setting name -> environment variable
ENV_VARS: dict[str, str] = {
    "progress_step": "EXCELFLOW_PROGRESS_STEP",
    "tick_interval": "EXCELFLOW_TICK_INTERVAL",
    "processing_delay": "EXCELFLOW_PROCESSING_DELAY",
    "table_shape": "EXCELFLOW_TABLE_SHAPE",
    "accept_csv": "EXCELFLOW_ACCEPT_CSV",
    "log_level": "EXCELFLOW_LOG_LEVEL",
    "cors_origins": "API_CORS_ORIGINS",
}


@dataclass(frozen=True)
class Settings:
    progress_step: int = 10
    tick_interval: float = 0.15
    processing_delay: float = 3.0
    table_shape: TableShape = "rows"
    accept_csv: bool = True
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    def __post_init__(self) -> None:
        if not 0 < self.progress_step <= 100:
            raise ValueError("progress_step must be between 1 and 100")
        if self.tick_interval < 0 or self.processing_delay < 0:
            raise ValueError("timer durations cannot be negative")
        if self.table_shape not in ("rows", "records"):
            raise ValueError("table_shape must be 'rows' or 'records'")


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _parse_origins(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        items = [str(item) for item in value]
    else:
        items = str(value).split(",")
    return [origin.strip() for origin in items if origin.strip()]


_CONVERTERS = {
    "progress_step": int,
    "tick_interval": float,
    "processing_delay": float,
    "table_shape": lambda value: str(value).strip().lower(),
    "accept_csv": _parse_bool,
    "log_level": lambda value: str(value).strip().upper(),
    "cors_origins": _parse_origins,
}


def _load_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"config file not found: {path}")
    with path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    if not isinstance(data, dict):
        raise ValueError(f"config file must contain a mapping: {path}")
    return data


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """Build settings from an optional YAML file overlaid with environment variables.

    ``EXCELFLOW_CONFIG`` names the YAML file; environment variables win over it.
    """

    env = os.environ if environ is None else environ
    known = {item.name for item in fields(Settings)}
    values: dict[str, Any] = {}

    config_path = env.get("EXCELFLOW_CONFIG")
    if config_path:
        for key, value in _load_config_file(Path(config_path).expanduser()).items():
            if key in known and value is not None:
                values[key] = value

    for name, var in ENV_VARS.items():
        raw = env.get(var)
        if raw is not None and raw.strip():
            values[name] = raw

    converted = {name: _CONVERTERS[name](value) for name, value in values.items()}
    settings = Settings(**converted)
    if not settings.cors_origins:
        settings = Settings(**{**converted, "cors_origins": list(DEFAULT_CORS_ORIGINS)})
    return settings
