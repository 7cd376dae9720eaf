from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict

import yaml

DEFAULT_CONFIG: Dict[str, object] = {
    "db_path": "fintrack.db",
    "principal": None,
    "output_dir": "./data",
    "log_level": "WARNING",
    "output_modules": {
        "csv": "finance_tracker.outputs.csv_output.CSVOutput",
        "html": "finance_tracker.outputs.html_output.HTMLOutput",
    },
    "dashboard_months": 6,
    "report_months": 1,
}

ENV_OVERRIDES = {
    "FINTRACK_DB_PATH": "db_path",
    "FINTRACK_PRINCIPAL": "principal",
    "FINTRACK_OUTPUT_DIR": "output_dir",
    "FINTRACK_LOG_LEVEL": "log_level",
}


def _merge_defaults(current: Dict[str, object], defaults: Dict[str, object]) -> Dict[str, object]:
    """Merge missing default keys into the current config recursively."""
    merged = dict(current)
    for key, value in defaults.items():
        if key not in merged:
            merged[key] = value
        elif isinstance(value, dict) and isinstance(merged[key], dict):
            merged[key] = _merge_defaults(merged[key], value)
    return merged


def load_config(path: str | Path | None = None) -> Dict[str, object]:
    """Read a YAML config (if given and present), fill defaults, apply env overrides."""
    config: Dict[str, object] = {}
    if path and Path(path).exists():
        with open(path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        config = loaded

    config = _merge_defaults(config, DEFAULT_CONFIG)
    for env_key, cfg_key in ENV_OVERRIDES.items():
        value = os.environ.get(env_key)
        if value:
            config[cfg_key] = value
    return config


def configure_logging(config: Dict[str, object]) -> None:
    level = str(config.get("log_level") or "WARNING").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
