"""Configuration loader — reads optional YAML config and merges with defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from bills.errors import ConfigError

CONFIG_PATH = Path("~/.config/bills/config.yaml")

DEFAULTS = {
    "bills_path": "~/bills.json",
    "hourly_rate": None,
    "name": "",
    "output_dir": ".",
}


@dataclass
class BillsConfig:
    bills_path: Path
    hourly_rate: float | None
    name: str
    output_dir: Path


def _read_yaml(config_path: Path) -> dict:
    try:
        with open(config_path) as f:
            loaded = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Could not parse {config_path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Could not read {config_path}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{config_path} must contain a mapping of settings.")
    return loaded


def save_config_value(key: str, value: object, config_path: Path | None = None) -> None:
    """Update a single key in the config file, preserving other settings."""
    if key not in DEFAULTS:
        raise ConfigError(f"Unknown setting '{key}'. Known settings: {', '.join(DEFAULTS)}.")
    if config_path is None:
        config_path = CONFIG_PATH
    config_path = config_path.expanduser()

    existing: dict = {}
    if config_path.is_file():
        existing = _read_yaml(config_path)

    existing[key] = value
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            yaml.dump(existing, f, default_flow_style=False)
    except OSError as exc:
        raise ConfigError(f"Could not write {config_path}: {exc}") from exc


def load_config(config_path: Path | None = None) -> BillsConfig:
    """Load config from ~/.config/bills/config.yaml, merged with defaults.

    Expand ~ in paths. If no config file exists, return defaults (don't error).
    The hourly rate is passed through as-is; it is validated when a session starts.
    """
    if config_path is None:
        config_path = CONFIG_PATH

    config_path = Path(config_path).expanduser()

    merged = dict(DEFAULTS)

    if config_path.is_file():
        user_config = _read_yaml(config_path)
        for key in DEFAULTS:
            if key in user_config:
                merged[key] = user_config[key]

    return BillsConfig(
        bills_path=Path(merged["bills_path"]).expanduser(),
        hourly_rate=merged["hourly_rate"],
        name=str(merged["name"] or ""),
        output_dir=Path(merged["output_dir"]).expanduser(),
    )
