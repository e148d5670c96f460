"""Configuration loading and defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml


_DEFAULT_CONFIG_DIR = Path.home() / ".config" / "minutekeeper"
_DEFAULT_CONFIG_PATH = _DEFAULT_CONFIG_DIR / "config.yaml"


@dataclass
class Config:
    cache_path: Path
    current_user: str | None = None
    rpc_workers: int = 4
    minutes_collection: str = "minutes"
    series_collection: str = "meetingSeries"


def load_config(config_path: Path | None = None) -> Config:
    """Load config from YAML file, falling back to defaults where possible."""
    path = config_path or _DEFAULT_CONFIG_PATH
    path = Path(path).expanduser()

    if not path.exists():
        raise FileNotFoundError(
            f"Config file not found: {path}\n"
            f"Create one at {_DEFAULT_CONFIG_PATH} or pass --config."
        )

    raw = yaml.safe_load(path.read_text())
    if not raw or not isinstance(raw, dict):
        raise ValueError(f"Invalid config file: {path}")

    if "cache_path" not in raw:
        raise ValueError("'cache_path' is required in config")

    kwargs: dict = {"cache_path": Path(raw["cache_path"]).expanduser()}
    if "rpc_workers" in raw:
        workers = raw["rpc_workers"]
        if not isinstance(workers, int) or workers < 1:
            raise ValueError(f"'rpc_workers' must be a positive integer, got {workers!r}")
        kwargs["rpc_workers"] = workers
    for key in ("current_user", "minutes_collection", "series_collection"):
        if key in raw:
            kwargs[key] = raw[key]

    return Config(**kwargs)
