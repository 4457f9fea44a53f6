"""Config loader: locates config.yaml, reads it, applies INDEX_* env overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml

from index_core.config.schema import AppConfig

CONFIG_PATH_ENV = "INDEX_CONFIG"
DEFAULT_CONFIG_PATH = "config.yaml"

# env var -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "INDEX_DATABASE_URL": ("database", "url"),
    "INDEX_LOG_LEVEL": ("logging", "level"),
    "INDEX_LOG_FORMAT": ("logging", "format"),
    "INDEX_API_PORT": ("api", "port"),
}


def resolve_config_path(path: str | Path | None = None) -> Path:
    """Explicit *path*, else $INDEX_CONFIG, else ./config.yaml."""
    if path is not None:
        return Path(path)
    return Path(os.environ.get(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH))


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from YAML, then apply env var overrides.

    A config file that doesn't exist yields the defaults (no indexes), so
    every process can start with only environment variables set.
    """
    data: dict = {}
    config_path = resolve_config_path(path)
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

    for env_var, (section, key) in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            data.setdefault(section, {})[key] = value

    return AppConfig.model_validate(data)
