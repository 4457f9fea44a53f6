"""Configuration system."""

from index_core.config.loader import load_config
from index_core.config.schema import AppConfig, EngineConfig

__all__ = ["AppConfig", "EngineConfig", "load_config"]
