"""Utility helpers shared across the engine and scripts."""

from .config import load_config_any, load_config_dict, load_engine_config
from .log import ConsoleFormatter, setup_logging

__all__ = [
    "load_config_dict",
    "load_config_any",
    "load_engine_config",
    "ConsoleFormatter",
    "setup_logging",
]
