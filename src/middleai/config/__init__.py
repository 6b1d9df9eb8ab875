"""
Configuration module for middleai.

Exports the main components for convenient imports.
"""

from .loader import config_from_env, load_config
from .schema import AppConfig, LoggingConfig, MiddleAIConfig

__all__ = [
    "load_config",
    "config_from_env",
    "AppConfig",
    "LoggingConfig",
    "MiddleAIConfig",
]
