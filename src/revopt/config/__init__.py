"""
Configuration management with typed Pydantic models.

Provides YAML configuration loading with environment variable
interpolation and base-config inheritance.
"""

from revopt.config.loader import load_config
from revopt.config.settings import (
    CacheConfig,
    LoaderConfig,
    LoggingConfig,
    SourceConfig,
    TransportConfig,
    ValidationConfig,
)

__all__ = [
    "CacheConfig",
    "LoaderConfig",
    "LoggingConfig",
    "SourceConfig",
    "TransportConfig",
    "ValidationConfig",
    "load_config",
]
