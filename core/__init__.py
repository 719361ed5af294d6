"""Core shared utilities for MetaTest."""

from core.config import DEFAULT_CONFIG_NAME, find_project_root, load_config, resolve_config_path
from core.errors import ConfigError, ExecutionError, FetchFailure, MetaTestError, ValidationFailure

__all__ = [
    "DEFAULT_CONFIG_NAME",
    "find_project_root",
    "load_config",
    "resolve_config_path",
    "MetaTestError",
    "ConfigError",
    "FetchFailure",
    "ValidationFailure",
    "ExecutionError",
]
