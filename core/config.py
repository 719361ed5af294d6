"""Project and configuration discovery helpers."""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from core.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "metatest.yaml"
PROJECT_MARKERS = (DEFAULT_CONFIG_NAME, "pyproject.toml", ".git")

DEFAULT_CONFIG: Dict[str, Any] = {
    "backend": {
        "base_url": "https://metatest-backend-production.up.railway.app/api",
        "timeout": 30,
    },
    "registry": {
        "base_url": "https://huggingface.co",
        "timeout": 30,
        "token_env": "HF_TOKEN",
        "search_limit": 10,
        "task_limit": 5,
    },
    "catalog": {
        "load_more_source": "backend",
        "load_more_tasks": [
            "sentiment",
            "zero-shot-classification",
            "text-generation",
            "translation",
            "summarization",
        ],
        "dedupe_within_cycle": False,
    },
    "storage": {
        "db_path": "metatest.duckdb",
    },
}

# env var -> (section, key)
ENV_OVERRIDES = {
    "METATEST_API_URL": ("backend", "base_url"),
    "METATEST_DB_PATH": ("storage", "db_path"),
}


def find_project_root(start_dir: Optional[Path] = None) -> Path:
    """Find project root by scanning upward for known project markers."""
    current = (start_dir or Path.cwd()).resolve()

    for candidate in (current, *current.parents):
        if any((candidate / marker).exists() for marker in PROJECT_MARKERS):
            return candidate

    return current


def resolve_config_path(config_path: Optional[str] = None, start_dir: Optional[Path] = None) -> Path:
    """Resolve a config path from explicit input or project root discovery."""
    if config_path:
        provided = Path(config_path).expanduser()
        if not provided.is_absolute():
            provided = (start_dir or Path.cwd()) / provided
        provided = provided.resolve()
        if not provided.exists():
            raise ConfigError(f"Config file not found: {provided}")
        return provided

    project_root = find_project_root(start_dir)
    config_file = project_root / DEFAULT_CONFIG_NAME
    if not config_file.exists():
        raise ConfigError("No metatest.yaml found. Run `metatest init`.")
    return config_file


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(
    config_path: Optional[str] = None,
    start_dir: Optional[Path] = None,
    required: bool = False,
) -> Dict[str, Any]:
    """Load configuration merged over the built-in defaults.

    An explicit ``config_path`` must exist. Without one, the project root is
    searched; when nothing is found the defaults are used unless ``required``.
    Environment variables (and a ``.env`` file) override file values.
    """
    load_dotenv()

    try:
        path: Optional[Path] = resolve_config_path(config_path, start_dir)
    except ConfigError:
        if config_path or required:
            raise
        logger.debug("No config file found, using defaults")
        path = None

    file_config: Dict[str, Any] = {}
    if path is not None:
        try:
            with open(path, "r", encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Error parsing configuration file {path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigError(f"Configuration file {path} must contain a mapping")

    config = _deep_merge(DEFAULT_CONFIG, file_config)

    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            config.setdefault(section, {})[key] = value

    return config


def dump_default_config(path: Path) -> None:
    """Write the default configuration as a starting ``metatest.yaml``."""
    with open(path, "w", encoding="utf-8") as fp:
        yaml.safe_dump(DEFAULT_CONFIG, fp, sort_keys=False)
