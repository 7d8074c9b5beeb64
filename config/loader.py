"""Configuration loading utilities."""

import json
import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

from .defaults import CONFIG_DIR_NAME, CONFIG_FILE_STEM
from .main_config import Config

logger = logging.getLogger(__name__)


def strip_jsonc_comments(content: str) -> str:
    """
    Strip comments from JSONC content to convert to valid JSON.

    Handles:
    - Single-line comments: // comment
    - Multi-line comments: /* comment */

    Args:
        content: JSONC content string

    Returns:
        JSON string with comments removed
    """
    # Remove single-line comments
    content = re.sub(r"//.*?$", "", content, flags=re.MULTILINE)
    # Remove multi-line comments
    content = re.sub(r"/\*.*?\*/", "", content, flags=re.DOTALL)
    return content


def load_config_file(path: Path) -> dict[str, Any] | None:
    """
    Load a config file from the given path.

    Supports both .json and .jsonc files with comment stripping.

    Args:
        path: Path to the config file

    Returns:
        Parsed config dictionary or None if the file is missing or unreadable
    """
    if not path.exists():
        return None

    try:
        content = path.read_text()
        if path.suffix == ".jsonc":
            content = strip_jsonc_comments(content)
        data = json.loads(content)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to load config from %s: %s", path, e)
        return None

    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top level is not an object", path)
        return None
    return data


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two configuration dictionaries.

    Args:
        base: Base configuration
        override: Override configuration (takes precedence)

    Returns:
        Merged configuration dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def global_config_path() -> Path:
    return Path.home() / CONFIG_DIR_NAME / f"{CONFIG_FILE_STEM}.jsonc"


def project_config_paths(project_root: Path) -> list[Path]:
    return [
        project_root / f"{CONFIG_FILE_STEM}.jsonc",
        project_root / f"{CONFIG_FILE_STEM}.json",
        project_root / CONFIG_DIR_NAME / f"{CONFIG_FILE_STEM}.jsonc",
    ]


def load_config(project_root: Path | None = None) -> Config:
    """
    Load configuration from multiple sources with precedence.

    Looks for config files in the following order:
    1. Project-level: tron.jsonc, tron.json, .tron/tron.jsonc (first found wins)
    2. Global: ~/.tron/tron.jsonc

    Project config is merged with and takes precedence over global config.

    Args:
        project_root: Project root directory (defaults to current working directory)

    Returns:
        Loaded and merged Config model
    """
    if project_root is None:
        project_root = Path.cwd()

    config_data = load_config_file(global_config_path()) or {}

    for path in project_config_paths(project_root):
        project_config = load_config_file(path)
        if project_config:
            config_data = merge_configs(config_data, project_config)
            break

    return Config(**config_data)


@lru_cache(maxsize=1)
def get_config(project_root: Path | None = None) -> Config:
    """
    Get cached configuration.

    To reload the config, clear the cache with get_config.cache_clear().

    Args:
        project_root: Project root directory (defaults to current working directory)

    Returns:
        Cached Config model
    """
    return load_config(project_root or Path.cwd())
