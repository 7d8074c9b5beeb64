"""
Configuration module for the editor.

Exports the configuration models and loader functions.
"""

from .defaults import (
    DEFAULT_ROOT_MARKERS,
    DEFAULT_SERVER_COMMAND,
    DEFAULT_SHUTDOWN_GRACE_PERIOD,
)
from .language_server_config import LanguageServerConfig
from .loader import (
    get_config,
    global_config_path,
    load_config,
    load_config_file,
    merge_configs,
    project_config_paths,
    strip_jsonc_comments,
)
from .main_config import Config

__all__ = [
    # Constants
    "DEFAULT_ROOT_MARKERS",
    "DEFAULT_SERVER_COMMAND",
    "DEFAULT_SHUTDOWN_GRACE_PERIOD",
    # Config models
    "Config",
    "LanguageServerConfig",
    # Loader functions
    "get_config",
    "global_config_path",
    "load_config",
    "load_config_file",
    "merge_configs",
    "project_config_paths",
    "strip_jsonc_comments",
]
