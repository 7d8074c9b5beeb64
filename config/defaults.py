"""Default configuration values."""

from lsp import DEFAULT_SHUTDOWN_GRACE_PERIOD

DEFAULT_SERVER_COMMAND = ["pylsp"]

DEFAULT_ROOT_MARKERS = [
    "pyproject.toml",
    "setup.py",
    "setup.cfg",
    "requirements.txt",
    "package.json",
    "go.mod",
    "Cargo.toml",
    ".git",
]

CONFIG_DIR_NAME = ".tron"
CONFIG_FILE_STEM = "tron"
