"""
File extension to language ID classification.

The table is an immutable value built once (from defaults plus any configured
overrides) and handed to the client.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

PLAINTEXT = "plaintext"

# Keys starting with "." are extensions; anything else is an exact file name
DEFAULT_LANGUAGES: Mapping[str, str] = MappingProxyType({
    # Python
    ".py": "python",
    ".pyi": "python",
    # Go
    ".go": "go",
    # TypeScript/JavaScript
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascriptreact",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "typescriptreact",
    # Rust
    ".rs": "rust",
    # C/C++
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".cxx": "cpp",
    ".hpp": "cpp",
    ".hh": "cpp",
    # JVM
    ".java": "java",
    ".kt": "kotlin",
    ".scala": "scala",
    # Scripting
    ".rb": "ruby",
    ".php": "php",
    ".lua": "lua",
    ".sh": "shellscript",
    ".bash": "shellscript",
    ".zsh": "shellscript",
    # Config/Data
    ".json": "json",
    ".jsonc": "jsonc",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
    ".xml": "xml",
    # Web
    ".html": "html",
    ".htm": "html",
    ".css": "css",
    ".scss": "scss",
    # Documentation
    ".md": "markdown",
    ".markdown": "markdown",
    # Other
    ".sql": "sql",
    ".zig": "zig",
    "Dockerfile": "dockerfile",
    "Makefile": "makefile",
})


def _normalize_key(key: str) -> str:
    return key.lower() if key.startswith(".") else key


@dataclass(frozen=True)
class LanguageTable:
    """Read-only mapping from extension (or exact file name) to language ID."""

    entries: Mapping[str, str] = field(default_factory=lambda: DEFAULT_LANGUAGES)

    def __post_init__(self) -> None:
        normalized = {_normalize_key(key): value for key, value in self.entries.items()}
        object.__setattr__(self, "entries", MappingProxyType(normalized))

    @classmethod
    def from_overrides(cls, overrides: Mapping[str, str] | None = None) -> "LanguageTable":
        """Build a table from the defaults with ``overrides`` taking precedence."""
        entries = dict(DEFAULT_LANGUAGES)
        for key, value in (overrides or {}).items():
            entries[_normalize_key(key)] = value
        return cls(entries)

    def language_id(self, path: str | Path) -> str:
        """Get LSP language ID for a file; unknown files are plaintext."""
        path = Path(path)
        if path.name in self.entries:
            return self.entries[path.name]
        return self.entries.get(path.suffix.lower(), PLAINTEXT)
