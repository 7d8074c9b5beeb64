"""Workspace root detection."""

from pathlib import Path


def find_workspace_root(file_path: str | Path, markers: list[str]) -> str:
    """Find workspace root by searching upward for marker files.

    Args:
        file_path: Path to a file or directory inside the workspace
        markers: List of marker files to search for

    Returns:
        Path to workspace root directory
    """
    path = Path(file_path).resolve()
    start = path.parent if path.is_file() else path
    current = start

    while current != current.parent:
        for marker in markers:
            if (current / marker).exists():
                return str(current)
        current = current.parent

    # Fallback to the file's directory
    return str(start)
