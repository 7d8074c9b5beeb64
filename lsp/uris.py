"""Conversion between filesystem paths and file:// document URIs."""

import os
from pathlib import Path
from urllib.parse import unquote, urlparse


def path_to_uri(path: str | os.PathLike[str]) -> str:
    """Render a path as the absolute file:// URI that identifies it to the server."""
    return Path(os.path.abspath(path)).as_uri()


def uri_to_path(uri: str) -> str:
    if not uri.startswith("file://"):
        return uri
    return unquote(urlparse(uri).path)
