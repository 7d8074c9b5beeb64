"""Editor-side integration of language intelligence."""

from .language_service import LanguageService
from .logging_config import log_timing, setup_logging, timed
from .workspace import find_workspace_root

__all__ = [
    "LanguageService",
    "find_workspace_root",
    "log_timing",
    "setup_logging",
    "timed",
]
