# /src/querysh/utils.py
import os
import sys
from pathlib import Path

# --- Centralized Path Constants ---
QUERYSH_HOME = Path(os.getenv("QUERYSH_HOME", Path.home() / ".querysh"))
DEFAULT_HISTORY_FILE = Path.home() / ".querysh_history"


def get_pkg_root() -> Path:
    """
    Gets the root directory of the querysh package. This works correctly
    whether running from source or as a frozen PyInstaller executable.
    """
    if getattr(sys, "frozen", False):
        return Path(sys._MEIPASS) / "querysh"
    else:
        return Path(__file__).parent


def get_grammar_path(name: str) -> Path:
    """Gets the path of a bundled lark grammar file."""
    return get_pkg_root() / "sql" / "grammar" / name
