"""
Project state -- the ``.dojorc`` file.

``.dojorc`` is a small JSON document at the project root. The acquisition
pipeline only touches ``currentDojo`` (the active pack); every other key
(kata progress, editor, ...) belongs to other commands and is preserved
verbatim on rewrite.
"""

import json
from pathlib import Path
from typing import Any

import structlog

from ..config.loader import RC_FILENAME

logger = structlog.get_logger()

ACTIVE_KEY = "currentDojo"


def rc_path(project_root: Path) -> Path:
    return project_root / RC_FILENAME


def read_rc(project_root: Path) -> dict[str, Any]:
    """Read ``.dojorc``. A missing or non-object file reads as empty state.

    Raises:
        json.JSONDecodeError: If the file exists but is not valid JSON.
    """
    path = rc_path(project_root)
    if not path.exists():
        return {}
    data = json.loads(path.read_text(encoding="utf-8"))
    return data if isinstance(data, dict) else {}


def write_rc(project_root: Path, rc: dict[str, Any]) -> None:
    path = rc_path(project_root)
    path.write_text(json.dumps(rc, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def read_active_selection(project_root: Path) -> str | None:
    """Return the name of the active pack, or None when nothing is selected."""
    value = read_rc(project_root).get(ACTIVE_KEY)
    return value if isinstance(value, str) and value else None


def write_active_selection(project_root: Path, name: str | None) -> None:
    """Set (or clear, with None) the active pack.

    Read, update one key, write back. A single ``dojo`` process owns the
    file for the duration of a command.
    """
    rc = read_rc(project_root)
    previous = rc.get(ACTIVE_KEY)
    rc[ACTIVE_KEY] = name or ""
    if not name:
        rc["currentKata"] = None
    write_rc(project_root, rc)
    logger.info("state.active_selection", previous=previous, current=name)
