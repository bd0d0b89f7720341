"""Resolve Codex session ids to rollout files on disk."""
from __future__ import annotations

import glob
import logging
from pathlib import Path

logger = logging.getLogger("codex_waybar.locator")

SESSION_SUFFIX = ".jsonl"


def locate_session_file(root: Path, session_id: str) -> Path | None:
    """Return the most recently modified ``*<session_id>*.jsonl`` under ``root``."""
    pattern = f"**/*{glob.escape(session_id)}*{SESSION_SUFFIX}"
    newest_path: Path | None = None
    newest_mtime: float | None = None

    for path in root.glob(pattern):
        try:
            mtime = path.stat().st_mtime
        except OSError:
            # Rotated away between the directory scan and stat.
            continue
        if newest_mtime is None or mtime > newest_mtime:
            newest_mtime = mtime
            newest_path = path

    if newest_path is None:
        logger.debug("No session file for %s under %s", session_id, root)
    return newest_path


def infer_session_id_from_path(path: Path) -> str | None:
    """Derive a session id from a rollout file name such as ``rollout-...-<id>.jsonl``."""
    name = path.name
    if not name.endswith(SESSION_SUFFIX):
        return None
    segment = name.split("-")[-1]
    session_id = segment[: -len(SESSION_SUFFIX)]
    return session_id or None
