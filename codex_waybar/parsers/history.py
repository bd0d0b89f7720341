"""Discover recently active Codex sessions from ``history.jsonl``."""
from __future__ import annotations

import json
import logging
from pathlib import Path

logger = logging.getLogger("codex_waybar.history")

SESSION_ID_KEY = "session_id"


def recent_session_ids(history_path: Path, limit: int) -> list[str]:
    """Return up to ``limit`` distinct session ids, oldest first.

    The history file is scanned from the end, so the ids returned are the most
    recently active ones. A missing history file yields an empty list; other
    I/O errors propagate.
    """
    if limit <= 0:
        return []

    try:
        content = history_path.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        return []

    seen: set[str] = set()
    ordered: list[str] = []
    for line in reversed(content.split("\n")):
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as exc:
            logger.warning("Skipping malformed history entry: %s", exc)
            continue
        if not isinstance(record, dict):
            continue
        session_id = record.get(SESSION_ID_KEY)
        if not isinstance(session_id, str) or session_id in seen:
            continue
        seen.add(session_id)
        ordered.append(session_id)
        if len(ordered) == limit:
            break

    ordered.reverse()
    return ordered
