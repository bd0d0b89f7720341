"""Atomic cache file shared with the Waybar module."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from codex_waybar.models import WaybarOutput, placeholder_output

logger = logging.getLogger("codex_waybar.cache")


def _serialize(payload: WaybarOutput) -> str:
    return json.dumps(payload.to_cache_dict(), ensure_ascii=False, separators=(",", ":")) + "\n"


class CacheSink:
    """Writes payloads to ``path`` so that readers never see a partial file.

    The payload is written to a sibling ``.tmp`` file, synced to disk, and
    then renamed over the destination.
    """

    def __init__(self, path: Path):
        self.path = path

    @property
    def temp_path(self) -> Path:
        return self.path.with_suffix(".tmp")

    def write(self, payload: WaybarOutput) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.temp_path
        with temp_path.open("w", encoding="utf-8") as handle:
            handle.write(_serialize(payload))
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, self.path)
        logger.debug("Wrote %s", self.path)


def read_cache_text(path: Path) -> str:
    """Return the cache file content, or the placeholder payload if it does not exist yet."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return _serialize(placeholder_output())
