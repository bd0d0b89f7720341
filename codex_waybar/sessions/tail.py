"""Incremental reading of append-only session logs.

Every call opens the file afresh and resumes from a byte offset, so no file
handle is held between polls. If the file is now shorter than the offset it
was truncated or replaced, and reading restarts from the beginning.
"""
from __future__ import annotations

import os
from pathlib import Path


def _decode(raw: bytes) -> str:
    if raw.endswith(b"\n"):
        raw = raw[:-1]
    return raw.decode("utf-8", errors="replace")


def read_new_lines(path: Path, offset: int) -> tuple[list[str], int]:
    """Return the lines appended to ``path`` since ``offset`` and the new offset.

    A final line without a trailing newline is returned as-is and the offset
    moves past it, so it will not be read again once the writer finishes it.

    Raises:
        FileNotFoundError: the file is gone; the caller should re-resolve it.
        OSError: any other read failure.
    """
    with path.open("rb") as handle:
        size = os.fstat(handle.fileno()).st_size
        if offset > size:
            offset = 0
        handle.seek(offset)

        lines: list[str] = []
        for raw in handle:
            offset += len(raw)
            lines.append(_decode(raw))

    return lines, offset
