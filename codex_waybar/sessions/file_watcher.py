"""Wait between polling passes, optionally waking early on file changes.

Uses `watchfiles` (Rust-accelerated) when enabled; otherwise a plain sleep.
"""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Iterator, Optional

from watchfiles import Change, watch

logger = logging.getLogger("codex_waybar.watcher")

_STEP_MS = 50


def _is_session_log(change: Change, path: str) -> bool:
    return path.endswith(".jsonl")


class ChangeWaiter:
    """Blocks for at most one poll interval per call to ``wait()``."""

    def __init__(
        self,
        poll_interval: float,
        watch_paths: Optional[list[Path]] = None,
        enabled: bool = False,
    ):
        self.poll_interval = poll_interval
        self.watch_paths = list(watch_paths or [])
        self.enabled = enabled
        self._changes: Optional[Iterator[set[tuple[Change, str]]]] = None

    @property
    def is_watching(self) -> bool:
        return self._changes is not None

    def _start(self) -> None:
        paths = [p for p in self.watch_paths if p.exists()]
        if not paths:
            logger.warning("No watch paths exist, falling back to polling")
            self.enabled = False
            return

        timeout_ms = max(1, int(self.poll_interval * 1000))
        self._changes = watch(
            *paths,
            watch_filter=_is_session_log,
            debounce=timeout_ms,
            step=min(_STEP_MS, timeout_ms),
            rust_timeout=timeout_ms,
            yield_on_timeout=True,
        )
        logger.info("Watching %d paths: %s", len(paths), [str(p) for p in paths])

    def wait(self) -> set[tuple[Change, str]]:
        """Return the changes observed, or an empty set after a plain timeout."""
        if self.enabled and self._changes is None:
            self._start()

        if self._changes is None:
            time.sleep(self.poll_interval)
            return set()

        try:
            changes = next(self._changes)
        except StopIteration:
            self._changes = None
            self.enabled = False
            return set()
        except (OSError, RuntimeError) as exc:
            logger.warning("File watcher unavailable, falling back to polling: %s", exc)
            self._changes = None
            self.enabled = False
            time.sleep(self.poll_interval)
            return set()
        if changes:
            logger.debug("Detected %d session log changes", len(changes))
        return changes
