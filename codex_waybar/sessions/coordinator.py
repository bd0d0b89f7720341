"""Multi-session tail coordination and freshness arbitration.

The coordinator keeps one ``TrackedSession`` per session id it is following.
A session id without an entry is untracked. New or lost sessions are primed
(resolved to a file and scanned for their latest reasoning event), and
sessions in the tailing phase are read incrementally. Every event produced
during a poll is a candidate, and the freshest candidate across all sessions
wins the pass.
"""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Iterable, Optional

from codex_waybar.models import (
    RenderedEvent,
    SessionEvent,
    SessionPhase,
    TrackedSession,
)
from codex_waybar.parsers.history import recent_session_ids
from codex_waybar.parsers.reasoning import process_log_line
from codex_waybar.sessions.locator import locate_session_file
from codex_waybar.sessions.tail import read_new_lines

logger = logging.getLogger("codex_waybar.coordinator")


def is_newer_timestamp(candidate: Optional[str], current: Optional[str]) -> bool:
    """Compare opaque timestamps; a present timestamp beats a missing one."""
    if candidate is None:
        return False
    if current is None:
        return True
    return candidate > current


def select_newer_event(
    current: Optional[SessionEvent],
    candidate: SessionEvent,
) -> SessionEvent:
    """Pick the fresher of two events.

    On equal timestamps a differing payload replaces the current winner, so
    the later-processed candidate wins true ties.
    """
    if current is None:
        return candidate
    if is_newer_timestamp(candidate.event.timestamp, current.event.timestamp):
        return candidate
    if (
        candidate.event.timestamp == current.event.timestamp
        and candidate.event.payload != current.event.payload
    ):
        return candidate
    return current


def should_emit(last_emitted: Optional[SessionEvent], candidate: SessionEvent) -> bool:
    if last_emitted is None:
        return True
    return (
        last_emitted.session_id != candidate.session_id
        or last_emitted.event.timestamp != candidate.event.timestamp
        or last_emitted.event.payload != candidate.event.payload
    )


def prime_session(path: Path, max_chars: int) -> tuple[list[RenderedEvent], int]:
    """Scan an existing session file and position the offset at its end.

    Every line goes through the text pipeline but only the last rendered
    reasoning event is kept, so a later event without a timestamp still
    beats an earlier one that has one. Returns ``([event] or [], offset)``.
    A file that has disappeared yields no events and offset 0.
    """
    try:
        lines, offset = read_new_lines(path, 0)
    except FileNotFoundError:
        return [], 0

    last: Optional[RenderedEvent] = None
    for line in lines:
        event = process_log_line(line, max_chars)
        if event is not None:
            last = event
    return ([last] if last is not None else []), offset


class TailCoordinator:
    """Owns the tracked-session map and performs one polling pass at a time.

    When ``pinned_id`` is set, only that session is followed and history
    discovery is skipped entirely; otherwise the tracked set is the
    ``session_window`` most recent ids from ``history.jsonl``, refreshed at
    most once per ``refresh_interval`` seconds.

    Newly added ids stay untracked (no ``sessions`` entry) until the next
    poll primes them. ``start_at_beginning`` does not change what priming
    yields: both modes scan the whole file and resume tailing at its end.
    """

    def __init__(
        self,
        sessions_root: Path,
        history_path: Optional[Path] = None,
        *,
        max_chars: int = 120,
        session_window: int = 4,
        refresh_interval: float = 5.0,
        start_at_beginning: bool = False,
        pinned_id: Optional[str] = None,
        pinned_path: Optional[Path] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.sessions_root = sessions_root
        self.history_path = history_path
        self.max_chars = max_chars
        self.session_window = session_window
        self.refresh_interval = refresh_interval
        self.start_at_beginning = start_at_beginning
        self.pinned_id = pinned_id
        self.pinned_path = pinned_path
        self._clock = clock
        self._last_refresh: Optional[float] = None

        self.sessions: dict[str, TrackedSession] = {}
        self.tracked_ids: list[str] = [pinned_id] if pinned_id is not None else []

    @property
    def auto_discover(self) -> bool:
        return self.pinned_id is None

    # ── Session set ─────────────────────────────────────────────────

    def refresh_sessions(self, force: bool = False) -> bool:
        """Re-run discovery if the refresh interval has elapsed.

        Returns True when discovery actually ran.
        """
        if not self.auto_discover or self.history_path is None:
            return False
        now = self._clock()
        if (
            not force
            and self._last_refresh is not None
            and now - self._last_refresh < self.refresh_interval
        ):
            return False

        self._last_refresh = now
        try:
            candidates = recent_session_ids(self.history_path, self.session_window)
        except OSError as exc:
            logger.warning("Failed to read history %s: %s", self.history_path, exc)
            return False

        self.reconcile(candidates)
        return True

    def reconcile(self, candidate_ids: Iterable[str]) -> tuple[list[str], list[str]]:
        """Replace the tracked set, returning the ``(added, removed)`` ids."""
        candidates = list(dict.fromkeys(candidate_ids))
        if self.pinned_id is not None and self.pinned_id not in candidates:
            candidates.append(self.pinned_id)

        previous = set(self.tracked_ids)
        current = set(candidates)
        added = [sid for sid in candidates if sid not in previous]
        removed = [sid for sid in self.tracked_ids if sid not in current]

        for session_id in removed:
            if self.sessions.pop(session_id, None) is not None:
                logger.info("Stopped tracking session %s", session_id)

        self.tracked_ids = candidates
        return added, removed

    # ── Per-session steps ───────────────────────────────────────────

    def _resolve_path(self, session_id: str) -> Optional[Path]:
        if session_id == self.pinned_id and self.pinned_path is not None:
            return self.pinned_path
        return locate_session_file(self.sessions_root, session_id)

    def _prime(self, session_id: str) -> list[RenderedEvent]:
        try:
            path = self._resolve_path(session_id)
            if path is None or not path.exists():
                self.sessions.pop(session_id, None)
                return []
            events, offset = prime_session(path, self.max_chars)
        except OSError as exc:
            logger.warning("Failed to prime session %s: %s", session_id, exc)
            self.sessions.pop(session_id, None)
            return []

        self.sessions[session_id] = TrackedSession(
            session_id=session_id,
            path=path,
            offset=offset,
            phase=SessionPhase.TAILING,
        )
        logger.info("Tracking session %s at %s", session_id, path)
        return events

    def _tail(self, state: TrackedSession) -> list[RenderedEvent]:
        try:
            lines, state.offset = read_new_lines(state.path, state.offset)
        except FileNotFoundError:
            logger.info("Session file %s disappeared, re-resolving", state.path)
            state.phase = SessionPhase.PRIMING
            return []
        except OSError as exc:
            logger.error("Error reading %s: %s", state.path, exc)
            return []

        events: list[RenderedEvent] = []
        for line in lines:
            event = process_log_line(line, self.max_chars)
            if event is not None:
                events.append(event)
        return events

    def step(self, session_id: str) -> list[RenderedEvent]:
        """Prime or tail one session and return the events it produced."""
        state = self.sessions.get(session_id)
        if state is None or state.phase is SessionPhase.PRIMING:
            return self._prime(session_id)
        return self._tail(state)

    # ── Polling pass ────────────────────────────────────────────────

    def poll(self) -> Optional[SessionEvent]:
        """Run one step for every tracked session and return the freshest event."""
        newest: Optional[SessionEvent] = None
        for session_id in list(self.tracked_ids):
            for event in self.step(session_id):
                newest = select_newer_event(
                    newest,
                    SessionEvent(session_id=session_id, event=event),
                )
        return newest


def emit_if_changed(
    winner: Optional[SessionEvent],
    last_emitted: Optional[SessionEvent],
    sink,
) -> Optional[SessionEvent]:
    """Write ``winner`` to ``sink`` unless it matches ``last_emitted``.

    Returns the event that is now published. A failed write leaves the
    previous value in place so the next pass retries.
    """
    if winner is None or not should_emit(last_emitted, winner):
        return last_emitted
    try:
        sink.write(winner.event.payload)
    except OSError as exc:
        logger.error("Failed to write cache file: %s", exc)
        return last_emitted
    logger.debug("Published reasoning from session %s", winner.session_id)
    return winner


def run_loop(
    coordinator: TailCoordinator,
    sink,
    waiter,
    iterations: Optional[int] = None,
) -> Optional[SessionEvent]:
    """Drive the polling loop; ``iterations`` bounds it (None runs forever)."""
    last_emitted: Optional[SessionEvent] = None
    count = 0
    while iterations is None or count < iterations:
        coordinator.refresh_sessions()
        if coordinator.tracked_ids:
            winner = coordinator.poll()
            last_emitted = emit_if_changed(winner, last_emitted, sink)
        count += 1
        waiter.wait()
    return last_emitted
