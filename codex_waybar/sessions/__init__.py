"""Session tracking: locating, tailing and arbitrating Codex session logs."""

from codex_waybar.sessions.coordinator import (
    TailCoordinator,
    emit_if_changed,
    run_loop,
    select_newer_event,
    should_emit,
)
from codex_waybar.sessions.file_watcher import ChangeWaiter
from codex_waybar.sessions.locator import infer_session_id_from_path, locate_session_file
from codex_waybar.sessions.tail import read_new_lines

__all__ = [
    "TailCoordinator",
    "emit_if_changed",
    "run_loop",
    "select_newer_event",
    "should_emit",
    "ChangeWaiter",
    "infer_session_id_from_path",
    "locate_session_file",
    "read_new_lines",
]
