"""codex-waybar: publish Codex reasoning updates for Waybar."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from codex_waybar import config
from codex_waybar.cache import CacheSink, read_cache_text
from codex_waybar.config import ConfigurationError
from codex_waybar.sessions import (
    ChangeWaiter,
    TailCoordinator,
    infer_session_id_from_path,
    run_loop,
)

logger = logging.getLogger("codex_waybar")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codex-waybar",
        description="Publish Codex reasoning updates for Waybar",
    )
    parser.add_argument("--print-cache", type=Path, help="Print the contents of a cache file once and exit")
    parser.add_argument("--session-file", type=Path, help="Explicit session log file to read (skip auto-discovery)")
    parser.add_argument("--session-id", help="Explicit Codex session id (skip auto-discovery)")
    parser.add_argument("--history-path", type=Path, help="Path to Codex history.jsonl (default: ~/.codex/history.jsonl)")
    parser.add_argument("--sessions-root", type=Path, help="Root of Codex sessions directory (default: ~/.codex/sessions)")
    parser.add_argument("--poll-ms", type=int, default=config.POLL_MS, help="Poll interval in milliseconds while tailing")
    parser.add_argument(
        "--session-refresh-secs",
        type=int,
        default=config.SESSION_REFRESH_SECS,
        help="Re-check history for fresher sessions every N seconds",
    )
    parser.add_argument(
        "--session-window",
        type=int,
        default=config.SESSION_WINDOW,
        help="Track up to N recent Codex sessions concurrently",
    )
    parser.add_argument("--max-chars", type=int, default=config.MAX_CHARS, help="Maximum bytes to emit for the Waybar label")
    parser.add_argument("--cache-file", type=Path, default=config.CACHE_FILE, help="Write the most recent payload to this file")
    parser.add_argument(
        "--start-at-beginning",
        action="store_true",
        default=config.START_AT_BEGINNING,
        help="Scan existing logs from the start when priming (the latest event is published and tailing resumes at EOF either way)",
    )
    parser.add_argument(
        "--watch",
        action="store_true",
        default=config.WATCH_ENABLED,
        help="Wake up early when session logs change instead of sleeping a full poll interval",
    )
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Logging level (default: INFO)")
    return parser


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, str(level_name).upper(), None)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def print_cache(path: Path) -> int:
    sys.stdout.write(read_cache_text(path))
    sys.stdout.flush()
    return 0


def build_coordinator(args: argparse.Namespace) -> TailCoordinator:
    """Resolve paths and the pinned session; raises ConfigurationError on bad startup input."""
    pinned_id: Optional[str] = args.session_id
    if pinned_id is None and args.session_file is not None:
        pinned_id = infer_session_id_from_path(args.session_file)
        if pinned_id is None:
            raise ConfigurationError(f"Failed to infer session id from --session-file {args.session_file}")

    history_path = args.history_path
    sessions_root = args.sessions_root
    if pinned_id is None and history_path is None:
        history_path = config.default_history_path()
    if sessions_root is None:
        if args.session_file is not None:
            sessions_root = args.session_file.parent
        else:
            sessions_root = config.default_sessions_root()

    return TailCoordinator(
        sessions_root=sessions_root,
        history_path=history_path,
        max_chars=args.max_chars,
        session_window=args.session_window,
        refresh_interval=float(args.session_refresh_secs),
        start_at_beginning=args.start_at_beginning,
        pinned_id=pinned_id,
        pinned_path=args.session_file,
    )


def build_waiter(args: argparse.Namespace, coordinator: TailCoordinator) -> ChangeWaiter:
    if coordinator.pinned_path is not None:
        watch_paths = [coordinator.pinned_path]
    else:
        watch_paths = [p for p in (coordinator.sessions_root, coordinator.history_path) if p is not None]
    return ChangeWaiter(
        poll_interval=max(0, args.poll_ms) / 1000.0,
        watch_paths=watch_paths,
        enabled=args.watch,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.log_level)

    if args.print_cache is not None:
        return print_cache(args.print_cache)

    try:
        if args.cache_file is None:
            raise ConfigurationError("--cache-file is required unless --print-cache is used")
        coordinator = build_coordinator(args)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return 2

    sink = CacheSink(args.cache_file)
    waiter = build_waiter(args, coordinator)
    logger.info(
        "codex-waybar starting (cache=%s, sessions=%s, window=%d)",
        sink.path,
        coordinator.sessions_root,
        coordinator.session_window,
    )

    try:
        run_loop(coordinator, sink, waiter)
    except KeyboardInterrupt:
        logger.info("codex-waybar shutting down")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
