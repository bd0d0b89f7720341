"""codex-waybar configuration."""
import os
from pathlib import Path
from typing import Optional


class ConfigurationError(RuntimeError):
    """Raised when a required path or destination cannot be determined at startup."""


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_path(name: str) -> Optional[Path]:
    value = (os.getenv(name) or "").strip()
    if not value:
        return None
    return Path(value).expanduser()


# Polling cadence
POLL_MS = _env_int("CODEX_WAYBAR_POLL_MS", 250)
SESSION_REFRESH_SECS = _env_int("CODEX_WAYBAR_SESSION_REFRESH_SECS", 5)

# Session tracking
SESSION_WINDOW = _env_int("CODEX_WAYBAR_SESSION_WINDOW", 4)
START_AT_BEGINNING = _env_bool("CODEX_WAYBAR_START_AT_BEGINNING", False)
WATCH_ENABLED = _env_bool("CODEX_WAYBAR_WATCH", False)

# Rendering
MAX_CHARS = _env_int("CODEX_WAYBAR_MAX_CHARS", 120)

# Output
CACHE_FILE = _env_path("CODEX_WAYBAR_CACHE_FILE")
LOG_LEVEL = os.getenv("CODEX_WAYBAR_LOG_LEVEL", "INFO")

# Codex on-disk layout
HISTORY_FILENAME = "history.jsonl"
SESSIONS_DIRNAME = "sessions"


def codex_home() -> Path:
    """Return the Codex data directory (``$CODEX_HOME`` or ``~/.codex``)."""
    override = _env_path("CODEX_HOME")
    if override is not None:
        return override
    try:
        home = Path.home()
    except RuntimeError as exc:
        raise ConfigurationError("Home directory not found") from exc
    if not str(home) or str(home) == "~":
        raise ConfigurationError("Home directory not found")
    return home / ".codex"


def default_history_path() -> Path:
    return codex_home() / HISTORY_FILENAME


def default_sessions_root() -> Path:
    return codex_home() / SESSIONS_DIRNAME
