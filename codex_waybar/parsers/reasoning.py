"""Turn Codex session log lines into renderable reasoning events."""
from __future__ import annotations

import json
import logging
from typing import Any

from codex_waybar.models import BASE_CLASSES, RenderedEvent, WaybarOutput

logger = logging.getLogger("codex_waybar.parsers")

REASONING_TYPE = "agent_reasoning"
BOLD_MARKER = "**"
ELLIPSIS = "…"
_ELLIPSIS_BYTES = len(ELLIPSIS.encode("utf-8"))


def collapse_whitespace(value: str) -> str:
    return " ".join(value.split())


def sanitize_text(raw: str) -> str:
    """Flatten newlines, drop bold markers and normalize whitespace."""
    text = raw.replace("\n", " ").replace("\r", " ")
    text = text.replace(BOLD_MARKER, "")
    return collapse_whitespace(text)


def truncate_text(text: str, max_len: int) -> str:
    """Cut ``text`` to at most ``max_len`` UTF-8 bytes, ellipsis included.

    Characters are never split. When even the ellipsis does not fit, the text
    is cut to the budget without one.
    """
    if len(text.encode("utf-8")) <= max_len:
        return text

    suffix = ELLIPSIS if max_len >= _ELLIPSIS_BYTES else ""
    budget = max_len - len(suffix.encode("utf-8"))

    kept: list[str] = []
    used = 0
    for ch in text:
        size = len(ch.encode("utf-8"))
        if used + size > budget:
            break
        kept.append(ch)
        used += size
    return "".join(kept).rstrip() + suffix


def extract_phase(raw: str) -> str | None:
    """Return the leading ``**Phase**`` label of a reasoning message, if any.

    ``**  **rest`` yields ``""``: the markers are present but the label is empty.
    """
    if not raw.startswith(BOLD_MARKER):
        return None
    rest = raw[len(BOLD_MARKER):]
    end = rest.find(BOLD_MARKER)
    if end < 0:
        return None
    label = rest[:end].strip()
    return label


def slugify(value: str) -> str | None:
    parts: list[str] = []
    pending_dash = False
    for ch in value:
        if ch.isascii() and ch.isalnum():
            if pending_dash and parts:
                parts.append("-")
            parts.append(ch.lower())
            pending_dash = False
        else:
            pending_dash = True
    slug = "".join(parts)
    return slug or None


def build_tooltip(
    timestamp: str | None,
    raw_text: str,
    sanitized: str,
    truncated: str,
) -> str | None:
    parts: list[str] = []
    if timestamp is not None:
        parts.append(timestamp)
    raw_trimmed = raw_text.strip()
    if raw_trimmed and raw_trimmed != sanitized:
        parts.append(raw_trimmed)
    elif sanitized != truncated:
        parts.append(sanitized)
    if not parts:
        return None
    return "\n".join(parts)


def _load_record(line: str) -> dict[str, Any] | None:
    try:
        record = json.loads(line)
    except json.JSONDecodeError as exc:
        logger.debug("Skipping malformed log entry: %s", exc)
        return None
    if not isinstance(record, dict):
        return None
    return record


def process_log_line(line: str, max_chars: int) -> RenderedEvent | None:
    """Render one session log line, or return None if it is not reasoning."""
    if not line.strip():
        return None

    record = _load_record(line)
    if record is None:
        return None

    payload = record.get("payload")
    if not isinstance(payload, dict) or payload.get("type") != REASONING_TYPE:
        return None

    raw_text = payload.get("text")
    if not isinstance(raw_text, str) or not raw_text:
        return None

    timestamp = record.get("timestamp")
    if not isinstance(timestamp, str):
        timestamp = None

    sanitized = sanitize_text(raw_text)
    truncated = truncate_text(sanitized, max_chars)
    phase = extract_phase(raw_text)

    classes = list(BASE_CLASSES)
    slug = slugify(phase) if phase else None
    if slug:
        classes.append(f"phase-{slug}")

    return RenderedEvent(
        payload=WaybarOutput(
            text=phase if phase is not None else truncated,
            tooltip=build_tooltip(timestamp, raw_text, sanitized, truncated),
            alt=phase,
            classes=classes,
        ),
        timestamp=timestamp,
    )
