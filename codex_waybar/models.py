"""Pydantic models for the Waybar payload and the session tracking state."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

BASE_CLASSES = ("codex", "agent-reasoning")


class WaybarOutput(BaseModel):
    """The JSON object Waybar reads from the cache file."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text: str
    tooltip: Optional[str] = None
    alt: Optional[str] = None
    classes: list[str] = Field(default_factory=list, alias="class")

    def to_cache_dict(self) -> dict[str, Any]:
        data = self.model_dump(by_alias=True, exclude_none=True)
        if not data.get("class"):
            data.pop("class", None)
        return data


class RenderedEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    payload: WaybarOutput
    timestamp: Optional[str] = None  # compared as an opaque string


class SessionEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    session_id: str
    event: RenderedEvent


class SessionPhase(str, enum.Enum):
    PRIMING = "priming"
    TAILING = "tailing"


@dataclass
class TrackedSession:
    """Per-session tail state owned by the coordinator."""

    session_id: str
    path: Path
    offset: int = 0
    phase: SessionPhase = SessionPhase.TAILING


def placeholder_output() -> WaybarOutput:
    """Payload shown before the first reasoning event has been published."""
    return WaybarOutput(
        text="Waiting for Codex…",
        alt="initializing",
        classes=list(BASE_CLASSES),
    )
