"""
Value types shared by the draft editing client.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional


class SaveState(str, Enum):
    """Per-field autosave indicator state."""
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


def aggregate_save_state(states: Iterable[SaveState]) -> SaveState:
    """
    Collapse per-field states into the single indicator shown in the header.

    Precedence: saving, then error, then saved, then idle.
    """
    states = set(states)
    for state in (SaveState.SAVING, SaveState.ERROR, SaveState.SAVED):
        if state in states:
            return state
    return SaveState.IDLE


@dataclass(frozen=True)
class ConflictInfo:
    """The field whose save was rejected because of a stale revision."""
    field: str


class VersionConflict(Exception):
    """The server rejected a write: the expected revision is no longer current."""

    def __init__(self, message: str = "Document has been modified by another request"):
        super().__init__(message)
        self.message = message


class ReadOnlyDraft(Exception):
    """Raised when editing a draft that can no longer change."""


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """ISO-8601 timestamp from the API, accepting a trailing Z."""
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


@dataclass
class ServerSnapshot:
    """
    The server's view of a draft record.

    ``values`` maps field names to text (None when never written).
    """
    values: dict[str, Optional[str]]
    revision: int
    status: str = ""
    submitted_at: Optional[datetime] = None
    is_signed: Optional[bool] = None

    @classmethod
    def from_message(cls, message: dict) -> "ServerSnapshot":
        """Build from a websocket ``snapshot`` message."""
        return cls(
            values=dict(message.get("values") or {}),
            revision=message["revision"],
            status=message.get("status", ""),
            submitted_at=parse_timestamp(message.get("submitted_at")),
            is_signed=message.get("is_signed"),
        )
