"""
Data model for Watch Folder Agent.
State mapping values, upload tasks, and upload outcomes.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


class TrackingState(Enum):
    """Explicit markers stored in place of a timestamp."""
    NEVER_TRACKED = "never"

    def __repr__(self) -> str:
        return f"<{self.name}>"


# Revert target for files seen for the first time. A failed upload restores
# this value so the next cycle treats the file as new again.
NEVER_TRACKED = TrackingState.NEVER_TRACKED

Timestamp = Union[datetime, TrackingState]
StateMapping = Dict[str, Timestamp]


def truncate_to_second(value: datetime) -> datetime:
    """Drop sub-second precision from a timestamp."""
    return value.replace(microsecond=0)


def format_timestamp(value: Timestamp) -> str:
    """Render a state timestamp in the persisted text format.

    Args:
        value: datetime or NEVER_TRACKED

    Returns:
        ISO-8601 string at second precision, or the sentinel token
    """
    if value is NEVER_TRACKED:
        return NEVER_TRACKED.value
    return truncate_to_second(value).isoformat(timespec='seconds')


def parse_timestamp(text: str) -> Timestamp:
    """Parse a persisted timestamp.

    Raises:
        ValueError: If the text is neither the sentinel nor ISO-8601
    """
    text = text.strip()
    if text == NEVER_TRACKED.value:
        return NEVER_TRACKED
    return truncate_to_second(datetime.fromisoformat(text))


@dataclass(frozen=True)
class FileRecord:
    """A tracked file and the modification time last confirmed for it."""
    name: str
    last_known_modified_at: Timestamp


@dataclass(frozen=True)
class UploadTask:
    """A file scheduled for upload in the current cycle."""
    name: str
    full_path: Path
    new_timestamp: datetime
    revert_timestamp: Timestamp

    @property
    def is_new(self) -> bool:
        return self.revert_timestamp is NEVER_TRACKED


UploadPlan = List[UploadTask]


@dataclass
class UploadOutcome:
    """Result of one upload attempt."""
    task: UploadTask
    success: bool
    error_message: Optional[str] = None
    detail: Optional[str] = None
    duration_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'name': self.task.name,
            'full_path': str(self.task.full_path),
            'success': self.success,
            'error_message': self.error_message,
            'duration_ms': self.duration_ms,
        }


@dataclass
class DiffStats:
    """Counts produced by one reconciliation."""
    new: int = 0
    changed: int = 0
    unchanged: int = 0
    missing: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            'new': self.new,
            'changed': self.changed,
            'unchanged': self.unchanged,
            'missing': self.missing,
        }


@dataclass
class DiffResult:
    """Upload plan plus the mapping to persist if every upload succeeds."""
    plan: UploadPlan
    proposed: StateMapping
    stats: DiffStats = field(default_factory=DiffStats)
