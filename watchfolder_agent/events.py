"""
Diagnostic event log for Watch Folder Agent.
Records informational and error entries for cycles and uploads, mirrors
them to the standard logger and optionally appends them to a JSON-lines file.
"""

import json
import threading
import time
from collections import deque
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional, Union

from .logger import get_logger

logger = get_logger(__name__)


@dataclass
class DiagnosticEvent:
    """Represents a diagnostic event."""
    level: str
    message: str
    event_id: int = 0
    detail: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        return {k: v for k, v in asdict(self).items() if v is not None}


class EventLog:
    """Collects diagnostic events."""

    INFO = 'info'
    ERROR = 'error'

    def __init__(self, path: Optional[Union[str, Path]] = None, buffer_size: int = 200):
        """Initialize event log.

        Args:
            path: Optional JSON-lines file to append events to
            buffer_size: Number of recent events kept in memory
        """
        self.path = Path(path).expanduser() if path else None
        self._recent: Deque[DiagnosticEvent] = deque(maxlen=buffer_size)
        self._lock = threading.Lock()

    def write_entry(
        self,
        message: str,
        level: str = INFO,
        event_id: int = 0,
        detail: Optional[str] = None
    ) -> DiagnosticEvent:
        """Record an event.

        Args:
            message: Free-text message
            level: 'info' or 'error'
            event_id: Numeric identifier
            detail: Optional extra information (e.g. a traceback)

        Returns:
            The recorded event
        """
        event = DiagnosticEvent(level=level, message=message, event_id=event_id, detail=detail)

        extra = {'event_id': event_id}
        if level == self.ERROR:
            logger.error(f"[{event_id}] {message}", extra=extra)
            if detail:
                logger.debug(f"[{event_id}] {detail}", extra=extra)
        else:
            logger.info(f"[{event_id}] {message}", extra=extra)

        with self._lock:
            self._recent.append(event)
            if self.path:
                self._append(event)

        return event

    def info(self, message: str, event_id: int = 0) -> DiagnosticEvent:
        return self.write_entry(message, self.INFO, event_id)

    def error(self, message: str, event_id: int = 0, detail: Optional[str] = None) -> DiagnosticEvent:
        return self.write_entry(message, self.ERROR, event_id, detail)

    def recent(self, limit: Optional[int] = None) -> List[DiagnosticEvent]:
        """Get recent events, oldest first."""
        with self._lock:
            events = list(self._recent)
        return events[-limit:] if limit else events

    def _append(self, event: DiagnosticEvent) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'a', encoding='utf-8') as f:
                f.write(json.dumps(event.to_dict()) + '\n')
        except OSError as e:
            # The event log is best effort; the logger already has the entry
            logger.warning(f"Failed to write event log {self.path}: {e}")

    @staticmethod
    def read(path: Union[str, Path], limit: int = 50) -> List[DiagnosticEvent]:
        """Read the last events from a JSON-lines event file.

        Args:
            path: Event file path
            limit: Maximum number of events

        Returns:
            Events, oldest first
        """
        path = Path(path).expanduser()
        if not path.exists():
            return []

        events = []
        with open(path, 'r', encoding='utf-8') as f:
            for line in f:
                try:
                    events.append(DiagnosticEvent(**json.loads(line)))
                except (ValueError, TypeError):
                    continue

        return events[-limit:]
