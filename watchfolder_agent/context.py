"""
Per-cycle context passed through the sync components.
"""

import itertools
import time
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from .models import DiffStats, UploadOutcome


@dataclass
class CycleContext:
    """State owned by a single reconcile cycle."""
    cycle_id: int
    started_at: float = field(default_factory=time.time)
    stats: Optional[DiffStats] = None
    outcomes: List[UploadOutcome] = field(default_factory=list)
    _event_seq: Iterator[int] = field(default_factory=lambda: itertools.count(1), repr=False)

    def next_event_id(self) -> int:
        """Event ids are unique within the daemon run: cycle id * 1000 + sequence."""
        return self.cycle_id * 1000 + next(self._event_seq)

    @property
    def uploaded(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.success)

    def elapsed(self) -> float:
        return time.time() - self.started_at
