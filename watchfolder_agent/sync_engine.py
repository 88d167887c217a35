"""
Reconcile cycle orchestration for Watch Folder Agent.

A cycle is scan -> load -> diff -> upload -> save. Cycles are serialized by
a lock owned by the engine: a second caller blocks until the running cycle
has persisted its state.
"""

import itertools
import threading
import traceback
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .context import CycleContext
from .events import EventLog
from .exceptions import PersistError, ScanError
from .logger import get_logger
from .models import UploadOutcome
from .reconciler import diff
from .scanner import DirectoryScanner
from .state_store import StateStore
from .upload_driver import UploadDriver

logger = get_logger(__name__)


class CycleState(Enum):
    """Engine state."""
    IDLE = "idle"
    RUNNING = "running"


@dataclass
class CycleResult:
    """Summary of one cycle."""
    cycle_id: int
    success: bool
    stats: Dict[str, int] = field(default_factory=dict)
    outcomes: List[UploadOutcome] = field(default_factory=list)
    error: Optional[str] = None
    duration: float = 0.0

    @property
    def uploaded(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.success)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'cycle_id': self.cycle_id,
            'success': self.success,
            'stats': self.stats,
            'uploaded': self.uploaded,
            'failed': self.failed,
            'error': self.error,
            'duration': self.duration,
        }


class SyncEngine:
    """Runs reconcile cycles for one watched folder."""

    def __init__(
        self,
        watch_folder: Union[str, Path],
        state_store: StateStore,
        scanner: DirectoryScanner,
        driver: UploadDriver,
        events: Optional[EventLog] = None
    ):
        """Initialize sync engine.

        Args:
            watch_folder: Folder to reconcile
            state_store: Persisted state record
            scanner: Directory scanner
            driver: Upload driver
            events: Diagnostic sink
        """
        self.watch_folder = Path(watch_folder).expanduser()
        self.state_store = state_store
        self.scanner = scanner
        self.driver = driver
        self.events = events or driver.events

        self._lock = threading.Lock()
        self._cycle_ids = itertools.count(1)
        self._state = CycleState.IDLE
        self.last_result: Optional[CycleResult] = None

    @property
    def state(self) -> CycleState:
        return self._state

    def run_cycle(self) -> CycleResult:
        """Run one full cycle. Blocks while another cycle is running.

        Never raises for scan, upload or persist failures; they are logged,
        recorded as events and reported in the result.

        Returns:
            CycleResult
        """
        with self._lock:
            self._state = CycleState.RUNNING
            context = CycleContext(cycle_id=next(self._cycle_ids))
            try:
                result = self._run(context)
            finally:
                self._state = CycleState.IDLE

            self.last_result = result
            return result

    def _run(self, context: CycleContext) -> CycleResult:
        logger.debug(f"Cycle {context.cycle_id} started")

        try:
            current = self.scanner.scan(self.watch_folder)
            prior = self.state_store.load()

            result = diff(prior, current, self.watch_folder)
            context.stats = result.stats

            finalized = self.driver.execute(result.plan, result.proposed, context)

            self.state_store.save(finalized)

        except ScanError as e:
            return self._fail(context, f"Scan failed: {e}")

        except PersistError as e:
            return self._fail(context, f"Saving state failed: {e}", traceback.format_exc())

        except Exception as e:
            logger.error(f"Unexpected error in cycle {context.cycle_id}: {e}", exc_info=True)
            return self._fail(context, f"Cycle failed: {e}", traceback.format_exc())

        stats = result.stats.to_dict()
        if result.plan:
            self.events.info(
                f"Sync completed: {context.uploaded} uploaded, {context.failed} failed, "
                f"{stats['unchanged']} in sync",
                context.next_event_id()
            )
        else:
            logger.debug(f"Cycle {context.cycle_id}: {stats['unchanged']} file(s) in sync")

        return CycleResult(
            cycle_id=context.cycle_id,
            success=True,
            stats=stats,
            outcomes=list(context.outcomes),
            duration=context.elapsed()
        )

    def _fail(self, context: CycleContext, message: str, detail: Optional[str] = None) -> CycleResult:
        self.events.error(message, context.next_event_id(), detail=detail)
        return CycleResult(
            cycle_id=context.cycle_id,
            success=False,
            stats=context.stats.to_dict() if context.stats else {},
            outcomes=list(context.outcomes),
            error=message,
            duration=context.elapsed()
        )
