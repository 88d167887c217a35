"""
Upload driver for Watch Folder Agent.
Executes an upload plan and reverts the proposed state of every file whose
upload fails, so the change is detected again on the next cycle.
"""

import time
import traceback
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from .context import CycleContext
from .events import EventLog
from .exceptions import UploadError
from .logger import get_logger
from .models import StateMapping, UploadOutcome, UploadPlan, UploadTask
from .uploader import DEFAULT_PART_SIZE, UploadCredentials, Uploader

logger = get_logger(__name__)


class UploadDriver:
    """Runs upload tasks through an Uploader with per-file failure isolation."""

    def __init__(
        self,
        uploader: Uploader,
        credentials: UploadCredentials,
        part_size_bytes: int = DEFAULT_PART_SIZE,
        events: Optional[EventLog] = None,
        max_workers: int = 1
    ):
        """Initialize upload driver.

        Args:
            uploader: Uploader collaborator
            credentials: User and destination folder identity
            part_size_bytes: Part size passed to the uploader
            events: Diagnostic sink
            max_workers: Parallel uploads within a cycle (1 = sequential)
        """
        self.uploader = uploader
        self.credentials = credentials
        self.part_size_bytes = part_size_bytes
        self.events = events or EventLog()
        self.max_workers = max(1, max_workers)

    def execute(self, plan: UploadPlan, proposed: StateMapping, context: CycleContext) -> StateMapping:
        """Attempt every task in the plan.

        Args:
            plan: Tasks from the reconciler
            proposed: Mapping holding the new timestamps; updated in place
            context: Current cycle context; outcomes are appended to it

        Returns:
            The finalized mapping
        """
        if not plan:
            return proposed

        logger.info(f"Uploading {len(plan)} file(s)")

        if self.max_workers == 1 or len(plan) == 1:
            outcomes = [self._attempt(task) for task in plan]
        else:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(plan))) as executor:
                # map() keeps plan order and waits for every task
                outcomes = list(executor.map(self._attempt, plan))

        for outcome in outcomes:
            self._apply(outcome, proposed, context)

        return proposed

    def _attempt(self, task: UploadTask) -> UploadOutcome:
        start_time = time.time()

        try:
            self.uploader.upload(
                self.credentials.user_id,
                self.credentials.user_key,
                self.credentials.folder_id,
                task.name,
                str(task.full_path),
                self.part_size_bytes
            )

        except Exception as e:
            detail = e.detail if isinstance(e, UploadError) and e.detail else None
            return UploadOutcome(
                task=task,
                success=False,
                error_message=str(e) or type(e).__name__,
                detail=detail or traceback.format_exc(),
                duration_ms=int((time.time() - start_time) * 1000)
            )

        return UploadOutcome(
            task=task,
            success=True,
            duration_ms=int((time.time() - start_time) * 1000)
        )

    def _apply(self, outcome: UploadOutcome, proposed: StateMapping, context: CycleContext) -> None:
        task = outcome.task
        context.outcomes.append(outcome)

        if outcome.success:
            self.events.info(f"Uploading {task.full_path} Succeeded", context.next_event_id())
            return

        proposed[task.name] = task.revert_timestamp

        event_id = context.next_event_id()
        self.events.error(
            f"Uploading {task.full_path} Failed: {outcome.error_message}",
            event_id,
            detail=outcome.detail
        )
