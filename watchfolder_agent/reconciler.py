"""
Reconciliation of the persisted state against the watched folder.
"""

from datetime import datetime
from pathlib import Path
from typing import Dict, Union

from .models import NEVER_TRACKED, DiffResult, DiffStats, StateMapping, UploadTask


def diff(
    prior: StateMapping,
    current: Dict[str, datetime],
    directory: Union[str, Path]
) -> DiffResult:
    """Compute the upload plan and the proposed next state.

    Files recorded as NEVER_TRACKED are handled like files never seen.
    Files only present in ``prior`` are carried over unchanged. Neither
    input is modified.

    Args:
        prior: Mapping loaded from the state record
        current: Mapping produced by the directory scan
        directory: Watched folder, used to build each task's full path

    Returns:
        DiffResult with the plan (ordered by filename), the proposed
        mapping and counts
    """
    directory = Path(directory)
    proposed: StateMapping = dict(prior)
    plan = []
    stats = DiffStats()

    for name in sorted(current):
        observed = current[name]
        recorded = prior.get(name, NEVER_TRACKED)

        if recorded == observed:
            stats.unchanged += 1
            continue

        if recorded is NEVER_TRACKED:
            stats.new += 1
        else:
            stats.changed += 1

        plan.append(UploadTask(
            name=name,
            full_path=directory / name,
            new_timestamp=observed,
            revert_timestamp=recorded
        ))
        proposed[name] = observed

    stats.missing = sum(1 for name in prior if name not in current)

    return DiffResult(plan=plan, proposed=proposed, stats=stats)
