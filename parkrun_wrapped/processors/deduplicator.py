"""Duplicate removal for extracted runs."""

from typing import Iterable, List

from ..models import RunRecord


def deduplicate_runs(runs: Iterable[RunRecord]) -> List[RunRecord]:
    """Drop later runs sharing (date, event, time) with an earlier one; order is kept."""
    seen = set()
    unique: List[RunRecord] = []
    for run in runs:
        if run.identity in seen:
            continue
        seen.add(run.identity)
        unique.append(run)
    return unique
