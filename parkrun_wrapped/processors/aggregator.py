"""
Ordering and summary statistics for a runner's results.
"""

import re
from datetime import datetime
from typing import Iterable, List, Optional

from .deduplicator import deduplicate_runs
from ..models import ResultSet, RunnerProfile, RunRecord, Statistics

_TIME = re.compile(r"^\s*(\d+):(\d+)\s*$")


def parse_run_date(date: str) -> Optional[datetime]:
    """Parse a dd/mm/yyyy date, None when it does not parse."""
    try:
        return datetime.strptime(date.strip(), "%d/%m/%Y")
    except (ValueError, AttributeError):
        return None


def parse_time_to_seconds(time_str: str) -> Optional[int]:
    """Parse mm:ss into total seconds."""
    m = _TIME.match(time_str or "")
    if not m:
        return None
    return int(m.group(1)) * 60 + int(m.group(2))


def format_seconds(seconds: int) -> str:
    """Render seconds as m:ss (minutes unpadded)."""
    return f"{seconds // 60}:{seconds % 60:02d}"


def sort_runs(runs: Iterable[RunRecord]) -> List[RunRecord]:
    """Most recent first; equal dates keep their order and unparsable dates go last."""
    return sorted(runs, key=lambda run: parse_run_date(run.date) or datetime.min, reverse=True)


def compute_statistics(runs: List[RunRecord]) -> Statistics:
    """Summary statistics over runs already sorted most recent first."""
    if not runs:
        return Statistics()

    stats = Statistics(
        total_runs=len(runs),
        first_run=runs[-1].date,
        latest_run=runs[0].date,
    )

    valid_times = [s for s in (parse_time_to_seconds(run.time) for run in runs) if s is not None]
    if valid_times:
        stats.best_time = format_seconds(min(valid_times))

    stats.unique_events = len({run.event for run in runs if run.event})
    return stats


def build_result_set(profile: RunnerProfile, rows: Iterable[RunRecord]) -> ResultSet:
    """Dedupe, sort and summarise extracted rows."""
    runs = sort_runs(deduplicate_runs(rows))
    return ResultSet(runner_info=profile, runs=runs, statistics=compute_statistics(runs))
