"""
Column layouts seen on the results table.

Some page variants carry an extra run-number column, which pushes position,
time, age grade and the PB marker one cell to the right. Event and date are
always the first two cells.
"""

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class ColumnProfile:
    name: str
    min_cells: int
    event: int
    date: int
    position: int
    time: int
    age_grade: int
    pb: int

    def cell(self, cells: List[str], index: int) -> str:
        return cells[index] if index < len(cells) else ""


# Checked in order; the first profile whose min_cells fits wins.
PROFILES = (
    ColumnProfile("wide", min_cells=7, event=0, date=1, position=3, time=4, age_grade=5, pb=6),
    ColumnProfile("narrow", min_cells=5, event=0, date=1, position=2, time=3, age_grade=4, pb=5),
)


def select_profile(cell_count: int) -> Optional[ColumnProfile]:
    for profile in PROFILES:
        if cell_count >= profile.min_cells:
            return profile
    return None
