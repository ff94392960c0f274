"""
Results page extractor.
Parses a runner's "all results" page into a name and candidate run records.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from bs4 import BeautifulSoup

from .column_profiles import select_profile
from ..models import RunRecord
from ..utils.logging_utils import get_logger

DEFAULT_NAME_SELECTORS = "h1, h2, h3, h4, h5, h6, .name, .runner-name, .athlete-name, .title"
DEFAULT_EXCLUDE_TOKENS = ("parkrun", "Netherlands")

_LEADING_INT = re.compile(r"\s*[+-]?(\d+)")
_MMSS = re.compile(r"^\d+:\d{2}$")


@dataclass
class ExtractionResult:
    name: Optional[str] = None
    rows: List[RunRecord] = field(default_factory=list)
    # Number of table rows considered and which selector found them
    rows_seen: int = 0
    shape: Optional[str] = None


def parse_position(text: str) -> Optional[int]:
    """Leading integer of a position cell ("12" -> 12, "12th" -> 12)."""
    m = _LEADING_INT.match(text)
    if not m:
        return None
    value = int(m.group(1))
    return -value if text.strip().startswith("-") else value


class ResultsExtractor:
    """Heuristic parser for the results table.

    The table markup drifts between page variants, so columns are mapped by
    position depending on how many cells a row has (see column_profiles).
    Rows that do not fit are dropped silently.
    """

    def __init__(
        self,
        target_year: int,
        name_selectors: str = DEFAULT_NAME_SELECTORS,
        exclude_tokens: Sequence[str] = DEFAULT_EXCLUDE_TOKENS,
        min_cells: int = 5,
        max_position: int = 999,
    ):
        self.target_year = str(target_year)
        self.name_selectors = name_selectors
        self.exclude_tokens = list(exclude_tokens)
        self.min_cells = min_cells
        self.max_position = max_position
        self.logger = get_logger(__name__)

    def extract(self, html: str) -> ExtractionResult:
        soup = BeautifulSoup(html or "", "html.parser")
        result = ExtractionResult(name=self._extract_name(soup))

        rows = soup.select("table tbody tr")
        result.shape = "tbody" if rows else None
        if not rows:
            rows = soup.select("tr.even, tr.odd")
            result.shape = "striped" if rows else None
        result.rows_seen = len(rows)

        for row in rows:
            record = self._parse_row([td.get_text().strip() for td in row.find_all("td")])
            if record is not None:
                result.rows.append(record)

        self.logger.info(
            "Extracted %d candidate runs from %d table rows (shape=%s, name=%s)",
            len(result.rows),
            result.rows_seen,
            result.shape,
            result.name,
        )
        return result

    def _extract_name(self, soup) -> Optional[str]:
        """First heading-like text that is not site branding."""
        for element in soup.select(self.name_selectors):
            text = element.get_text().strip()
            if text and not any(token in text for token in self.exclude_tokens):
                return text
        return None

    def _parse_row(self, cells: List[str]) -> Optional[RunRecord]:
        if len(cells) < self.min_cells:
            return None
        profile = select_profile(len(cells))
        if profile is None:
            return None

        event = profile.cell(cells, profile.event)
        date = profile.cell(cells, profile.date)
        position_text = profile.cell(cells, profile.position)
        time_text = profile.cell(cells, profile.time)
        age_grade = profile.cell(cells, profile.age_grade)
        pb_indicator = profile.cell(cells, profile.pb)

        if not (event and date and position_text and time_text and age_grade):
            self.logger.debug("Skipping row with empty fields: %s", cells)
            return None

        position = parse_position(position_text)
        if position is None or position <= 0 or position > self.max_position:
            self.logger.debug("Skipping row with invalid position %r", position_text)
            return None

        parts = date.split("/")
        if len(parts) < 3 or parts[2] != self.target_year:
            self.logger.debug("Skipping row outside %s: %s", self.target_year, date)
            return None

        if not _MMSS.match(time_text):
            self.logger.debug("Skipping row with unexpected time %r", time_text)
            return None

        marker = pb_indicator.lower()
        return RunRecord(
            event=event,
            date=date,
            position=position,
            time=time_text,
            age_grade=age_grade,
            is_pb="pb" in marker or "new" in marker,
        )
