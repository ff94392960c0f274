"""
Year-in-review analytics built from a runner's ResultSet.
Turns the sorted run list into the numbers shown on the "wrapped" slides.
"""

import math
import re
from typing import Dict, List, Optional, Tuple

import pandas as pd

from .aggregator import format_seconds, parse_run_date, parse_time_to_seconds
from ..models import DerivedAnalytics, ResultSet

SEASONS = ("Spring", "Summer", "Autumn", "Winter")
TREND_LENGTH = 20
ACTIVITY_MONTHS = 12

_LEADING_FLOAT = re.compile(r"^\s*([+-]?\d+(?:\.\d+)?)")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def season_for_month(month_index: int) -> str:
    """Season for a 0-indexed month (0 = January)."""
    if 2 <= month_index <= 4:
        return "Spring"
    if 5 <= month_index <= 7:
        return "Summer"
    if 8 <= month_index <= 10:
        return "Autumn"
    return "Winter"


def parse_age_grade(text: str) -> float:
    """Leading number of an age-grade cell ("65.2%" -> 65.2), NaN when absent."""
    m = _LEADING_FLOAT.match((text or "").replace("%", ""))
    return float(m.group(1)) if m else float("nan")


def longest_week_streak(weeks: List[Tuple[int, int]]) -> int:
    """Longest chain of consecutive ISO weeks within the same ISO year."""
    ordered = sorted(set(weeks))
    longest = current = 0
    previous = None
    for year, week in ordered:
        if previous is not None and year == previous[0] and week == previous[1] + 1:
            current += 1
        else:
            current = 1
        longest = max(longest, current)
        previous = (year, week)
    return longest


class AnalyticsBuilder:
    """Compute DerivedAnalytics for the runs of one reporting year."""

    def __init__(self, target_year: int, per_run_distance_km: float = 5.0):
        self.target_year = int(target_year)
        self.per_run_distance_km = per_run_distance_km

    def build(self, result_set: ResultSet) -> Optional[DerivedAnalytics]:
        frame = self._to_frame(result_set)
        if frame.empty:
            return None

        seasons = self._season_counts(frame)
        events = list(dict.fromkeys(frame["event"]))
        total_seconds = float(frame["seconds"].fillna(0).sum())

        return DerivedAnalytics(
            total_runs=len(frame),
            events=events[:3],
            additional_events=max(len(events) - 3, 0),
            seasons=seasons,
            busiest_season=max(SEASONS, key=lambda name: seasons[name]),
            fastest_month=self._fastest_month(frame),
            monthly_activity=self._monthly_activity(frame),
            performance_trend=self._performance_trend(frame),
            most_visited_event=self._most_visited(frame),
            best_position=int(frame["position"].min()),
            average_position=round_half_up(float(frame["position"].mean())),
            personal_bests=int(frame["is_pb"].sum()),
            longest_streak=longest_week_streak(
                [tuple(d.isocalendar())[:2] for d in frame["date"].dt.date]
            ),
            # Unparsable grades count as 0 but still divide the average
            average_age_grade=round(float(frame["age_grade"].fillna(0).sum()) / len(frame), 2),
            total_minutes=round_half_up(total_seconds / 60),
            total_distance_km=float(len(frame) * self.per_run_distance_km),
        )

    def _to_frame(self, result_set: ResultSet) -> pd.DataFrame:
        records = []
        for run in result_set.runs:
            run_date = parse_run_date(run.date)
            if run_date is None or run_date.year != self.target_year:
                continue
            seconds = parse_time_to_seconds(run.time)
            records.append({
                "event": run.event,
                "date": run_date,
                "time": run.time,
                "seconds": float("nan") if seconds is None else float(seconds),
                "position": run.position,
                "age_grade": parse_age_grade(run.age_grade),
                "is_pb": bool(run.is_pb),
            })
        columns = ["event", "date", "time", "seconds", "position", "age_grade", "is_pb"]
        frame = pd.DataFrame(records, columns=columns)
        frame["date"] = pd.to_datetime(frame["date"])
        frame["seconds"] = pd.to_numeric(frame["seconds"], errors="coerce")
        frame["age_grade"] = pd.to_numeric(frame["age_grade"], errors="coerce")
        return frame

    def _season_counts(self, frame: pd.DataFrame) -> Dict[str, int]:
        labels = (frame["date"].dt.month - 1).map(season_for_month)
        counts = labels.value_counts()
        return {name: int(counts.get(name, 0)) for name in SEASONS}

    def _fastest_month(self, frame: pd.DataFrame) -> Optional[Dict[str, object]]:
        timed = frame.dropna(subset=["seconds"])
        if timed.empty:
            return None
        grouped = timed.groupby(timed["date"].dt.month_name(), sort=False)["seconds"].agg(["mean", "count"])
        # idxmin keeps the first month seen among equal averages
        month = grouped["mean"].idxmin()
        average = float(grouped.loc[month, "mean"])
        return {
            "month": month,
            "averageSeconds": average,
            "averageTime": format_seconds(round_half_up(average)),
            "runs": int(grouped.loc[month, "count"]),
        }

    def _monthly_activity(self, frame: pd.DataFrame) -> List[Dict[str, object]]:
        periods = frame["date"].dt.strftime("%Y-%m")
        grouped = frame.assign(period=periods, seconds=frame["seconds"].fillna(0)).groupby("period")
        summary = grouped.agg(runs=("event", "size"), total=("seconds", "sum")).sort_index()
        activity = []
        for period, row in summary.tail(ACTIVITY_MONTHS).iterrows():
            runs = int(row["runs"])
            activity.append({
                "period": period,
                "month": pd.Timestamp(f"{period}-01").strftime("%b"),
                "runs": runs,
                "averageSeconds": round_half_up(float(row["total"]) / runs) if runs else 0,
            })
        return activity

    def _performance_trend(self, frame: pd.DataFrame) -> List[Dict[str, object]]:
        recent = frame.head(TREND_LENGTH).iloc[::-1]
        trend = []
        for row in recent.itertuples(index=False):
            if pd.isna(row.seconds):
                continue
            trend.append({
                "date": row.date.strftime("%d/%m/%Y"),
                "time": row.time,
                "seconds": int(row.seconds),
                "position": int(row.position),
            })
        return trend

    def _most_visited(self, frame: pd.DataFrame) -> Dict[str, object]:
        counts = frame.groupby("event", sort=False).size()
        # idxmax keeps the first event seen among equal counts
        event = counts.idxmax()
        return {"event": event, "visits": int(counts[event])}


def compute_analytics(
    result_set: ResultSet,
    target_year: int,
    per_run_distance_km: float = 5.0,
) -> Optional[DerivedAnalytics]:
    """Analytics for the target year, None when there are no runs in it."""
    return AnalyticsBuilder(target_year, per_run_distance_km).build(result_set)
