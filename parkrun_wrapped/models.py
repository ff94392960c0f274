"""
Data model for runner result histories.

Every type serializes to the JSON shape served by the API and stored in the
persistent tier (camelCase keys, absent optional fields omitted).
"""
from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional


def _mapping(value: Any, label: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{label} must be a JSON object, got {type(value).__name__}")
    return value


def _text(data: Dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string, got {value!r}")
    return value


@dataclass
class RunnerProfile:
    id: str
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name} if self.name else {}

    @classmethod
    def from_dict(cls, runner_id: str, data: Optional[Dict[str, Any]]) -> "RunnerProfile":
        data = _mapping(data or {}, "runnerInfo")
        name = data.get("name")
        if name is not None and not isinstance(name, str):
            raise ValueError(f"Invalid runner name: {name!r}")
        return cls(id=runner_id, name=name or None)


@dataclass
class RunRecord:
    event: str
    date: str
    position: int
    time: str
    age_grade: str
    is_pb: bool = False

    @property
    def identity(self) -> tuple:
        """Composite key used for deduplication."""
        return (self.date, self.event, self.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.event,
            "date": self.date,
            "position": self.position,
            "time": self.time,
            "ageGrade": self.age_grade,
            "isPB": self.is_pb,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunRecord":
        data = _mapping(data, "run")
        position = data["position"]
        if isinstance(position, bool):
            raise ValueError(f"Invalid position: {position!r}")
        if isinstance(position, str):
            position = int(position.strip())
        return cls(
            event=_text(data, "event"),
            date=_text(data, "date"),
            position=int(position),
            time=_text(data, "time"),
            age_grade=_text(data, "ageGrade"),
            is_pb=bool(data.get("isPB", False)),
        )


@dataclass
class Statistics:
    total_runs: Optional[int] = None
    first_run: Optional[str] = None
    latest_run: Optional[str] = None
    best_time: Optional[str] = None
    unique_events: Optional[int] = None

    _KEYS = (
        ("total_runs", "totalRuns"),
        ("first_run", "firstRun"),
        ("latest_run", "latestRun"),
        ("best_time", "bestTime"),
        ("unique_events", "uniqueEvents"),
    )

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, attr) is None for attr, _ in self._KEYS)

    def to_dict(self) -> Dict[str, Any]:
        out = {}
        for attr, key in self._KEYS:
            value = getattr(self, attr)
            if value is not None:
                out[key] = value
        return out

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Statistics":
        data = _mapping(data or {}, "statistics")
        return cls(**{attr: data.get(key) for attr, key in cls._KEYS})


@dataclass
class ResultSet:
    runner_info: RunnerProfile
    runs: List[RunRecord] = field(default_factory=list)
    statistics: Statistics = field(default_factory=Statistics)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "runnerInfo": self.runner_info.to_dict(),
            "runs": [run.to_dict() for run in self.runs],
            "statistics": self.statistics.to_dict(),
        }

    @classmethod
    def from_dict(cls, runner_id: str, data: Dict[str, Any]) -> "ResultSet":
        data = _mapping(data, "Result set")
        runs = data.get("runs") or []
        if not isinstance(runs, list):
            raise ValueError("runs must be a JSON array")
        return cls(
            runner_info=RunnerProfile.from_dict(runner_id, data.get("runnerInfo")),
            runs=[RunRecord.from_dict(run) for run in runs],
            statistics=Statistics.from_dict(data.get("statistics")),
        )

    @classmethod
    def empty(cls, runner_id: str) -> "ResultSet":
        return cls(runner_info=RunnerProfile(id=runner_id))


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _camelize(value: Any) -> Any:
    if isinstance(value, dict):
        return {_camel(k): _camelize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_camelize(v) for v in value]
    return value


@dataclass
class DerivedAnalytics:
    """Year-in-review numbers derived from a ResultSet."""

    total_runs: int
    events: List[str]
    additional_events: int
    seasons: Dict[str, int]
    busiest_season: str
    fastest_month: Optional[Dict[str, Any]]
    monthly_activity: List[Dict[str, Any]]
    performance_trend: List[Dict[str, Any]]
    most_visited_event: Dict[str, Any]
    best_position: int
    average_position: int
    personal_bests: int
    longest_streak: int
    average_age_grade: float
    total_minutes: int
    total_distance_km: float

    def to_dict(self) -> Dict[str, Any]:
        return _camelize(asdict(self))
