"""
Persistent tier: one JSON file per runner id.

A stored record is authoritative; it is served without any freshness check so
an operator can hand-correct a bad scrape by editing the file.
"""

import re
import threading
from pathlib import Path
from typing import Dict, Optional, Union

from ..models import ResultSet
from ..utils.file_utils import load_json, save_json
from ..utils.logging_utils import get_logger

_RUNNER_ID = re.compile(r"^\w+$")


def validate_runner_id(runner_id: str) -> str:
    if not isinstance(runner_id, str) or not _RUNNER_ID.match(runner_id):
        raise ValueError(f"Invalid runner id: {runner_id!r}")
    return runner_id


class PersistentStore:
    """JSON files under ``directory`` named ``<runner_id>.json``."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        self.logger = get_logger(__name__)
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def path_for(self, runner_id: str) -> Path:
        return self.directory / f"{validate_runner_id(runner_id)}.json"

    def _lock_for(self, runner_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(runner_id, threading.Lock())

    def load(self, runner_id: str) -> Optional[ResultSet]:
        """Stored result for a runner, None when missing or unreadable."""
        path = self.path_for(runner_id)
        with self._lock_for(runner_id):
            try:
                data = load_json(path)
            except FileNotFoundError:
                self.logger.debug("No stored data for runner %s at %s", runner_id, path)
                return None
            except (OSError, ValueError) as e:
                self.logger.warning("Unreadable stored data for runner %s: %s", runner_id, e)
                return None
        try:
            result = ResultSet.from_dict(runner_id, data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            self.logger.warning("Stored data for runner %s has an unexpected shape: %s", runner_id, e)
            return None
        self.logger.info("Loaded stored data for runner %s", runner_id)
        return result

    def save(self, runner_id: str, result: ResultSet) -> Path:
        """Write a runner's result; raises OSError on failure."""
        path = self.path_for(runner_id)
        with self._lock_for(runner_id):
            save_json(result.to_dict(), path)
        self.logger.info("Saved data for runner %s to %s", runner_id, path)
        return path
