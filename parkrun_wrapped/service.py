"""
Runner data retrieval.

Orchestrates one retrieval: cache lookup -> fetch -> extract -> dedupe ->
sort -> statistics -> cache write. Concurrent retrievals of the same runner
share a single pipeline run.
"""
from __future__ import annotations

import copy
import re
from typing import Optional, Tuple

from .cache import CacheManager, MemoryCache, PersistentStore, SingleFlight
from .extractors.results_extractor import ExtractionResult, ResultsExtractor
from .fetchers import Fetcher, create_fetcher
from .models import DerivedAnalytics, ResultSet, RunnerProfile
from .processors.aggregator import build_result_set
from .processors.analytics import compute_analytics
from .utils.config import Config, config
from .utils.file_utils import save_debug_html
from .utils.logging_utils import get_logger

_RUNNER_ID = re.compile(r"^\w+$")


class RetrievalError(Exception):
    """A retrieval failed; the message is safe to return to clients."""


def normalize_runner_id(runner_id) -> str:
    """Strip a leading letter ("A123456" -> "123456") and validate the rest."""
    raw = str(runner_id).strip()
    normalized = re.sub(r"^[A-Za-z]", "", raw) or raw
    if not _RUNNER_ID.match(normalized):
        raise RetrievalError(f"Invalid runner id: {raw!r}")
    return normalized


class RunnerDataService:
    """Serves a runner's ResultSet from cache or from a live fetch."""

    def __init__(
        self,
        fetcher: Fetcher,
        cache: CacheManager,
        extractor: Optional[ResultsExtractor] = None,
        settings: Optional[Config] = None,
        single_flight: Optional[SingleFlight] = None,
    ):
        self.settings = settings or config
        self.fetcher = fetcher
        self.cache = cache
        self.extractor = extractor or ResultsExtractor(
            target_year=self.settings.TARGET_YEAR,
            name_selectors=self.settings.EXTRACTION_SETTINGS["name_selectors"],
            exclude_tokens=self.settings.EXTRACTION_SETTINGS["name_exclude_tokens"],
            min_cells=self.settings.EXTRACTION_SETTINGS["min_cells"],
            max_position=self.settings.EXTRACTION_SETTINGS["max_position"],
        )
        self.single_flight = single_flight or SingleFlight()
        self.logger = get_logger(__name__)

    # --- Public API -----------------------------------------------------------------
    def get_runner_data(self, runner_id) -> ResultSet:
        """
        Retrieve a runner's results.

        Args:
            runner_id: parkrun athlete id, optionally with its leading letter

        Returns:
            ResultSet owned by the caller

        Raises:
            RetrievalError: when the page could not be fetched or parsed
        """
        runner_id = normalize_runner_id(runner_id)
        result = self.single_flight.do(runner_id, lambda: self._retrieve(runner_id))
        # Callers that joined an in-flight retrieval get their own copy
        return copy.deepcopy(result)

    def get_runner_analytics(self, runner_id) -> Tuple[ResultSet, Optional[DerivedAnalytics]]:
        """Retrieve a runner's results together with their year-in-review analytics."""
        result = self.get_runner_data(runner_id)
        analytics = compute_analytics(
            result,
            target_year=self.settings.TARGET_YEAR,
            per_run_distance_km=self.settings.PER_RUN_DISTANCE_KM,
        )
        return result, analytics

    def runner_url(self, runner_id: str) -> str:
        return self.settings.RUNNER_URL_TEMPLATE.format(runner_id=runner_id)

    # --- Internal Steps -------------------------------------------------------------
    def _retrieve(self, runner_id: str) -> ResultSet:
        cached = self.cache.lookup(runner_id)
        if cached is not None:
            return cached

        url = self.runner_url(runner_id)
        try:
            html = self.fetcher.fetch(url)
            extraction = self.extractor.extract(html)
        except Exception as exc:  # noqa: BLE001
            self.logger.error("Retrieval failed for runner %s: %s", runner_id, exc, exc_info=True)
            raise RetrievalError(f"Failed to fetch parkrun data: {exc}") from exc

        result = build_result_set(RunnerProfile(id=runner_id, name=extraction.name), extraction.rows)
        self.logger.info(
            "Runner %s: %d runs (%d candidates before dedupe)",
            runner_id,
            len(result.runs),
            len(extraction.rows),
        )
        if not result.runs:
            self._report_empty(runner_id, extraction, html)

        self.cache.store_result(runner_id, result)
        return result

    def _report_empty(self, runner_id: str, extraction: ExtractionResult, html: str) -> None:
        if extraction.rows_seen == 0:
            self.logger.warning(
                "No results table rows found for runner %s; the page layout may have changed",
                runner_id,
            )
        else:
            self.logger.warning(
                "Runner %s: %d table rows found (shape=%s) but none qualified for %s",
                runner_id,
                extraction.rows_seen,
                extraction.shape,
                self.settings.TARGET_YEAR,
            )
        if not self.settings.DEBUG_ARTIFACTS:
            return
        try:
            path = save_debug_html(html, self.settings.get_file_path("debug_html", runner_id))
            self.logger.info("Saved debug HTML for runner %s to %s", runner_id, path)
        except OSError as e:
            self.logger.warning("Could not save debug HTML for runner %s: %s", runner_id, e)


def build_service(settings: Optional[Config] = None, fetcher_name: Optional[str] = None) -> RunnerDataService:
    """Compose the default service from configuration."""
    settings = settings or config
    cache = CacheManager(
        store=PersistentStore(settings.DATA_DIR),
        memory=MemoryCache(ttl_seconds=settings.CACHE_TTL_SECONDS),
    )
    return RunnerDataService(
        fetcher=create_fetcher(fetcher_name, settings),
        cache=cache,
        settings=settings,
    )
