"""
Two-tier cache in front of the live fetch.

Lookups check the persistent tier first, then the in-memory TTL tier. A
persistent hit is returned regardless of age and also refreshes the memory
tier's entry.
"""

from typing import Optional

from .memory_cache import MemoryCache
from .persistent_store import PersistentStore
from ..models import ResultSet
from ..utils.logging_utils import get_logger


class CacheManager:
    def __init__(self, store: PersistentStore, memory: MemoryCache, key_prefix: str = "runner-"):
        self.store = store
        self.memory = memory
        self.key_prefix = key_prefix
        self.logger = get_logger(__name__)

    def cache_key(self, runner_id: str) -> str:
        return f"{self.key_prefix}{runner_id}"

    def lookup(self, runner_id: str) -> Optional[ResultSet]:
        """Cached result for a runner, or None when a live fetch is needed."""
        key = self.cache_key(runner_id)

        stored = self.store.load(runner_id)
        if stored is not None:
            self.memory.set(key, stored)
            self.logger.info("Persistent cache hit for runner %s", runner_id)
            return stored

        cached = self.memory.get(key)
        if cached is not None:
            self.logger.info("Memory cache hit for runner %s", runner_id)
            return cached

        self.logger.info("Cache miss for runner %s", runner_id)
        return None

    def store_result(self, runner_id: str, result: ResultSet) -> None:
        """Persist non-empty results and always refresh the memory tier.

        A failed persistent write is logged; the memory tier still gets the
        result and nothing is raised.
        """
        if result.runs:
            try:
                self.store.save(runner_id, result)
            except OSError as e:
                self.logger.warning("Failed to save data for runner %s: %s", runner_id, e)
        self.memory.set(self.cache_key(runner_id), result)
