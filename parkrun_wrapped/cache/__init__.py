"""Caching layer: persistent JSON store, memory TTL store and single-flight."""

from .cache_manager import CacheManager
from .memory_cache import CacheEntry, MemoryCache
from .persistent_store import PersistentStore, validate_runner_id
from .single_flight import SingleFlight

__all__ = [
    "CacheEntry",
    "CacheManager",
    "MemoryCache",
    "PersistentStore",
    "SingleFlight",
    "validate_runner_id",
]
