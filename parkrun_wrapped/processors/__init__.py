"""Deduplication, ordering, statistics and analytics for extracted runs."""
