"""Extractors for runner results pages."""

from .column_profiles import PROFILES, ColumnProfile, select_profile
from .results_extractor import ExtractionResult, ResultsExtractor

__all__ = ["PROFILES", "ColumnProfile", "ExtractionResult", "ResultsExtractor", "select_profile"]
