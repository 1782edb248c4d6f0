"""Aggregation package: title matching, merging and re-release tagging."""

from moviebonus.etl.aggregation.matcher import TitleMatcher, normalize_title, tokenize_title
from moviebonus.etl.aggregation.merger import MergeEngine, MergeResult, MergeStats, find_missing_titles
from moviebonus.etl.aggregation.rerelease import RereleaseClassifier, detect_rerelease

__all__ = [
    "MergeEngine",
    "MergeResult",
    "MergeStats",
    "RereleaseClassifier",
    "TitleMatcher",
    "detect_rerelease",
    "find_missing_titles",
    "normalize_title",
    "tokenize_title",
]
