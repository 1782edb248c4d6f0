"""Editorial listing tracker."""

from moviebonus.etl.extractors.editorial.tracker import EditorialTracker

__all__ = ["EditorialTracker"]
