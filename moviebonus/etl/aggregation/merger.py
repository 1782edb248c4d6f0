"""Merge engine joining scraped bonuses to canonical movies.

Each raw bonus observation is scored against every canonical seed and
attached to the single best seed clearing the match threshold. The
result is one merged record per seed, with bonuses grouped by exhibitor,
plus the observations that matched nothing.
"""

import logging
from dataclasses import dataclass, field
from datetime import date

from moviebonus.etl.aggregation.matcher import PreparedTitle, TitleMatcher, normalize_title, titles_overlap
from moviebonus.etl.exhibitors import get_exhibitor, resolve_exhibitor_id
from moviebonus.etl.schemas import (
    CanonicalMovieSeed,
    ExhibitorBonusGroup,
    MergedMovieRecord,
    RawBonusObservation,
    TrackedTitle,
    UnmatchedObservation,
)

logger = logging.getLogger(__name__)


# =============================================================================
# RESULT TYPES
# =============================================================================


@dataclass(frozen=True)
class MatchResult:
    """Result of matching one observation.

    Attributes:
        success: Whether a seed cleared the threshold.
        external_id: Matched (or closest) seed id.
        score: Best score reached.
        method: 'exact', 'fuzzy' or 'none'.
    """

    success: bool
    external_id: str | None
    score: float
    method: str


@dataclass
class MergeStats:
    """Statistics from a merge operation.

    Attributes:
        seeds: Canonical seeds considered.
        observations: Observations considered.
        matched: Observations attached to a seed.
        unmatched: Observations below threshold everywhere.
        duplicates: Repeated bonuses dropped inside a group.
    """

    seeds: int = 0
    observations: int = 0
    matched: int = 0
    unmatched: int = 0
    duplicates: int = 0

    @property
    def match_rate(self) -> float:
        """Matched share of observations, as a percentage."""
        if self.observations == 0:
            return 0.0
        return round(self.matched / self.observations * 100, 1)

    def log_summary(self) -> None:
        """Log merge statistics summary."""
        logger.info("=" * 60)
        logger.info("MERGE STATISTICS")
        logger.info("=" * 60)
        logger.info(f"Seeds:        {self.seeds}")
        logger.info(f"Observations: {self.observations}")
        logger.info(f"Matched:      {self.matched} ({self.match_rate}%)")
        logger.info(f"Unmatched:    {self.unmatched}")
        logger.info(f"Duplicates:   {self.duplicates}")
        logger.info("=" * 60)


@dataclass(frozen=True)
class MergeResult:
    """Output of ``MergeEngine.merge``."""

    records: tuple[MergedMovieRecord, ...]
    unmatched: tuple[UnmatchedObservation, ...]
    stats: MergeStats = field(default_factory=MergeStats)


@dataclass(frozen=True)
class _Candidate:
    seed: CanonicalMovieSeed
    titles: tuple[PreparedTitle, ...]


# =============================================================================
# MERGE ENGINE
# =============================================================================


class MergeEngine:
    """Fuzzy-matches observations to seeds and builds merged records.

    Deterministic: the same seeds and observations, in the same order,
    always produce the same records, groups and tie-breaks.

    Attributes:
        threshold: Score a match must exceed.
    """

    _THRESHOLD_DEFAULT = 0.5

    def __init__(
        self,
        threshold: float = _THRESHOLD_DEFAULT,
        matcher: TitleMatcher | None = None,
    ) -> None:
        """Initialize merge engine.

        Args:
            threshold: Score a match must exceed; a tie with it is rejected.
            matcher: Title scorer, default window of 180 days.
        """
        self.threshold = threshold
        self._matcher = matcher or TitleMatcher()

    # -------------------------------------------------------------------------
    # Main Merge
    # -------------------------------------------------------------------------

    def merge(
        self,
        seeds: list[CanonicalMovieSeed],
        observations: list[RawBonusObservation],
    ) -> MergeResult:
        """Merge observations into one record per seed.

        Args:
            seeds: Canonical movies, in output order.
            observations: Raw bonuses from all scrapers.

        Returns:
            MergeResult with records (seed order) and unmatched observations.
        """
        stats = MergeStats(seeds=len(seeds), observations=len(observations))
        candidates = [self._prepare(seed) for seed in seeds]

        matched: dict[str, list[RawBonusObservation]] = {seed.external_id: [] for seed in seeds}
        unmatched: list[UnmatchedObservation] = []

        for observation in observations:
            result = self._match_prepared(observation, candidates)
            if result.success and result.external_id is not None:
                matched[result.external_id].append(observation)
                stats.matched += 1
            else:
                unmatched.append(
                    UnmatchedObservation(
                        observation=observation,
                        best_score=result.score,
                        best_candidate=result.external_id,
                    )
                )
                stats.unmatched += 1

        records = []
        for seed in seeds:
            groups, duplicates = self._group_by_exhibitor(matched[seed.external_id])
            stats.duplicates += duplicates
            records.append(MergedMovieRecord.from_seed(seed, groups))

        stats.log_summary()
        return MergeResult(records=tuple(records), unmatched=tuple(unmatched), stats=stats)

    def match(
        self,
        observation: RawBonusObservation,
        seeds: list[CanonicalMovieSeed],
    ) -> MatchResult:
        """Find the seed a single observation belongs to.

        Args:
            observation: Scraped bonus.
            seeds: Canonical candidates.

        Returns:
            MatchResult, unsuccessful when no seed clears the threshold.
        """
        return self._match_prepared(observation, [self._prepare(seed) for seed in seeds])

    # -------------------------------------------------------------------------
    # Matching
    # -------------------------------------------------------------------------

    @staticmethod
    def _prepare(seed: CanonicalMovieSeed) -> _Candidate:
        titles = [PreparedTitle.of(seed.title)]
        if seed.english_title:
            titles.append(PreparedTitle.of(seed.english_title))
        return _Candidate(seed=seed, titles=tuple(titles))

    def _match_prepared(
        self,
        observation: RawBonusObservation,
        candidates: list[_Candidate],
    ) -> MatchResult:
        if not candidates:
            return self._no_match()

        scraped = PreparedTitle.of(observation.movie_title_raw)
        scored = [
            (self._score_candidate(scraped, observation.release_date_hint, c), c)
            for c in candidates
        ]
        best_score, best = min(scored, key=lambda item: self._rank_key(item[0], item[1].seed))

        if best_score <= self.threshold:
            logger.debug(
                f"No match for '{observation.movie_title_raw}' "
                f"(best={best.seed.external_id}, score={best_score:.2f})"
            )
            return MatchResult(
                success=False,
                external_id=best.seed.external_id if best_score > 0 else None,
                score=best_score,
                method="none",
            )

        method = "exact" if best_score >= 1.0 else "fuzzy"
        return MatchResult(
            success=True,
            external_id=best.seed.external_id,
            score=best_score,
            method=method,
        )

    def _score_candidate(
        self,
        scraped: PreparedTitle,
        hint: date | None,
        candidate: _Candidate,
    ) -> float:
        """Best score of the scraped title against any of the seed's titles."""
        return max(
            self._matcher.score(scraped, title, hint, candidate.seed.release_date)
            for title in candidate.titles
        )

    @staticmethod
    def _rank_key(score: float, seed: CanonicalMovieSeed) -> tuple[float, bool, date, str]:
        """Order by score desc, then earliest release date (unknown last), then id."""
        return (
            -score,
            seed.release_date is None,
            seed.release_date or date.max,
            seed.external_id,
        )

    @staticmethod
    def _no_match() -> MatchResult:
        return MatchResult(success=False, external_id=None, score=0.0, method="none")

    # -------------------------------------------------------------------------
    # Grouping
    # -------------------------------------------------------------------------

    @staticmethod
    def _group_by_exhibitor(
        observations: list[RawBonusObservation],
    ) -> tuple[tuple[ExhibitorBonusGroup, ...], int]:
        """Group bonuses per exhibitor in first-seen order.

        Repeated bonuses (same week and description) collapse to the first.

        Returns:
            Tuple of (groups, duplicates dropped).
        """
        grouped: dict[str, list[RawBonusObservation]] = {}
        names: dict[str, str] = {}
        seen: set[tuple[str, int | None, str]] = set()
        duplicates = 0

        for observation in observations:
            exhibitor_id = resolve_exhibitor_id(observation.exhibitor_id)
            key = (exhibitor_id, observation.week_index, normalize_title(observation.description))
            if key in seen:
                duplicates += 1
                continue
            seen.add(key)
            grouped.setdefault(exhibitor_id, []).append(observation)
            if exhibitor_id not in names:
                registered = get_exhibitor(exhibitor_id)
                names[exhibitor_id] = registered.name if registered else observation.exhibitor_name

        groups = tuple(
            ExhibitorBonusGroup(
                exhibitor_id=exhibitor_id,
                exhibitor_name=names[exhibitor_id],
                bonuses=tuple(bonuses),
            )
            for exhibitor_id, bonuses in grouped.items()
        )
        return groups, duplicates


# =============================================================================
# LISTING CROSS-CHECK
# =============================================================================


def find_missing_titles(
    tracked: list[TrackedTitle],
    seeds: list[CanonicalMovieSeed],
) -> list[str]:
    """List tracked titles the metadata provider does not know about.

    Args:
        tracked: Titles from the editorial listings.
        seeds: Canonical movies of this run.

    Returns:
        Missing titles, deduplicated, in listing order.
    """
    missing: dict[str, str] = {}
    for item in tracked:
        known = any(
            titles_overlap(item.title, seed.title)
            or (seed.english_title is not None and titles_overlap(item.title, seed.english_title))
            for seed in seeds
        )
        if not known:
            missing.setdefault(normalize_title(item.title), item.title)
    return list(missing.values())
