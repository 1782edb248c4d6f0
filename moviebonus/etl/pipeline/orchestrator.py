"""Sync coordination: fetch, merge, classify, persist, report.

One run is one traversal of the stages below. Adapters run concurrently
and the coordinator waits for all of them to settle; a failing source
only removes its own contribution. The run has a wall-clock budget:
when it expires, outstanding work is cancelled and a partial report is
returned flagged incomplete.
"""

import asyncio
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import StrEnum

import httpx

from moviebonus.database.connection import DatabaseConnection
from moviebonus.etl.aggregation import MergeEngine, MergeResult, RereleaseClassifier, TitleMatcher
from moviebonus.etl.aggregation.merger import find_missing_titles
from moviebonus.etl.errors import PipelineTimeout, SourceFetchError
from moviebonus.etl.extractors import (
    AdapterResult,
    CinemaScraper,
    EditorialTracker,
    SocialFeedScraper,
    SourceAdapter,
    TMDBProvider,
)
from moviebonus.etl.loaders import BackendWriter, DirectWriter, PersistenceGateway
from moviebonus.etl.schemas import (
    CanonicalMovieSeed,
    ErrorKind,
    ErrorRecord,
    MergedMovieRecord,
    RawBonusObservation,
    RunReport,
    SyncOutcome,
    TrackedTitle,
)
from moviebonus.etl.utils import setup_logger
from moviebonus.settings import Settings, SyncSettings

logger = setup_logger("etl.pipeline.orchestrator")


def _utc_now() -> datetime:
    return datetime.now(UTC)


class SyncStage(StrEnum):
    """Stages of one pipeline run, in traversal order."""

    IDLE = "idle"
    FETCHING_SOURCES = "fetching_sources"
    MERGING = "merging"
    CLASSIFYING = "classifying"
    PERSISTING = "persisting"
    REPORTED = "reported"


@dataclass
class _RunState:
    """Mutable progress of one run, readable after cancellation."""

    adapters: list[str]
    stage: SyncStage = SyncStage.IDLE
    results: dict[int, AdapterResult] = field(default_factory=dict)
    merge: MergeResult | None = None
    records: list[MergedMovieRecord] | None = None
    outcome: SyncOutcome | None = None

    def ordered_results(self) -> list[AdapterResult]:
        """Settled adapter results, in adapter order."""
        return [self.results[index] for index in sorted(self.results)]

    def pending(self) -> list[str]:
        """Names of adapters that have not settled."""
        return [name for index, name in enumerate(self.adapters) if index not in self.results]


# =============================================================================
# COORDINATOR
# =============================================================================


class SyncCoordinator:
    """Drives one scrape-merge-sync run.

    Example:
        ```python
        coordinator = SyncCoordinator(adapters, MergeEngine(), RereleaseClassifier(), gateway)
        report = await coordinator.run()
        ```
    """

    def __init__(
        self,
        adapters: Sequence[SourceAdapter],
        merge_engine: MergeEngine,
        classifier: RereleaseClassifier,
        gateway: PersistenceGateway,
        settings: SyncSettings | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize coordinator.

        Args:
            adapters: Source adapters, in priority order for seed dedup.
            merge_engine: Observation-to-seed matcher.
            classifier: Re-release tagger.
            gateway: Persistence router.
            settings: Timeouts, parallelism and scheduling interval.
            clock: Source of run timestamps.
        """
        self._adapters = list(adapters)
        self._merge_engine = merge_engine
        self._classifier = classifier
        self._gateway = gateway
        self._settings = settings or SyncSettings()
        self._clock = clock

    async def run(self) -> RunReport:
        """Execute one run and build its report.

        Never raises for source or storage failures; they are reported.

        Returns:
            RunReport, with ``complete=False`` if the budget expired.
        """
        started_at = self._clock()
        started = time.perf_counter()
        state = _RunState(adapters=[adapter.name for adapter in self._adapters])

        logger.info(f"🚀 Sync run started ({len(self._adapters)} sources)")
        timed_out = False
        try:
            await asyncio.wait_for(self._execute(state), timeout=self._settings.timeout_seconds)
        except TimeoutError:
            timed_out = True
            logger.error(
                f"⏱️ Run exceeded {self._settings.timeout_seconds}s during {state.stage}, "
                "reporting partial results"
            )

        report = self._build_report(state, started_at, started, timed_out)
        self._transition(state, SyncStage.REPORTED)
        logger.info(
            f"✅ Sync run finished: success={report.success}, complete={report.complete}, "
            f"{len(report.merged_movies)} movies, {report.total_bonuses} bonuses, "
            f"{report.execution_time_ms}ms"
        )
        return report

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    async def _execute(self, state: _RunState) -> None:
        self._transition(state, SyncStage.FETCHING_SOURCES)
        await self._fetch_all(state)

        self._transition(state, SyncStage.MERGING)
        state.merge = self._merge(state)

        self._transition(state, SyncStage.CLASSIFYING)
        state.records = self._classifier.classify_all(list(state.merge.records))

        if not state.records:
            logger.info("No merged records, persistence skipped")
            return

        self._transition(state, SyncStage.PERSISTING)
        state.outcome = await self._gateway.sync(state.records)

    async def _fetch_all(self, state: _RunState) -> None:
        """Run every adapter and wait for all of them to settle."""
        semaphore = asyncio.Semaphore(max(1, self._settings.max_parallel_sources))
        await asyncio.gather(
            *(
                self._fetch_one(index, adapter, semaphore, state)
                for index, adapter in enumerate(self._adapters)
            )
        )

    async def _fetch_one(
        self,
        index: int,
        adapter: SourceAdapter,
        semaphore: asyncio.Semaphore,
        state: _RunState,
    ) -> None:
        timeout = self._settings.source_timeout_seconds
        async with semaphore:
            try:
                result = await asyncio.wait_for(adapter.fetch(), timeout=timeout)
            except TimeoutError:
                logger.warning(f"⚠️ {adapter.name} timed out after {timeout}s")
                result = AdapterResult.failed(
                    adapter.name,
                    SourceFetchError(adapter.name, f"timed out after {timeout}s"),
                    duration_seconds=timeout,
                )
        state.results[index] = result

    def _merge(self, state: _RunState) -> MergeResult:
        seeds, observations, _ = self._collect(state.ordered_results())
        return self._merge_engine.merge(seeds, observations)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _collect(
        results: list[AdapterResult],
    ) -> tuple[list[CanonicalMovieSeed], list[RawBonusObservation], list[TrackedTitle]]:
        """Gather items of successful adapters; seeds deduplicated, first wins."""
        seeds: dict[str, CanonicalMovieSeed] = {}
        observations: list[RawBonusObservation] = []
        tracked: list[TrackedTitle] = []
        for result in results:
            if not result.success:
                continue
            for seed in result.seeds():
                seeds.setdefault(seed.external_id, seed)
            observations.extend(result.observations())
            tracked.extend(result.tracked_titles())
        return list(seeds.values()), observations, tracked

    @staticmethod
    def _transition(state: _RunState, stage: SyncStage) -> None:
        logger.info(f"Stage: {state.stage} → {stage}")
        state.stage = stage

    @staticmethod
    def _source_errors(state: _RunState, timed_out: bool) -> list[ErrorRecord]:
        errors = []
        for result in state.ordered_results():
            if result.error is not None:
                errors.append(
                    ErrorRecord(
                        kind=ErrorKind.SOURCE_FETCH,
                        message=result.error.detail,
                        source=result.source,
                    )
                )
            errors.extend(
                ErrorRecord(kind=ErrorKind.SOURCE_WARNING, message=warning, source=result.source)
                for warning in result.warnings
            )
        if timed_out:
            errors.extend(
                ErrorRecord(
                    kind=ErrorKind.SOURCE_FETCH,
                    message="cancelled by pipeline timeout",
                    source=name,
                )
                for name in state.pending()
            )
        return errors

    # -------------------------------------------------------------------------
    # Report
    # -------------------------------------------------------------------------

    def _build_report(
        self,
        state: _RunState,
        started_at: datetime,
        started: float,
        timed_out: bool,
    ) -> RunReport:
        seeds, observations, tracked = self._collect(state.ordered_results())

        # Budget expired before merging: merge whatever sources settled
        if state.merge is None:
            state.merge = self._merge_engine.merge(seeds, observations)
        records = state.records
        if records is None:
            records = self._classifier.classify_all(list(state.merge.records))

        errors: list[ErrorRecord] = []
        if timed_out:
            timeout = PipelineTimeout(f"run exceeded {self._settings.timeout_seconds}s during {state.stage}")
            errors.append(ErrorRecord(kind=ErrorKind.PIPELINE_TIMEOUT, message=str(timeout)))
        if state.outcome is not None:
            errors.extend(state.outcome.errors)

        now = self._clock()
        return RunReport(
            success=self._is_success(state.outcome, timed_out),
            complete=not timed_out,
            last_scraped_at=started_at,
            source_movie_count=len(seeds),
            total_bonuses=sum(record.bonus_count for record in records),
            merged_movies=tuple(records),
            unmatched_bonuses=state.merge.unmatched,
            source_errors=tuple(self._source_errors(state, timed_out)),
            errors=tuple(errors),
            sync_outcome=state.outcome,
            now_showing=tuple(tracked),
            missing_titles=tuple(find_missing_titles(tracked, seeds)) if tracked else (),
            execution_time_ms=int((time.perf_counter() - started) * 1000),
            next_sync=now + timedelta(hours=self._settings.interval_hours),
        )

    @staticmethod
    def _is_success(outcome: SyncOutcome | None, timed_out: bool) -> bool:
        """A run succeeds when it completed and storage took at least part of the batch."""
        if timed_out:
            return False
        if outcome is None:
            return True
        return outcome.saved_count > 0 or not outcome.errors


# =============================================================================
# WIRING
# =============================================================================


def build_adapters(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[SourceAdapter]:
    """Instantiate the enabled source adapters, metadata provider first.

    Args:
        settings: Application settings.
        transport: Optional httpx transport shared by all adapters (tests).

    Returns:
        Adapters in seed-priority order.
    """
    adapters: list[SourceAdapter] = [
        TMDBProvider(settings.tmdb, transport=transport),
        CinemaScraper(settings.scrapers, transport=transport),
    ]
    if settings.scrapers.enable_social_feeds:
        adapters.append(SocialFeedScraper(settings.scrapers, transport=transport))
    if settings.scrapers.enable_editorial:
        adapters.append(EditorialTracker(settings.scrapers, transport=transport))
    return adapters


def build_gateway(
    settings: Settings,
    db: DatabaseConnection | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> PersistenceGateway:
    """Build the persistence gateway from settings.

    Args:
        settings: Application settings.
        db: Database connection for direct writes, if any.
        transport: Optional httpx transport for the backend (tests).

    Returns:
        Gateway in primary+fallback or fallback-only mode.
    """
    backend = BackendWriter(settings.backend, transport=transport) if settings.backend.is_configured else None
    direct = DirectWriter(db) if db is not None else None
    if backend is None:
        logger.info("PYTHON_BACKEND_URL not set, fallback-only persistence")
    if direct is None:
        logger.warning("⚠️ No database configured, fallback writes will fail")
    return PersistenceGateway(
        backend=backend,
        direct=direct,
        write_concurrency=settings.sync.write_concurrency,
    )


async def run_sync(
    settings: Settings,
    db: DatabaseConnection | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RunReport:
    """Run the whole pipeline once.

    Shared by every trigger (HTTP endpoints and CLI).

    Args:
        settings: Application settings.
        db: Database connection, built from settings when omitted.
        transport: Optional httpx transport for all outbound calls (tests).

    Returns:
        RunReport of the run.

    Raises:
        ConfigurationError: If the scraper configuration names unknown exhibitors.
    """
    adapters = build_adapters(settings, transport=transport)

    owns_db = db is None and settings.database.is_configured
    if owns_db:
        db = DatabaseConnection.from_settings(settings.database)

    coordinator = SyncCoordinator(
        adapters=adapters,
        merge_engine=MergeEngine(
            threshold=settings.sync.match_threshold,
            matcher=TitleMatcher(release_window_days=settings.sync.release_window_days),
        ),
        classifier=RereleaseClassifier(),
        gateway=build_gateway(settings, db=db, transport=transport),
        settings=settings.sync,
    )
    try:
        return await coordinator.run()
    finally:
        if owns_db and db is not None:
            db.dispose()
