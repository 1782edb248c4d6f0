"""Persistence gateway with primary/fallback routing.

A batch goes to the primary backend first. When that fails as a whole,
every record is written directly to the database, concurrently but
never twice at the same time for the same movie.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime

from moviebonus.etl.errors import PersistenceFallbackFailure, PersistencePrimaryFailure
from moviebonus.etl.loaders.backend import BackendWriter
from moviebonus.etl.loaders.base import LoaderStats, RecordWriteResult
from moviebonus.etl.loaders.direct import DirectWriter
from moviebonus.etl.schemas import ErrorKind, ErrorRecord, MergedMovieRecord, SyncOutcome, SyncPath
from moviebonus.etl.utils import KeyedLock

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class PersistenceGateway:
    """Routes a batch of merged records to storage.

    Both paths honor the same rules: idempotent upserts by external id,
    manual rows preserved and the re-release flag never cleared.

    Attributes:
        write_concurrency: Concurrent direct writes in fallback mode.
    """

    def __init__(
        self,
        backend: BackendWriter | None = None,
        direct: DirectWriter | None = None,
        write_concurrency: int = 4,
        locks: KeyedLock | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize gateway.

        Args:
            backend: Primary writer, None for fallback-only mode.
            direct: Fallback writer, None when no database is configured.
            write_concurrency: Concurrent direct writes.
            locks: Per-movie lock registry, shared with other writers of the run.
            clock: Source of the outcome timestamp.
        """
        self._backend = backend
        self._direct = direct
        self.write_concurrency = max(1, write_concurrency)
        self._locks = locks or KeyedLock()
        self._clock = clock

    async def sync(self, records: list[MergedMovieRecord]) -> SyncOutcome:
        """Persist a batch through the primary path, falling back if needed.

        Never raises for storage failures: they are reported in the
        outcome's errors.

        Args:
            records: Merged records of the run.

        Returns:
            SyncOutcome of the path that serviced the batch.
        """
        if not records:
            return SyncOutcome(path=SyncPath.PRIMARY, timestamp=self._clock())

        primary_error: str | None = None
        if self._backend is not None:
            try:
                return await self._sync_primary(records)
            except PersistencePrimaryFailure as e:
                primary_error = str(e)
                logger.warning(f"⚠️ Primary persistence failed, falling back: {e}")
        else:
            logger.info("No backend configured, writing directly")

        return await self._sync_fallback(records, primary_error)

    # -------------------------------------------------------------------------
    # Primary
    # -------------------------------------------------------------------------

    async def _sync_primary(self, records: list[MergedMovieRecord]) -> SyncOutcome:
        assert self._backend is not None
        async with self._locks.hold_many(record.external_id for record in records):
            result = await self._backend.save(records)
        return SyncOutcome(
            saved_count=result.saved,
            skipped_count=result.skipped,
            path=SyncPath.PRIMARY,
            errors=result.errors,
            timestamp=self._clock(),
        )

    # -------------------------------------------------------------------------
    # Fallback
    # -------------------------------------------------------------------------

    async def _sync_fallback(
        self,
        records: list[MergedMovieRecord],
        primary_error: str | None,
    ) -> SyncOutcome:
        stats = LoaderStats()
        errors: list[ErrorRecord] = []

        if self._direct is None:
            for record in records:
                failure = PersistenceFallbackFailure(record.external_id, "direct database not configured")
                stats.record_error(str(failure))
                errors.append(self._error_record(failure))
        else:
            semaphore = asyncio.Semaphore(self.write_concurrency)
            results = await asyncio.gather(*(self._write_one(record, semaphore) for record in records))
            for result in results:
                if isinstance(result, PersistenceFallbackFailure):
                    stats.record_error(str(result))
                    errors.append(self._error_record(result))
                else:
                    stats.record(result)

        stats.log_summary(SyncPath.FALLBACK.value)
        return SyncOutcome(
            saved_count=stats.saved,
            skipped_count=stats.skipped,
            path=SyncPath.FALLBACK,
            errors=tuple(errors),
            timestamp=self._clock(),
            primary_error=primary_error,
        )

    async def _write_one(
        self,
        record: MergedMovieRecord,
        semaphore: asyncio.Semaphore,
    ) -> RecordWriteResult | PersistenceFallbackFailure:
        """Write one record in a worker thread under its movie lock."""
        assert self._direct is not None
        async with self._locks.hold(record.external_id), semaphore:
            try:
                return await asyncio.to_thread(self._direct.write_record, record)
            except Exception as e:
                logger.error(f"❌ Direct write failed for {record.external_id}: {e}")
                return PersistenceFallbackFailure(record.external_id, f"{type(e).__name__}: {e}")

    @staticmethod
    def _error_record(failure: PersistenceFallbackFailure) -> ErrorRecord:
        return ErrorRecord(
            kind=ErrorKind.PERSISTENCE_FALLBACK,
            message=failure.detail,
            external_id=failure.external_id,
        )
