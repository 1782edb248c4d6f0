"""Direct database writer (fallback persistence path).

Writes one merged record per transaction: the movie row is inserted or
updated by external id, then its promotions are upserted by bonus key.
Rows curated by hand (``data_source = 'manual'``) are never overwritten.
"""

import logging
from collections.abc import Callable
from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from moviebonus.database.connection import DatabaseConnection
from moviebonus.database.models import Movie, Promotion
from moviebonus.etl.loaders.base import RecordWriteResult, WriteAction
from moviebonus.etl.loaders.mapping import PROMOTION_FIELDS, movie_values, promotion_values
from moviebonus.etl.schemas import DataSource, MergedMovieRecord

logger = logging.getLogger(__name__)


class DirectWriter:
    """Idempotent, manual-data-preserving writer for merged records.

    ``write_record`` is blocking and is meant to run in a worker thread;
    every call opens its own session.

    Example:
        ```python
        writer = DirectWriter(DatabaseConnection.from_settings(settings.database))
        result = writer.write_record(record)
        ```
    """

    name = "direct"

    def __init__(
        self,
        db: DatabaseConnection,
        today: Callable[[], date] = date.today,
    ) -> None:
        """Initialize writer.

        Args:
            db: Database connection owning the session factory.
            today: Clock used to derive screening status.
        """
        self._db = db
        self._today = today

    def write_record(self, record: MergedMovieRecord) -> RecordWriteResult:
        """Insert or update one movie and its promotions atomically.

        Args:
            record: Merged record to persist.

        Returns:
            RecordWriteResult describing the changes.

        Raises:
            SQLAlchemyError: If the transaction fails (rolled back).
        """
        with self._db.session() as session:
            movie, action = self._upsert_movie(session, record)
            inserted, updated, skipped = self._upsert_promotions(session, movie, record)

        if action != WriteAction.UNCHANGED or inserted or updated:
            logger.debug(
                f"{record.external_id}: movie {action}, "
                f"{inserted} promotions inserted, {updated} updated, {skipped} skipped"
            )
        return RecordWriteResult(
            external_id=record.external_id,
            action=action,
            promotions_inserted=inserted,
            promotions_updated=updated,
            promotions_skipped=skipped,
        )

    # -------------------------------------------------------------------------
    # Movie
    # -------------------------------------------------------------------------

    def _upsert_movie(self, session: Session, record: MergedMovieRecord) -> tuple[Movie, WriteAction]:
        """Insert the movie or apply changed fields to the stored row."""
        values = movie_values(record, self._today())
        movie = session.scalars(
            select(Movie).where(Movie.external_id == record.external_id)
        ).one_or_none()

        if movie is None:
            movie = Movie(
                external_id=record.external_id,
                is_rerelease=record.is_rerelease,
                data_source=record.data_source.value,
                **values,
            )
            session.add(movie)
            session.flush()
            return movie, WriteAction.INSERTED

        if movie.data_source == DataSource.MANUAL:
            logger.info(f"Manual movie kept as is: {record.external_id} ({movie.title})")
            return movie, WriteAction.PROTECTED

        values["is_rerelease"] = movie.is_rerelease or record.is_rerelease
        if not self._apply_changes(movie, values):
            return movie, WriteAction.UNCHANGED
        return movie, WriteAction.UPDATED

    # -------------------------------------------------------------------------
    # Promotions
    # -------------------------------------------------------------------------

    def _upsert_promotions(
        self,
        session: Session,
        movie: Movie,
        record: MergedMovieRecord,
    ) -> tuple[int, int, int]:
        """Upsert promotions by bonus key.

        Returns:
            Tuple of (inserted, updated, skipped).
        """
        existing = {
            promotion.bonus_key: promotion
            for promotion in session.scalars(
                select(Promotion).where(Promotion.movie_id == movie.id)
            )
        }
        inserted = updated = skipped = 0
        written: set[str] = set()

        for group in record.exhibitor_groups:
            for bonus in group.bonuses:
                values = promotion_values(group, bonus)
                key = values["bonus_key"]
                if key in written:
                    continue
                written.add(key)

                current = existing.get(key)
                if current is None:
                    session.add(
                        Promotion(
                            movie_id=movie.id,
                            data_source=DataSource.SCRAPER.value,
                            first_seen_at=bonus.observed_at,
                            **values,
                        )
                    )
                    inserted += 1
                elif current.data_source == DataSource.MANUAL:
                    logger.info(
                        f"Manual promotion kept as is: {record.external_id} / {group.exhibitor_id}"
                    )
                    skipped += 1
                elif self._apply_changes(current, {f: values[f] for f in PROMOTION_FIELDS}):
                    updated += 1

        return inserted, updated, skipped

    @staticmethod
    def _apply_changes(row: Any, values: dict[str, Any]) -> bool:
        """Set the attributes whose value differs.

        Returns:
            True if at least one attribute changed.
        """
        changed = False
        for key, value in values.items():
            if getattr(row, key) != value:
                setattr(row, key, value)
                changed = True
        return changed
