"""Loader statistics and per-record write results.

Shared by both persistence paths so that a sync outcome reads the same
whichever path serviced it.
"""

import logging
from dataclasses import dataclass, field
from enum import StrEnum

logger = logging.getLogger(__name__)


class WriteAction(StrEnum):
    """What happened to a movie row during a direct write."""

    INSERTED = "inserted"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    PROTECTED = "protected"


@dataclass(frozen=True)
class RecordWriteResult:
    """Result of writing one merged record.

    Attributes:
        external_id: Movie key.
        action: Effect on the movie row.
        promotions_inserted: New promotion rows.
        promotions_updated: Promotion rows whose fields changed.
        promotions_skipped: Incoming promotions dropped to protect manual rows.
    """

    external_id: str
    action: WriteAction
    promotions_inserted: int = 0
    promotions_updated: int = 0
    promotions_skipped: int = 0


@dataclass
class LoaderStats:
    """Statistics for a persistence operation.

    Attributes:
        inserted: Number of new movies inserted.
        updated: Number of existing movies updated.
        unchanged: Number of movies already up to date.
        skipped: Protected manual movies plus incoming promotions dropped for manual rows.
        errors: Number of failed records.
        error_messages: List of error descriptions.
    """

    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    errors: int = 0
    error_messages: list[str] = field(default_factory=list)

    @property
    def saved(self) -> int:
        """Movies durably written or confirmed; protected movies are not counted."""
        return self.inserted + self.updated + self.unchanged

    @property
    def total_processed(self) -> int:
        """Total records processed."""
        return self.saved + self.errors

    @property
    def success_rate(self) -> float:
        """Calculate success rate as percentage.

        Returns:
            Success rate between 0.0 and 100.0.
        """
        if self.total_processed == 0:
            return 100.0
        return round((1 - self.errors / self.total_processed) * 100, 2)

    def record(self, result: RecordWriteResult) -> None:
        """Account for one direct write."""
        if result.action == WriteAction.INSERTED:
            self.inserted += 1
        elif result.action == WriteAction.UPDATED:
            self.updated += 1
        elif result.action == WriteAction.UNCHANGED:
            self.unchanged += 1
        else:
            self.skipped += 1
        self.skipped += result.promotions_skipped

    def record_error(self, message: str) -> None:
        """Account for a failed record."""
        self.errors += 1
        self.error_messages.append(message)

    def log_summary(self, path: str) -> None:
        """Log persistence statistics summary."""
        logger.info(
            f"💾 {path}: {self.inserted} inserted, {self.updated} updated, "
            f"{self.unchanged} unchanged, {self.skipped} skipped, {self.errors} errors "
            f"({self.success_rate}% success)"
        )
