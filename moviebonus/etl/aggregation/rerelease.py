"""Re-release classification.

Keyword heuristic flagging theatrical re-screenings (restorations,
anniversary editions, premium-format returns) from title and synopsis.
"""

import logging

from moviebonus.etl.schemas import MergedMovieRecord

logger = logging.getLogger(__name__)

RERELEASE_KEYWORDS: tuple[str, ...] = (
    "重映",
    "再上映",
    "4K",
    "IMAX",
    "數位修復",
    "經典回歸",
    "重返大銀幕",
    "紀念版",
    "紀念上映",
    "周年紀念",
    "週年紀念",
    "重新上映",
    "復刻上映",
    "經典重映",
    "數位紀念版",
    "Dolby Cinema",
    "杜比影院",
    "4K修復",
    "4K 修復",
    "數位修復版",
    "重製版",
    "特別版上映",
    "re-release",
    "remastered",
)

_FOLDED_KEYWORDS = tuple(keyword.casefold() for keyword in RERELEASE_KEYWORDS)


def detect_rerelease(title: str, synopsis: str | None = None) -> bool:
    """Check whether a title or synopsis announces a re-release.

    Args:
        title: Movie title.
        synopsis: Optional overview or announcement text.

    Returns:
        True if any re-release keyword appears (case-insensitive).
    """
    haystack = f"{title} {synopsis or ''}".casefold()
    return any(keyword in haystack for keyword in _FOLDED_KEYWORDS)


class RereleaseClassifier:
    """Tags merged records as re-releases.

    The flag is only ever raised: a record already marked upstream stays
    marked whatever the heuristic says.
    """

    def classify(self, record: MergedMovieRecord) -> MergedMovieRecord:
        """Return the record with its re-release flag resolved."""
        if record.is_rerelease:
            return record
        if not detect_rerelease(record.title, record.synopsis):
            return record
        logger.debug(f"Re-release detected: {record.external_id} '{record.title}'")
        return record.model_copy(update={"is_rerelease": True})

    def classify_all(self, records: list[MergedMovieRecord]) -> list[MergedMovieRecord]:
        """Classify a batch, preserving order."""
        classified = [self.classify(record) for record in records]
        flagged = sum(1 for record in classified if record.is_rerelease)
        logger.info(f"Re-release classification: {flagged}/{len(classified)} flagged")
        return classified
