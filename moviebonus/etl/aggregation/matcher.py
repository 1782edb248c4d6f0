"""Title normalization and similarity scoring.

Scores a free-text title scraped from an exhibitor against a canonical
title from the metadata provider. Titles mix CJK and Latin text, so
Latin words and CJK character bigrams are both used as tokens.
"""

import re
import unicodedata
from dataclasses import dataclass
from datetime import date
from typing import Self

from rapidfuzz.distance import LCSseq

# Latin/digit words, or runs of CJK ideographs, kana and hangul
_TOKEN_RUN = re.compile(
    r"[0-9a-z\u00c0-\u024f]+"
    r"|[\u3040-\u30ff\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufaff\uac00-\ud7af]+"
)
_CJK_START = "\u3040"


def normalize_title(text: str) -> str:
    """Fold width and case, then keep letters and digits only.

    Args:
        text: Raw title or description.

    Returns:
        Normalized string, empty when nothing alphanumeric remains.
    """
    folded = unicodedata.normalize("NFKC", text).casefold()
    return "".join(ch for ch in folded if ch.isalnum())


def tokenize_title(text: str) -> frozenset[str]:
    """Split a title into comparable tokens.

    Latin runs become words; CJK runs become character bigrams (a lone
    CJK character is its own token).

    Args:
        text: Raw title.

    Returns:
        Set of tokens.
    """
    folded = unicodedata.normalize("NFKC", text).casefold()
    tokens: set[str] = set()
    for run in _TOKEN_RUN.findall(folded):
        if run[0] < _CJK_START:
            tokens.add(run)
        elif len(run) == 1:
            tokens.add(run)
        else:
            tokens.update(run[i : i + 2] for i in range(len(run) - 1))
    return frozenset(tokens)


@dataclass(frozen=True)
class PreparedTitle:
    """Title with its normalized form and tokens computed once."""

    raw: str
    normalized: str
    tokens: frozenset[str]

    @classmethod
    def of(cls, raw: str) -> Self:
        return cls(raw=raw, normalized=normalize_title(raw), tokens=tokenize_title(raw))


class TitleMatcher:
    """Computes a bounded similarity score between two titles.

    score = token overlap + edit similarity + containment bonus
            - release date penalty, capped to [0, 1].

    Attributes:
        release_window_days: Date gap tolerated before the penalty applies.
    """

    # Score weights
    _TOKEN_WEIGHT = 0.7
    _SEQUENCE_WEIGHT = 0.3

    # Score adjustments
    _CONTAINMENT_BONUS = 0.3
    _DATE_MISMATCH_PENALTY = 0.2
    _MIN_CONTAINMENT_LENGTH = 2

    def __init__(self, release_window_days: int = 180) -> None:
        self.release_window_days = release_window_days

    def score(
        self,
        left: PreparedTitle | str,
        right: PreparedTitle | str,
        left_date: date | None = None,
        right_date: date | None = None,
    ) -> float:
        """Score how likely two titles name the same movie.

        Args:
            left: Scraped title.
            right: Canonical title.
            left_date: Release date hint attached to the scraped title.
            right_date: Canonical release date.

        Returns:
            Score between 0.0 and 1.0.
        """
        if isinstance(left, str):
            left = PreparedTitle.of(left)
        if isinstance(right, str):
            right = PreparedTitle.of(right)

        if not left.normalized or not right.normalized:
            return 0.0

        if left.normalized == right.normalized:
            base = 1.0
        else:
            base = (
                self._TOKEN_WEIGHT * self._token_overlap(left.tokens, right.tokens)
                + self._SEQUENCE_WEIGHT
                * LCSseq.normalized_similarity(left.normalized, right.normalized)
            )
            if self._contains(left.normalized, right.normalized):
                base += self._CONTAINMENT_BONUS

        if self._dates_conflict(left_date, right_date):
            base -= self._DATE_MISMATCH_PENALTY

        return round(max(0.0, min(base, 1.0)), 6)

    # -------------------------------------------------------------------------
    # Components
    # -------------------------------------------------------------------------

    @staticmethod
    def _token_overlap(left: frozenset[str], right: frozenset[str]) -> float:
        """Jaccard ratio of the two token sets."""
        union = left | right
        if not union:
            return 0.0
        return len(left & right) / len(union)

    def _contains(self, left: str, right: str) -> bool:
        """Check substring containment in either direction."""
        shorter, longer = sorted((left, right), key=len)
        return len(shorter) >= self._MIN_CONTAINMENT_LENGTH and shorter in longer

    def _dates_conflict(self, left: date | None, right: date | None) -> bool:
        """Check if both dates are known and too far apart."""
        if left is None or right is None:
            return False
        return abs((left - right).days) > self.release_window_days


def titles_overlap(left: str, right: str) -> bool:
    """Loose equality used for listing cross-checks.

    Args:
        left: First title.
        right: Second title.

    Returns:
        True when the normalized titles are equal or one contains the other.
    """
    a, b = normalize_title(left), normalize_title(right)
    if not a or not b:
        return False
    shorter, longer = sorted((a, b), key=len)
    return shorter == longer or (len(shorter) >= 2 and shorter in longer)
