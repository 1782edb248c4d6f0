"""Heuristic parser turning announcement text into bonus observations.

Cinema chains announce gifts in loosely formatted Chinese text such as::

    《鬼滅之刃 劇場版》第1週入場特典：角色海報，限量500份

The parser splits text into segments, keeps the ones mentioning a bonus
keyword and pulls out the title, the distribution week, the description
and the stock hint. Stale announcements (all printed dates too old) are
dropped.
"""

import logging
import re
import unicodedata
from datetime import date, datetime, timedelta

from moviebonus.etl.aggregation.matcher import normalize_title
from moviebonus.etl.exhibitors import Exhibitor
from moviebonus.etl.schemas import RawBonusObservation

logger = logging.getLogger(__name__)

BONUS_KEYWORDS: tuple[str, ...] = ("特典", "入場禮", "贈品", "來場者", "購票贈", "好禮", "加贈", "限定禮")

# Title brackets by decreasing reliability; 【】 is often a tag like 【活動】
_TITLE_PATTERNS = (
    re.compile(r"《\s*([^》\n]{1,80}?)\s*》"),
    re.compile(r"[「『]\s*([^」』\n]{1,80}?)\s*[」』]"),
    re.compile(r"【\s*([^】\n]{1,80}?)\s*】"),
)
_TAG_WORDS = {"活動", "公告", "最新消息", "優惠", "特典", "贈品", "注意事項"}

_WEEK = re.compile(r"第\s*([0-9一二三四五六七八九十兩]+)\s*[週周]")
_QUANTITY = re.compile(
    r"限量\s*[0-9,]+\s*[份個張組套名]?"
    r"|每[場日]\s*前?\s*[0-9]+\s*名"
    r"|數量有限[^，。,;；\n]*"
    r"|送完為止"
)
_DESCRIPTION = re.compile(r"(?:特典|入場禮|贈品|好禮|加贈|限定禮|購票贈)\s*[：:]\s*(.+)")
_SEGMENT_SPLIT = re.compile(r"[\n。！!；;]+")
_TRIM = " ，,、：:．.-~～|／/()（）"

_DATE_PATTERNS = (
    re.compile(r"(\d{4})-(\d{1,2})-(\d{1,2})"),
    re.compile(r"(\d{4})/(\d{1,2})/(\d{1,2})"),
    re.compile(r"(\d{4})年\s*(\d{1,2})月\s*(\d{1,2})日"),
)

_CHINESE_DIGITS = {
    "一": 1, "二": 2, "兩": 2, "三": 3, "四": 4,
    "五": 5, "六": 6, "七": 7, "八": 8, "九": 9,
}


# =============================================================================
# DATE RELEVANCE
# =============================================================================


def extract_dates(text: str) -> list[date]:
    """Find every calendar date printed in the text."""
    found: list[date] = []
    for pattern in _DATE_PATTERNS:
        for year, month, day in pattern.findall(text):
            try:
                found.append(date(int(year), int(month), int(day)))
            except ValueError:
                continue
    return found


def is_recent(text: str, today: date, max_age_days: int = 90) -> bool:
    """Check that an announcement is not stale.

    Text without any date is treated as recent.

    Args:
        text: Announcement text.
        today: Reference day.
        max_age_days: Maximum age of the newest printed date.

    Returns:
        False only when every printed date is older than the cutoff.
    """
    dates = extract_dates(text)
    if not dates:
        return True
    return max(dates) >= today - timedelta(days=max_age_days)


# =============================================================================
# PARSER
# =============================================================================


def parse_week(text: str) -> int | None:
    """Read the distribution week from '第N週' (Arabic or Chinese numerals)."""
    match = _WEEK.search(text)
    if not match:
        return None
    token = match.group(1)
    if token.isdigit():
        value = int(token)
    elif "十" in token:
        tens, _, ones = token.partition("十")
        value = _CHINESE_DIGITS.get(tens, 1 if not tens else 0) * 10 + _CHINESE_DIGITS.get(ones, 0)
    else:
        value = _CHINESE_DIGITS.get(token, 0)
    return value if value > 0 else None


def parse_title(text: str) -> str | None:
    """Read a bracketed movie title, skipping tag-like brackets."""
    for pattern in _TITLE_PATTERNS:
        for candidate in pattern.findall(text):
            candidate = candidate.strip()
            if candidate and candidate not in _TAG_WORDS:
                return candidate
    return None


class BonusTextParser:
    """Extracts ``RawBonusObservation`` items from announcement text.

    Attributes:
        max_age_days: Announcements whose dates are all older are dropped.
    """

    def __init__(self, max_age_days: int = 90) -> None:
        self.max_age_days = max_age_days

    def parse(
        self,
        text: str,
        exhibitor: Exhibitor,
        source_id: str,
        observed_at: datetime,
        source_url: str | None = None,
    ) -> list[RawBonusObservation]:
        """Parse every bonus announced in a block of text.

        Args:
            text: Page or post text.
            exhibitor: Exhibitor the text belongs to.
            source_id: Producing channel (e.g. 'cinema:vieshow').
            observed_at: Fetch time, also the staleness reference.
            source_url: Page the text came from.

        Returns:
            Observations in reading order, without duplicates.
        """
        text = unicodedata.normalize("NFKC", text)
        today = observed_at.date()
        observations: list[RawBonusObservation] = []
        seen: set[tuple[str, int | None, str]] = set()
        current_title: str | None = None

        for segment in _SEGMENT_SPLIT.split(text):
            segment = segment.strip()
            if not segment:
                continue

            title = parse_title(segment)
            if title:
                current_title = title

            if not any(keyword in segment for keyword in BONUS_KEYWORDS):
                continue
            if current_title is None:
                continue
            if not is_recent(segment, today, self.max_age_days):
                logger.debug(f"Stale announcement skipped: {segment[:60]}")
                continue

            description = self._description(segment)
            if not description:
                continue

            week = parse_week(segment)
            key = (normalize_title(current_title), week, normalize_title(description))
            if key in seen:
                continue
            seen.add(key)

            quantity = _QUANTITY.search(segment)
            observations.append(
                RawBonusObservation(
                    source_id=source_id,
                    exhibitor_id=exhibitor.id,
                    exhibitor_name=exhibitor.name,
                    movie_title_raw=current_title,
                    description=description,
                    quantity=quantity.group(0).strip() if quantity else None,
                    week_index=week,
                    observed_at=observed_at,
                    source_url=source_url,
                )
            )

        return observations

    @staticmethod
    def _description(segment: str) -> str | None:
        """Text after the keyword colon, or the segment minus title and week."""
        match = _DESCRIPTION.search(segment)
        if match:
            description = match.group(1)
        else:
            description = segment
            for pattern in _TITLE_PATTERNS:
                description = pattern.sub("", description)
            description = _WEEK.sub("", description)

        description = _QUANTITY.sub("", description)
        for pattern in _DATE_PATTERNS:
            description = pattern.sub("", description)
        description = re.sub(r"\s+", " ", description).strip(_TRIM)
        return description or None
