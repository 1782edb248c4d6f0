"""Cinema exhibitor registry.

Static configuration for the chains whose bonus announcements are
scraped, and resolution of free-form exhibitor names to their ids.
"""

import unicodedata
from dataclasses import dataclass

from moviebonus.etl.errors import ConfigurationError


@dataclass(frozen=True)
class Exhibitor:
    """A cinema chain publishing its own bonus offers.

    Attributes:
        id: Stable exhibitor key.
        name: Display name.
        aliases: Other spellings seen in scraped text.
        event_urls: Pages listing current events and bonuses.
        ticket_url: Public booking site.
        facebook_page: Page slug on mbasic.facebook.com.
        priority: Scrape order, lower first.
    """

    id: str
    name: str
    aliases: tuple[str, ...] = ()
    event_urls: tuple[str, ...] = ()
    ticket_url: str | None = None
    facebook_page: str | None = None
    priority: int = 100


EXHIBITORS: tuple[Exhibitor, ...] = (
    Exhibitor(
        id="vieshow",
        name="威秀影城",
        aliases=("威秀", "Vieshow", "VS Cinemas"),
        event_urls=("https://www.vscinemas.com.tw/vsweb/film/events.aspx",),
        ticket_url="https://www.vscinemas.com.tw/",
        facebook_page="vscinemas",
        priority=1,
    ),
    Exhibitor(
        id="showtimes",
        name="秀泰影城",
        aliases=("秀泰", "Showtimes"),
        event_urls=("https://www.showtimes.com.tw/events",),
        ticket_url="https://www.showtimes.com.tw/",
        facebook_page="showtimescinemas",
        priority=2,
    ),
    Exhibitor(
        id="ambassador",
        name="國賓影城",
        aliases=("國賓", "Ambassador"),
        event_urls=("https://www.ambassador.com.tw/events",),
        ticket_url="https://www.ambassador.com.tw/",
        facebook_page="ambassadortheaters",
        priority=3,
    ),
    Exhibitor(
        id="miramar",
        name="美麗華影城",
        aliases=("美麗華", "Miramar"),
        event_urls=("https://www.miramarcinemas.tw/",),
        ticket_url="https://www.miramarcinemas.tw/",
        facebook_page="maboroshi.miramar",
        priority=4,
    ),
    Exhibitor(
        id="in89",
        name="in89 豪華數位影城",
        aliases=("in89", "IN89"),
        event_urls=("https://www.in89.com.tw/",),
        ticket_url="https://www.in89.com.tw/",
        facebook_page="in89cinemas",
        priority=5,
    ),
)

_BY_ID = {exhibitor.id: exhibitor for exhibitor in EXHIBITORS}


def _fold(name: str) -> str:
    return "".join(unicodedata.normalize("NFKC", name).casefold().split())


_BY_NAME = {
    _fold(label): exhibitor.id
    for exhibitor in EXHIBITORS
    for label in (exhibitor.id, exhibitor.name, *exhibitor.aliases)
}


def get_exhibitor(exhibitor_id: str) -> Exhibitor | None:
    """Look up an exhibitor by id."""
    return _BY_ID.get(exhibitor_id)


def resolve_exhibitor_id(name: str) -> str:
    """Map an exhibitor id, name or alias to its canonical id.

    Matching ignores width, case and spaces. Unknown names are returned
    stripped but otherwise unchanged.

    Args:
        name: Exhibitor id or name as scraped.

    Returns:
        Canonical exhibitor id.
    """
    return _BY_NAME.get(_fold(name), name.strip())


def select_exhibitors(ids: list[str]) -> list[Exhibitor]:
    """Return the registered exhibitors among ``ids``, in priority order.

    Raises:
        ConfigurationError: If an id is not registered.
    """
    unknown = [exhibitor_id for exhibitor_id in ids if exhibitor_id not in _BY_ID]
    if unknown:
        raise ConfigurationError(f"Unknown exhibitors in SCRAPER_EXHIBITORS: {', '.join(unknown)}")
    chosen = [_BY_ID[exhibitor_id] for exhibitor_id in dict.fromkeys(ids)]
    return sorted(chosen, key=lambda e: e.priority)
