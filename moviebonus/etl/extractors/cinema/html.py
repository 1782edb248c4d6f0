"""HTML text extraction helpers built on BeautifulSoup."""

import re

from bs4 import BeautifulSoup, Tag

_NOISE_TAGS = ("script", "style", "noscript", "iframe", "svg", "nav", "footer", "header")
_BLANK_RUN = re.compile(r"[ \t　\xa0]+")

DEFAULT_MAX_CHARS = 8000


def _clean_lines(text: str) -> str:
    lines = (_BLANK_RUN.sub(" ", line).strip() for line in text.splitlines())
    return "\n".join(line for line in lines if line)


def strip_noise(soup: BeautifulSoup) -> BeautifulSoup:
    """Remove tags that never carry announcement text."""
    for tag in soup.find_all(_NOISE_TAGS):
        tag.decompose()
    return soup


def element_text(element: Tag) -> str:
    """Visible text of an element, one block per line."""
    return _clean_lines(element.get_text("\n"))


def extract_page_text(
    html: str,
    selectors: tuple[str, ...] = (),
    max_chars: int = DEFAULT_MAX_CHARS,
) -> str:
    """Extract the readable text of a page.

    Content under ``selectors`` is preferred; the whole body is used when
    none of them match.

    Args:
        html: Raw page markup.
        selectors: CSS selectors of the content blocks, in priority order.
        max_chars: Truncation limit.

    Returns:
        Cleaned text, one block per line.
    """
    soup = strip_noise(BeautifulSoup(html, "html.parser"))

    blocks: list[str] = []
    seen: set[str] = set()
    for selector in selectors:
        for element in soup.select(selector):
            text = element_text(element)
            if text and text not in seen:
                seen.add(text)
                blocks.append(text)

    if not blocks:
        root = soup.body or soup
        blocks.append(element_text(root))

    return "\n".join(blocks)[:max_chars]


def select_blocks(html: str, selectors: tuple[str, ...], limit: int | None = None) -> list[str]:
    """Return the text of the first selector that matches anything.

    Args:
        html: Raw page markup.
        selectors: CSS selectors tried in order.
        limit: Maximum number of blocks returned.

    Returns:
        Texts of the matching elements (empty ones skipped).
    """
    soup = strip_noise(BeautifulSoup(html, "html.parser"))
    for selector in selectors:
        texts = [t for t in (element_text(e) for e in soup.select(selector)) if t]
        if texts:
            return texts[:limit] if limit is not None else texts
    return []
