"""Page extraction: turns fetched HTML into a :class:`PageDocument`."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, List
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup
from bs4.element import Tag

from docpipe.errors import ParseError
from docpipe.scraper.models import Heading, Image, Link, PageDocument

QueryAll = Callable[[str], List[Tag]]

_HEADING_LEVELS = {"h1": 1, "h2": 2, "h3": 3, "h4": 4}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _parse(html: str | bytes) -> BeautifulSoup:
    if not isinstance(html, (str, bytes)):
        raise ParseError(f"Expected HTML text, got {type(html).__name__}")
    try:
        return BeautifulSoup(html, "html.parser")
    except Exception as exc:  # noqa: BLE001 - parser internals raise arbitrary types
        raise ParseError(f"Could not parse markup: {exc}") from exc


def _absolute(value: str, base_url: str) -> str:
    """Resolve *value* against *base_url* unless it already carries a scheme."""
    if urlparse(value).scheme:
        return value
    return urljoin(base_url, value)


def _text(el: Tag) -> str:
    return el.get_text().strip()


def _extract_title(query_all: QueryAll) -> str:
    titles = query_all("title")
    if titles and _text(titles[0]):
        return _text(titles[0])
    h1s = query_all("h1")
    return _text(h1s[0]) if h1s else ""


def _extract_headings(query_all: QueryAll) -> list[Heading]:
    headings: list[Heading] = []
    for el in query_all("h1, h2, h3, h4"):
        text = _text(el)
        if text:
            headings.append(Heading(level=_HEADING_LEVELS[el.name], text=text))
    return headings


def _extract_texts(query_all: QueryAll, selector: str) -> list[str]:
    """Trimmed text of every *selector* match, empty ones dropped."""
    return [text for text in (_text(el) for el in query_all(selector)) if text]


def _extract_links(query_all: QueryAll, base_url: str) -> list[Link]:
    links: list[Link] = []
    for el in query_all("a"):
        href = el.get("href")
        if not isinstance(href, str) or not href.strip():
            continue
        try:
            url = _absolute(href.strip(), base_url)
        except ValueError:
            # e.g. an unbalanced IPv6 bracket; urllib refuses to parse it
            continue
        links.append(Link(href=url, text=_text(el)))
    return links


def _extract_images(query_all: QueryAll, base_url: str) -> list[Image]:
    images: list[Image] = []
    for el in query_all("img"):
        src = el.get("src")
        if not isinstance(src, str) or not src.strip():
            continue
        try:
            url = _absolute(src.strip(), base_url)
        except ValueError:
            continue
        alt = el.get("alt")
        images.append(Image(src=url, alt=alt if isinstance(alt, str) else ""))
    return images


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_page(html: str | bytes, source_url: str, source_label: str = "") -> PageDocument:
    """Extract a structured document from *html* fetched from *source_url*.

    Every category is collected in document order.  Elements with empty text
    (or, for links and images, an empty or unparseable ``href``/``src``) are
    skipped.  Link and image URLs are made absolute against *source_url*.

    Raises:
        ParseError: If *html* cannot be parsed as markup at all.
    """
    soup = _parse(html)
    query_all: QueryAll = soup.select

    return PageDocument(
        url=source_url,
        title=_extract_title(query_all),
        headings=tuple(_extract_headings(query_all)),
        paragraphs=tuple(_extract_texts(query_all, "p")),
        code_blocks=tuple(_extract_texts(query_all, "pre, code")),
        links=tuple(_extract_links(query_all, source_url)),
        images=tuple(_extract_images(query_all, source_url)),
        scraped_at=datetime.now(timezone.utc).isoformat(),
        source_label=source_label,
    )
