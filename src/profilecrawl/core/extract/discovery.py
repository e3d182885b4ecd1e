"""
Search-results extraction (Stage A).

Turns a rendered people-search page into ``DiscoveryRecord`` objects, one
per result card. Records are yielded lazily so the caller can persist each
card before the next one is parsed.
"""

from __future__ import annotations

import logging
from typing import Iterator
from urllib.parse import urlencode, urlsplit

from lxml import html as lxml_html
from lxml.etree import ParserError

from .base import NOT_AVAILABLE, DiscoveryRecord, ExtractionFailure, clean_text

logger = logging.getLogger(__name__)


SEARCH_URL = "https://www.linkedin.com/pub/dir"
SEARCH_TRACKING = "people-guest_people-search-bar_search-submit"

CARD_SELECTOR = "div[class='base-search-card__info']"
TITLE_SELECTOR = "h3[class='base-search-card__title']"
LOCATION_SELECTOR = "p[class='people-search-card__location']"
COMPANIES_SELECTOR = "span[class='entity-list-meta__entities-list']"


def build_search_url(keyword: str) -> str:
    """Build the people-directory search URL for a "first last" keyword.

    The first word is the first name; any remaining words form the last name.
    """
    first_name, _, last_name = keyword.strip().partition(" ")
    params = {
        "firstName": first_name,
        "lastName": last_name.strip(),
        "trk": SEARCH_TRACKING,
    }
    return f"{SEARCH_URL}?{urlencode(params)}"


def identifier_from_url(link: str) -> str:
    """Return the last path segment of a profile link, without query string."""
    path = urlsplit(link.strip()).path.rstrip("/")
    return path.rsplit("/", 1)[-1]


def extract_discovery_records(html: str, url: str | None = None) -> Iterator[DiscoveryRecord]:
    """Yield one record per search result card.

    ``location`` is read once per page from the first location element,
    not per card. A page with no cards yields nothing.

    Raises:
        ExtractionFailure: When the page cannot be parsed, or a card lacks
            its link/title, or the page has cards but no location element.
            Records for earlier cards have already been yielded.
    """
    try:
        tree = lxml_html.fromstring(html)
    except (ParserError, ValueError) as e:
        raise ExtractionFailure(f"HTML parse error: {e}", url=url, cause=e) from e

    cards = tree.cssselect(CARD_SELECTOR)
    logger.debug(f"Found {len(cards)} result cards on {url or 'page'}")

    for index, card in enumerate(cards):
        parent = card.getparent()
        link = parent.get("href") if parent is not None else None
        if not link:
            raise ExtractionFailure(f"Result card {index} has no profile link", url=url)

        titles = card.cssselect(TITLE_SELECTOR)
        if not titles:
            raise ExtractionFailure(f"Result card {index} has no title", url=url)

        locations = tree.cssselect(LOCATION_SELECTOR)
        if not locations:
            raise ExtractionFailure("Search page has no location element", url=url)

        companies = card.cssselect(COMPANIES_SELECTOR)

        yield DiscoveryRecord(
            name=clean_text(identifier_from_url(link)),
            display_name=clean_text(titles[0].text_content()),
            url=clean_text(link),
            location=clean_text(locations[0].text_content()),
            companies=clean_text(companies[0].text_content()) if companies else NOT_AVAILABLE,
        )
