"""Extract page count and matches from a tournament's match list page"""

import logging
from typing import List
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from models import Match
from scraper_config import CSS_SELECTORS

logger = logging.getLogger(__name__)


def strip_query(url: str) -> str:
    """Drop everything from the first '?' on"""
    index = url.find("?")
    return url if index < 0 else url[:index]


def parse_page_count(page_source: str) -> int:
    """Highest page number among the pagination links, at least 1

    Links whose text is not a number (e.g. "next") are ignored.
    """
    soup = BeautifulSoup(page_source, "html.parser")
    numbers = [1]
    for link in soup.select(CSS_SELECTORS["pagination_links"]):
        text = link.get_text(strip=True)
        if text.isdigit():
            numbers.append(int(text))
    return max(numbers)


def parse_matches(page_source: str, base_url: str) -> List[Match]:
    """Matches in page order

    Args:
        page_source: HTML of a match list page
        base_url: Address the page was loaded from, used to resolve relative links

    Returns:
        One Match per match link, with the lobby base URL and player names
    """
    soup = BeautifulSoup(page_source, "html.parser")
    matches = []
    for link in soup.select(CSS_SELECTORS["match_links"]):
        href = link.get("href")
        if not href:
            logger.debug("Skipping match link without href")
            continue
        players = tuple(
            name.get_text() for name in link.select(CSS_SELECTORS["opponent_names"])
        )
        matches.append(Match(url=strip_query(urljoin(base_url, href)), players=players))
    return matches
