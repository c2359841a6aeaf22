"""Extract chat transcripts from match lobbies"""

import logging
from typing import List

from browser_manager import BrowserManager
from models import Match, Message, MessageGroup
from scraper_config import CSS_SELECTORS
from scraper_utils import parse_timestamp

logger = logging.getLogger(__name__)


class LobbyExtractor:
    """Reads the message groups of a match lobby

    Revealing a timestamp clicks inside the message, so messages are
    processed strictly in page order, one at a time.
    """

    def __init__(self, browser_manager: BrowserManager):
        """Initialize lobby extractor

        Args:
            browser_manager: BrowserManager instance
        """
        self.browser = browser_manager

    def extract(self, match: Match) -> List[MessageGroup]:
        """Visit the lobby of match and return its message groups in page order

        An empty list means the lobby has no messages.
        """
        logger.debug(f"Visiting lobby {match.lobby_url}")
        self.browser.navigate_to(match.lobby_url)
        self.browser.wait_until_absent(CSS_SELECTORS["lobby_loader"])

        groups = []
        for group_index, group_element in enumerate(self.browser.find_elements(CSS_SELECTORS["message_groups"])):
            groups.append(self._extract_group(group_index, group_element))

        logger.debug(f"Found {len(groups)} message groups in {match.lobby_url}")
        return groups

    def _extract_group(self, group_index: int, group_element) -> MessageGroup:
        author_elements = self.browser.find_elements(CSS_SELECTORS["group_author"], within=group_element)
        author = self.browser.element_text(author_elements[0]) if author_elements else ""

        messages = []
        message_elements = self.browser.find_elements(CSS_SELECTORS["group_messages"], within=group_element)
        for message_index, message_element in enumerate(message_elements):
            # Text first: the reveal click re-renders the message
            text = self.browser.element_text(message_element)
            raw_timestamp = self.browser.reveal_timestamp(
                message_element,
                CSS_SELECTORS["message_time"],
                CSS_SELECTORS["message_reveal"],
                relocate=lambda: self._locate_message(group_index, message_index),
            )
            messages.append(Message(text=text, timestamp=parse_timestamp(raw_timestamp)))

        return MessageGroup(author=author, messages=tuple(messages))

    def _locate_message(self, group_index: int, message_index: int):
        """Find a message again by its position in the lobby"""
        group_element = self.browser.find_elements(CSS_SELECTORS["message_groups"])[group_index]
        return self.browser.find_elements(CSS_SELECTORS["group_messages"], within=group_element)[message_index]
