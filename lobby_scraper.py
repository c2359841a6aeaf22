"""Toornament Lobby Watcher - crawl a tournament's matches and report lobby chat"""

import logging
import time
from typing import Callable, Optional

from browser_manager import BrowserManager
from lobby_extractor import LobbyExtractor
from match_list_extractor import parse_matches, parse_page_count
from message_classifier import classify
from models import CrawlState, Match
from pause_controller import KeyboardListener, PauseController
from report_writer import ReportWriter
from scraper_config import CSS_SELECTORS, LOGIN_BUTTON_XPATH, LOGIN_URL, ScraperConfig

logger = logging.getLogger(__name__)


class LobbyScraper:
    """Logs in, walks every match list page and reports each match lobby"""

    def __init__(
        self,
        config: ScraperConfig,
        browser_manager: Optional[BrowserManager] = None,
        pause_controller: Optional[PauseController] = None,
        report_writer: Optional[ReportWriter] = None,
        lobby_extractor: Optional[LobbyExtractor] = None,
        keyboard_listener: Optional[KeyboardListener] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize scraper

        Args:
            config: ScraperConfig instance
            browser_manager: Page driver (created from config if None)
            pause_controller: Shared pause flag (created if None)
            report_writer: Report sinks (created from config if None)
            lobby_extractor: Lobby reader (created on browser_manager if None)
            keyboard_listener: Started after login when given
            sleep: Used for the pause after a lobby with messages
        """
        self.config = config
        self.browser_manager = browser_manager or BrowserManager(
            headless=config.headless,
            page_timeout=config.page_timeout,
            reveal_timeout=config.reveal_timeout,
        )
        self.pause_controller = pause_controller or PauseController(config.pause_poll_interval)
        self.report_writer = report_writer or ReportWriter(
            new_msg_output_file=config.new_msg_output_file,
            all_msg_output_file=config.all_msg_output_file,
        )
        self.lobby_extractor = lobby_extractor or LobbyExtractor(self.browser_manager)
        self.keyboard_listener = keyboard_listener
        self.sleep = sleep

        self.state = CrawlState(since=config.since, pause_controller=self.pause_controller)

    def run(self) -> None:
        """Start the browser, log in and crawl every page

        Errors propagate; the caller owns browser teardown.
        """
        self.browser_manager.setup_driver()
        self.login()

        if self.keyboard_listener:
            self.keyboard_listener.start()

        self.report_writer.open()
        self.crawl()
        self.report_writer.close()

        logger.info(
            f"Visited {self.state.lobbies_visited} lobbies, "
            f"{self.state.lobbies_new} with new messages"
        )
        logger.info("That's all folks!")

    def login(self) -> None:
        """Sign in on the account site and wait until it redirects away from the login form"""
        logger.info(f"\n\nLogging in to https://account.toornament.com/ as {self.config.username}...")
        browser = self.browser_manager
        browser.navigate_to(LOGIN_URL)
        browser.click(CSS_SELECTORS["login_username"])
        browser.type_text(CSS_SELECTORS["login_username"], self.config.username)
        browser.click(CSS_SELECTORS["login_password"])
        browser.type_text(CSS_SELECTORS["login_password"], self.config.password)
        browser.click_xpath(LOGIN_BUTTON_XPATH)
        browser.wait_for_url_change(LOGIN_URL)
        logger.info("[OK] Logged in")

    def crawl(self) -> None:
        """Process every match on pages 1..max_page in order

        The page count is read once, from page 1.
        """
        state = self.state
        page = 1

        while page <= state.max_page:
            self.wait_if_paused()
            state.current_page = page

            page_url = self.config.page_url(page)
            self.browser_manager.navigate_to(page_url)
            page_source = self.browser_manager.get_page_source()

            if not state.page_count_known:
                state.set_max_page(parse_page_count(page_source))
                logger.info(f"Page count: {state.max_page}")

            if self.config.headless:
                logger.info(f"Checking page {page}...\n")

            for match in parse_matches(page_source, page_url):
                self.process_match(match)

            page += 1

    def process_match(self, match: Match) -> None:
        """Extract, classify and report one lobby

        Waits between lobbies while paused, and sleeps
        pause_on_new_messages_for seconds after a lobby with messages.
        """
        self.wait_if_paused()

        groups = self.lobby_extractor.extract(match)
        result = classify(match, groups, self.state.since)
        self.report_writer.report(result)
        logger.debug(f"{match.url}: {result.message_count} messages, new={result.is_new}")

        self.state.lobbies_visited += 1
        if result.is_new:
            self.state.lobbies_new += 1

        if groups and self.config.pause_on_new_messages_for:
            logger.debug(f"Pausing {self.config.pause_on_new_messages_for}s on {match.url}")
            self.sleep(self.config.pause_on_new_messages_for)

        self.wait_if_paused()

    def wait_if_paused(self) -> None:
        if self.state.paused:
            logger.debug(f"Paused on page {self.state.current_page}")
        self.pause_controller.wait_if_paused()
