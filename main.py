"""
Toornament Lobby Watcher
Reports match lobbies of a tournament that have chat messages since a given time

Usage:
    python main.py --since "2024-03-05 14:00" --new-msg-output-file new.txt

Credentials are read from the environment or from .env / .env.local:
    ACCOUNT_USERNAME, ACCOUNT_PASSWORD, TOURNAMENT_ID

Requirements:
    - Selenium 4 (with Chrome installed)
    - BeautifulSoup4
    - rich
    - python-dotenv
"""

import argparse
import logging
import sys
from typing import List, Optional

from browser_manager import BrowserManager
from lobby_scraper import LobbyScraper
from pause_controller import KeyboardListener, PauseController, ShutdownManager
from scraper_config import INTERRUPT_KEY, PAUSE_KEY, ScraperConfig
from scraper_utils import ConfigurationError, setup_logging

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lobby-watcher",
        description="Report Toornament match lobbies with new messages.",
    )
    parser.add_argument(
        "--since",
        help="Since when should I report new messages in Lobbies? (YYYY-MM-DD [HH[:MM]])",
    )
    parser.add_argument(
        "--headless",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="run the browser without a window (default: yes)",
    )
    parser.add_argument(
        "--new-msg-output-file",
        help="path to file where lobbies with new messages should be saved to",
    )
    parser.add_argument(
        "--all-msg-output-file",
        help="path to file where lobbies with ALL messages should be saved to",
    )
    parser.add_argument(
        "--pause-on-new-messages-for",
        type=float,
        metavar="SECONDS",
        help="number of seconds to automatically pause on current lobby when it contains messages",
    )
    parser.add_argument(
        "--page-timeout",
        type=float,
        default=30.0,
        metavar="SECONDS",
        help="how long to wait for pages and elements before giving up (default: 30)",
    )
    parser.add_argument("--log-file", help="also write a debug log to this file")
    return parser


def print_header(config: ScraperConfig) -> None:
    print("=" * 70)
    print("Toornament Lobby Watcher")
    print("=" * 70)
    print(f"Tournament: {config.tournament_id}")
    print(f"New since:  {config.since.isoformat() if config.since else 'the beginning'}")
    print("=" * 70)
    print()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    ScraperConfig.load_environment()
    try:
        config = ScraperConfig.from_environment(args)
    except ConfigurationError as e:
        parser.error(str(e))

    setup_logging(config.log_file, secrets=(config.password,))
    print_header(config)

    pause_controller = PauseController(config.pause_poll_interval)
    browser_manager = BrowserManager(
        headless=config.headless,
        page_timeout=config.page_timeout,
        reveal_timeout=config.reveal_timeout,
    )
    keyboard_listener = KeyboardListener(pause_controller, pause_key=PAUSE_KEY, interrupt_key=INTERRUPT_KEY)
    shutdown_manager = ShutdownManager(browser_manager, keyboard_listener)
    shutdown_manager.install()

    scraper = LobbyScraper(
        config,
        browser_manager=browser_manager,
        pause_controller=pause_controller,
        keyboard_listener=keyboard_listener,
    )

    try:
        scraper.run()
    except KeyboardInterrupt:
        logger.info("\nInterrupted by user")
        return 130
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1
    finally:
        shutdown_manager.shutdown()

    return 0


if __name__ == "__main__":
    sys.exit(main())
