"""Configuration and constants for the Toornament Lobby Watcher"""

import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from scraper_utils import ConfigurationError, check_output_path, parse_since

# Site addresses
LOGIN_URL = "https://account.toornament.com/en_US/login/"
ORGANIZER_MATCHES_URL = "https://organizer.toornament.com/tournaments/{tournament_id}/matches/?page={page}"
LOBBY_SUFFIX = "lobby"

# Environment variables
ENV_USERNAME = "ACCOUNT_USERNAME"
ENV_PASSWORD = "ACCOUNT_PASSWORD"
ENV_TOURNAMENT_ID = "TOURNAMENT_ID"
ENV_FILES = (".env.local", ".env")  # earlier files take precedence

# CSS Selectors
CSS_SELECTORS = {
    "login_username": 'input[name="_username"]',
    "login_password": 'input[name="_password"]',
    "pagination_links": ".card-footer .pagination-nav .page a",
    "match_links": "section.content .card-content .size-content a",
    "opponent_names": ".opponent .name",
    "lobby_loader": "section.content .card-content .grid-flex .loader",
    "message_groups": "section.content .card-content .grid-flex .message-group",
    "group_author": ".author",
    "group_messages": ".message",
    "message_time": ".state time",
    "message_reveal": "a",
}

# XPath for the login submit button (matched by its visible label)
LOGIN_BUTTON_XPATH = "//*[self::button or self::input or self::a][normalize-space()='Log in' or @value='Log in']"

PAUSE_KEY = " "
INTERRUPT_KEY = "\x03"


@dataclass
class ScraperConfig:
    """Configuration for a lobby watcher run"""

    username: str
    password: str
    tournament_id: str
    since: Optional[datetime] = None  # None checks from the beginning of time
    headless: bool = True
    new_msg_output_file: Optional[Path] = None
    all_msg_output_file: Optional[Path] = None
    pause_on_new_messages_for: Optional[float] = None
    page_timeout: float = 30.0
    reveal_timeout: float = 5.0
    pause_poll_interval: float = 0.1
    log_file: Optional[str] = None

    def page_url(self, page: int) -> str:
        return ORGANIZER_MATCHES_URL.format(tournament_id=self.tournament_id, page=page)

    @staticmethod
    def load_environment(base_dir: Optional[Path] = None) -> None:
        """Load .env files from base_dir (defaults to the working directory)

        Variables already set in the environment are never overridden.
        """
        base = Path(base_dir) if base_dir else Path.cwd()
        for name in ENV_FILES:
            env_file = base / name
            if env_file.exists():
                load_dotenv(env_file, override=False)

    @classmethod
    def from_environment(cls, args) -> "ScraperConfig":
        """Create config from environment credentials and parsed CLI arguments

        Raises:
            ConfigurationError: if credentials are missing or an option is invalid
        """
        username = os.getenv(ENV_USERNAME)
        password = os.getenv(ENV_PASSWORD)
        tournament_id = os.getenv(ENV_TOURNAMENT_ID)

        missing = [
            name for name, value in (
                (ENV_USERNAME, username),
                (ENV_PASSWORD, password),
                (ENV_TOURNAMENT_ID, tournament_id),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                "Please make sure the .env.local file exists and contains all credentials "
                f"(missing: {', '.join(missing)})."
            )

        since = parse_since(args.since) if args.since else None

        pause_for = args.pause_on_new_messages_for
        if pause_for is not None and pause_for < 0:
            raise ConfigurationError("--pause-on-new-messages-for must not be negative")

        if args.page_timeout <= 0:
            raise ConfigurationError("--page-timeout must be positive")

        new_file = None
        if args.new_msg_output_file:
            new_file = check_output_path(args.new_msg_output_file, "new messages")

        all_file = None
        if args.all_msg_output_file:
            all_file = check_output_path(args.all_msg_output_file, "all messages")

        return cls(
            username=username,
            password=password,
            tournament_id=tournament_id,
            since=since,
            headless=args.headless,
            new_msg_output_file=new_file,
            all_msg_output_file=all_file,
            pause_on_new_messages_for=pause_for or None,
            page_timeout=args.page_timeout,
            log_file=args.log_file,
        )
