"""Data model for the Toornament Lobby Watcher"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from pause_controller import PauseController
from scraper_config import LOBBY_SUFFIX


@dataclass(frozen=True)
class Match:
    """A scheduled match as listed on a tournament's match page"""

    url: str  # lobby base address, query string stripped
    players: Tuple[str, ...] = ()

    @property
    def lobby_url(self) -> str:
        return f"{self.url}{LOBBY_SUFFIX}"


@dataclass(frozen=True)
class Message:
    """One chat line in a lobby"""

    text: str
    timestamp: datetime


@dataclass(frozen=True)
class MessageGroup:
    """A contiguous run of messages from one author"""

    author: str
    messages: Tuple[Message, ...] = ()


@dataclass(frozen=True)
class LobbyResult:
    """Outcome of visiting one match lobby"""

    match: Match
    groups: Tuple[MessageGroup, ...]
    is_new: bool

    @property
    def message_count(self) -> int:
        return sum(len(group.messages) for group in self.groups)


@dataclass
class CrawlState:
    """Mutable state of a single crawl run

    ``max_page`` is set once from the first page's pagination links.
    The paused flag belongs to the pause controller; this object only
    exposes it.
    """

    since: Optional[datetime]
    pause_controller: PauseController
    current_page: int = 0
    max_page: int = 1
    lobbies_visited: int = 0
    lobbies_new: int = 0
    page_count_known: bool = field(default=False, repr=False)

    @property
    def paused(self) -> bool:
        return self.pause_controller.is_paused

    def set_max_page(self, max_page: int) -> None:
        if self.page_count_known:
            return
        self.max_page = max(1, max_page)
        self.page_count_known = True

