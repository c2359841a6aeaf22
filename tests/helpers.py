from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from models import Match, Message, MessageGroup
from scraper_config import ScraperConfig


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def group(author: str, *messages: tuple[str, datetime]) -> MessageGroup:
    return MessageGroup(
        author=author,
        messages=tuple(Message(text=text, timestamp=ts) for text, ts in messages),
    )


def match_list_html(matches: list[tuple[str, list[str]]], pages: Optional[list[str]] = None) -> str:
    links = "".join(
        f'<a href="{href}">'
        + "".join(f'<div class="opponent"><span class="name">{name}</span></div>' for name in players)
        + "</a>"
        for href, players in matches
    )
    pagination = ""
    if pages is not None:
        pagination = (
            '<div class="card-footer"><nav class="pagination-nav">'
            + "".join(f'<span class="page"><a href="?page={p}">{p}</a></span>' for p in pages)
            + "</nav></div>"
        )
    return (
        '<html><body><section class="content"><div class="card-content">'
        f'<div class="size-content">{links}</div>'
        f"</div>{pagination}</section></body></html>"
    )


class FakePageBrowser:
    """Page driver serving canned match list pages and recording calls"""

    def __init__(self, pages: dict[str, str], events: Optional[list] = None):
        self.pages = pages
        self.events = events if events is not None else []
        self.current_url: Optional[str] = None

    def navigate_to(self, url: str) -> None:
        self.events.append(("navigate", url))
        self.current_url = url

    def get_page_source(self) -> str:
        return self.pages[self.current_url]

    def close(self) -> None:
        self.events.append(("close",))


class FakeLobbyExtractor:
    def __init__(self, lobbies: dict[str, list[MessageGroup]], events: Optional[list] = None):
        self.lobbies = lobbies
        self.events = events if events is not None else []

    def extract(self, match: Match) -> list[MessageGroup]:
        self.events.append(("extract", match.url))
        return self.lobbies.get(match.url, [])


def make_config(**overrides) -> ScraperConfig:
    values = dict(username="user", password="secret-pass", tournament_id="42")
    values.update(overrides)
    return ScraperConfig(**values)
