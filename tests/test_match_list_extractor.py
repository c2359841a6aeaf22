from __future__ import annotations

from helpers import match_list_html
from match_list_extractor import parse_matches, parse_page_count, strip_query

BASE = "https://organizer.toornament.com/tournaments/42/matches/?page=1"


def test_page_count_is_highest_link() -> None:
    html = match_list_html([], pages=["2", "1", "3"])
    assert parse_page_count(html) == 3


def test_page_count_defaults_to_one_without_pagination() -> None:
    assert parse_page_count(match_list_html([])) == 1


def test_page_count_ignores_non_numeric_links() -> None:
    html = match_list_html([], pages=["1", "2", "next", "»"])
    assert parse_page_count(html) == 2


def test_strip_query() -> None:
    assert strip_query("https://x/matches/42?page=1") == "https://x/matches/42"
    assert strip_query("https://x/matches/42") == "https://x/matches/42"


def test_matches_in_page_order_with_players() -> None:
    html = match_list_html([
        ("https://x/matches/42/?page=1", ["Team A", "Team B"]),
        ("https://x/matches/43/?page=1", ["Team C"]),
        ("https://x/matches/44/", []),
    ])
    matches = parse_matches(html, BASE)
    assert [m.url for m in matches] == [
        "https://x/matches/42/",
        "https://x/matches/43/",
        "https://x/matches/44/",
    ]
    assert matches[0].players == ("Team A", "Team B")
    assert matches[1].players == ("Team C",)
    assert matches[2].players == ()


def test_relative_links_resolve_against_page_url() -> None:
    html = match_list_html([("/tournaments/42/matches/7/?page=1", ["A", "B"])])
    matches = parse_matches(html, BASE)
    assert matches[0].url == "https://organizer.toornament.com/tournaments/42/matches/7/"
    assert matches[0].lobby_url == "https://organizer.toornament.com/tournaments/42/matches/7/lobby"


def test_links_outside_match_list_are_ignored() -> None:
    html = match_list_html([("https://x/matches/1/", ["A"])], pages=["1", "2"])
    assert len(parse_matches(html, BASE)) == 1
