from __future__ import annotations

import signal
import threading

import pytest

from helpers import FakeLobbyExtractor, FakePageBrowser, group, make_config, match_list_html, utc
from lobby_scraper import LobbyScraper
from pause_controller import PauseController, ShutdownManager
from report_writer import ReportWriter
from scraper_config import CSS_SELECTORS, LOGIN_BUTTON_XPATH, LOGIN_URL

MATCH_A = "https://organizer.toornament.com/tournaments/42/matches/1/"
MATCH_B = "https://organizer.toornament.com/tournaments/42/matches/2/"


def _page_url(page: int) -> str:
    return make_config().page_url(page)


class _RecordingPause(PauseController):
    def __init__(self, events: list) -> None:
        super().__init__(poll_interval=0.01)
        self.events = events

    def wait_if_paused(self) -> None:
        self.events.append(("yield",))
        super().wait_if_paused()


def _scraper(pages, lobbies, events, tmp_path=None, console=None, **config_overrides):
    config_values = dict(since=utc(2024, 3, 1))
    if tmp_path is not None:
        config_values.update(
            new_msg_output_file=tmp_path / "new.txt",
            all_msg_output_file=tmp_path / "all.txt",
        )
    config_values.update(config_overrides)
    config = make_config(**config_values)
    writer = ReportWriter(config.new_msg_output_file, config.all_msg_output_file, console=console)
    return LobbyScraper(
        config,
        browser_manager=FakePageBrowser(pages, events),
        pause_controller=_RecordingPause(events),
        report_writer=writer,
        lobby_extractor=FakeLobbyExtractor(lobbies, events),
        sleep=lambda seconds: events.append(("sleep", seconds)),
    )


def test_new_and_old_lobbies_are_routed(tmp_path, console, console_buffer) -> None:
    pages = {_page_url(1): match_list_html([(MATCH_A + "?page=1", ["A1", "A2"]), (MATCH_B + "?page=1", ["B1", "B2"])])}
    lobbies = {
        MATCH_A: [group("Alice", ("old news", utc(2024, 2, 1, 10)))],
        MATCH_B: [group("Bob", ("fresh", utc(2024, 3, 2, 10)))],
    }
    scraper = _scraper(pages, lobbies, [], tmp_path, console)

    scraper.report_writer.open()
    scraper.crawl()
    scraper.report_writer.close()

    console_text = console_buffer.getvalue()
    new_text = (tmp_path / "new.txt").read_text(encoding="utf-8")
    all_text = (tmp_path / "all.txt").read_text(encoding="utf-8")

    assert "Lobby: B1, B2" in console_text and "Lobby: A1, A2" not in console_text
    assert "Lobby: B1, B2" in new_text and "Lobby: A1, A2" not in new_text
    assert all_text.index("Lobby: A1, A2") < all_text.index("Lobby: B1, B2")
    assert scraper.state.lobbies_visited == 2
    assert scraper.state.lobbies_new == 1


def test_page_count_read_once_from_first_page() -> None:
    events: list = []
    pages = {
        _page_url(1): match_list_html([], pages=["2", "1", "3"]),
        _page_url(2): match_list_html([], pages=["1", "2", "3", "4", "5"]),
        _page_url(3): match_list_html([]),
    }
    scraper = _scraper(pages, {}, events)
    scraper.crawl()

    navigations = [e[1] for e in events if e[0] == "navigate"]
    assert navigations == [_page_url(1), _page_url(2), _page_url(3)]
    assert scraper.state.max_page == 3
    assert scraper.state.current_page == 3


def test_single_page_without_pagination() -> None:
    events: list = []
    scraper = _scraper({_page_url(1): match_list_html([(MATCH_A, ["A"])])}, {}, events)
    scraper.crawl()
    assert [e for e in events if e[0] == "navigate"] == [("navigate", _page_url(1))]
    assert ("extract", MATCH_A) in events


def test_yield_points_surround_every_step() -> None:
    events: list = []
    pages = {_page_url(1): match_list_html([(MATCH_A, ["A"]), (MATCH_B, ["B"])])}
    scraper = _scraper(pages, {}, events)
    scraper.crawl()

    assert events == [
        ("yield",),
        ("navigate", _page_url(1)),
        ("yield",),
        ("extract", MATCH_A),
        ("yield",),
        ("yield",),
        ("extract", MATCH_B),
        ("yield",),
    ]


def test_pause_after_lobby_with_messages() -> None:
    events: list = []
    pages = {_page_url(1): match_list_html([(MATCH_A, ["A"]), (MATCH_B, ["B"])])}
    lobbies = {MATCH_A: [group("Alice", ("old", utc(2020, 1, 1)))]}
    scraper = _scraper(pages, lobbies, events, pause_on_new_messages_for=2.5)
    scraper.crawl()

    sleeps = [e for e in events if e[0] == "sleep"]
    assert sleeps == [("sleep", 2.5)]
    assert events.index(("sleep", 2.5)) < events.index(("extract", MATCH_B))


def test_no_navigation_while_paused() -> None:
    events: list = []
    pages = {_page_url(1): match_list_html([(MATCH_A, ["A"])])}
    scraper = _scraper(pages, {}, events)
    scraper.pause_controller.pause()

    thread = threading.Thread(target=scraper.crawl, daemon=True)
    thread.start()
    thread.join(0.3)

    assert thread.is_alive()
    assert not [e for e in events if e[0] in ("navigate", "extract")]

    scraper.pause_controller.resume()
    thread.join(2)
    assert not thread.is_alive()
    assert [e[0] for e in events if e[0] in ("navigate", "extract")] == ["navigate", "extract"]


def test_no_watermark_reports_every_lobby_with_messages(console, console_buffer) -> None:
    events: list = []
    pages = {_page_url(1): match_list_html([(MATCH_A, ["A"]), (MATCH_B, ["B"])])}
    lobbies = {MATCH_A: [group("Alice", ("ancient", utc(2001, 1, 1)))]}
    scraper = _scraper(pages, lobbies, events, console=console, since=None)
    scraper.crawl()

    assert "Lobby: A" in console_buffer.getvalue()
    assert "Lobby: B" not in console_buffer.getvalue()


def test_signal_mid_crawl_closes_browser_once_and_stops() -> None:
    events: list = []
    pages = {
        _page_url(1): match_list_html([(MATCH_A, ["A"]), (MATCH_B, ["B"])], pages=["1", "2"]),
        _page_url(2): match_list_html([]),
    }
    scraper = _scraper(pages, {}, events)
    manager = ShutdownManager(scraper.browser_manager)

    class _SignalledExtractor(FakeLobbyExtractor):
        def extract(self, match):
            groups = super().extract(match)
            manager._handle_signal(signal.SIGTERM, None)
            return groups

    scraper.lobby_extractor = _SignalledExtractor({}, events)

    with pytest.raises(SystemExit):
        scraper.crawl()
    manager.shutdown()

    assert events.count(("close",)) == 1
    after_extract = events[events.index(("extract", MATCH_A)) + 1:]
    assert after_extract == [("close",)]


def test_login_fills_form_and_waits_for_redirect() -> None:
    calls: list = []

    class _LoginBrowser:
        def __getattr__(self, name):
            return lambda *args: calls.append((name, *args))

    scraper = LobbyScraper(make_config(), browser_manager=_LoginBrowser(), lobby_extractor=FakeLobbyExtractor({}))
    scraper.login()

    assert calls == [
        ("navigate_to", LOGIN_URL),
        ("click", CSS_SELECTORS["login_username"]),
        ("type_text", CSS_SELECTORS["login_username"], "user"),
        ("click", CSS_SELECTORS["login_password"]),
        ("type_text", CSS_SELECTORS["login_password"], "secret-pass"),
        ("click_xpath", LOGIN_BUTTON_XPATH),
        ("wait_for_url_change", LOGIN_URL),
    ]
