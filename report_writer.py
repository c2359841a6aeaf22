"""Console and file reporting for visited lobbies"""

import logging
from pathlib import Path
from typing import IO, List, Optional, Tuple

from rich.console import Console
from rich.text import Text

from models import LobbyResult
from scraper_utils import format_message_date

logger = logging.getLogger(__name__)

LINE_ENDING = "\r\n"
NO_MESSAGES_LINE = "  -- No messages here --"

# Console styles per line kind
STYLES = {
    "header": "reverse",
    "url": "",
    "author": "underline green",
    "date": "grey50",
    "text": "white",
    "placeholder": "dim",
    "blank": "",
}


def render_block(result: LobbyResult) -> List[Tuple[str, str]]:
    """Lines of a lobby block as (kind, text) pairs"""
    lines = [
        ("header", "Lobby: " + ", ".join(result.match.players)),
        ("url", result.match.url),
    ]

    if not result.groups:
        lines.append(("placeholder", NO_MESSAGES_LINE))

    for group in result.groups:
        lines.append(("author", group.author))
        for message in group.messages:
            lines.append(("date", f"  {format_message_date(message.timestamp)}"))
            lines.append(("text", f"  {message.text}"))
            lines.append(("blank", ""))

    lines.append(("blank", ""))
    return lines


def render_lobby(result: LobbyResult) -> List[str]:
    """Plain text lines of a lobby block, as written to the report files"""
    return [text for _, text in render_block(result)]


class ReportWriter:
    """Writes lobby blocks to the console, the "new" file and the "all" file

    Every lobby goes to the "all" file. Only new lobbies go to the console
    and the "new" file.
    """

    def __init__(
        self,
        new_msg_output_file: Optional[Path] = None,
        all_msg_output_file: Optional[Path] = None,
        console: Optional[Console] = None,
    ):
        """Initialize report writer

        Args:
            new_msg_output_file: Path for lobbies with new messages (disabled if None)
            all_msg_output_file: Path for every lobby (disabled if None)
            console: Rich console for new lobbies
        """
        self.new_msg_output_file = new_msg_output_file
        self.all_msg_output_file = all_msg_output_file
        self.console = console or Console(highlight=False)
        self._new_file: Optional[IO[str]] = None
        self._all_file: Optional[IO[str]] = None

    def open(self) -> None:
        """Open configured report files, truncating them"""
        if self.new_msg_output_file:
            self._new_file = self._open_file(self.new_msg_output_file)
        if self.all_msg_output_file:
            self._all_file = self._open_file(self.all_msg_output_file)

    @staticmethod
    def _open_file(path: Path) -> IO[str]:
        logger.info(f"Writing report to {path}")
        # Line buffered: each CRLF-terminated line reaches the file as it is written
        return open(path, "w", encoding="utf-8", newline="", buffering=1)

    def report(self, result: LobbyResult) -> None:
        """Write one lobby block to every sink it belongs in"""
        block = render_block(result)

        if self._all_file:
            self._write_lines(self._all_file, block)

        if result.is_new:
            self._print_block(block)
            if self._new_file:
                self._write_lines(self._new_file, block)

    def _print_block(self, block: List[Tuple[str, str]]) -> None:
        for kind, text in block:
            self.console.print(Text(text, style=STYLES[kind]))

    @staticmethod
    def _write_lines(handle: IO[str], block: List[Tuple[str, str]]) -> None:
        for _, text in block:
            handle.write(text + LINE_ENDING)

    def close(self) -> None:
        """Close report files; later calls do nothing"""
        for attr in ("_new_file", "_all_file"):
            handle = getattr(self, attr)
            if handle:
                setattr(self, attr, None)
                handle.close()

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
