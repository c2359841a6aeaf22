"""Utility functions for the Toornament Lobby Watcher"""

import io
import logging
import os
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

SINCE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:[T ](\d{1,2})(?::(\d{2}))?)?$")
SINCE_ERROR_MESSAGE = (
    "Datetime in format: `YYYY-MM-DD` or `YYYY-MM-DD HH:MM` "
    "or empty value to check from beginning."
)
REPORT_DATE_FORMAT = "%Y-%m-%d %H:%M"


class ConfigurationError(Exception):
    """Invalid or missing configuration, detected before the browser starts"""
    pass


class AnonymizingFormatter(logging.Formatter):
    """Formatter that hides the home directory and any registered secrets"""

    def __init__(self, fmt=None, datefmt=None, style='%', secrets: Iterable[str] = ()):
        super().__init__(fmt, datefmt, style)
        self._home_dir = str(Path.home())
        # Longest first so a secret containing another is fully masked
        self._secrets = sorted({s for s in secrets if s}, key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        for secret in self._secrets:
            formatted = formatted.replace(secret, "***")
        if self._home_dir:
            formatted = formatted.replace(self._home_dir, "<HOME_DIR>")
            formatted = formatted.replace(self._home_dir.replace("\\", "/"), "<HOME_DIR>")
        return formatted


def setup_logging(log_file: Optional[str] = None, secrets: Iterable[str] = ()) -> None:
    """Configure logging for the watcher

    Clears an existing log file at startup so only the current session is logged.
    Secrets (e.g. the account password) are masked in every handler.
    """
    if log_file:
        log_path = Path(log_file)
        if log_path.exists():
            try:
                log_path.unlink()
                print(f"Cleared previous log file: {log_file}")
            except OSError as e:
                print(f"Warning: Could not clear log file: {e}")

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    secrets = tuple(secrets)

    # Force UTF-8 output on Windows console
    if sys.platform == 'win32' and sys.stdout and hasattr(sys.stdout, 'buffer'):
        sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8', errors='replace')

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    if sys.stdout:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(AnonymizingFormatter("%(message)s", secrets=secrets))
        root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(AnonymizingFormatter(log_format, secrets=secrets))
        root_logger.addHandler(file_handler)

    # Suppress verbose selenium logging
    logging.getLogger('selenium').setLevel(logging.WARNING)
    logging.getLogger('selenium.webdriver.remote').setLevel(logging.ERROR)
    logging.getLogger('urllib3').setLevel(logging.WARNING)

    logger.debug("Logging configured")


def parse_since(value: str) -> datetime:
    """Parse the --since watermark

    A bare date is midnight UTC; a date with an hour (and optional minutes)
    is interpreted in local time.

    Raises:
        ConfigurationError: if the value is malformed or not a real date
    """
    match = SINCE_PATTERN.match(value.strip())
    if not match:
        raise ConfigurationError(f"--since argument: {SINCE_ERROR_MESSAGE}")

    year, month, day, hour, minute = match.groups()
    try:
        if hour is None:
            return datetime(int(year), int(month), int(day), tzinfo=timezone.utc)
        naive = datetime(int(year), int(month), int(day), int(hour), int(minute or 0))
    except ValueError as e:
        raise ConfigurationError(f"--since argument: {e}") from e
    return naive.astimezone()


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 ``datetime`` attribute into an aware datetime (UTC if no offset)"""
    parsed = date_parser.isoparse(value.strip())
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_message_date(timestamp: datetime) -> str:
    """Render a message timestamp as ``YYYY-MM-DD HH:MM`` in UTC"""
    return timestamp.astimezone(timezone.utc).strftime(REPORT_DATE_FORMAT)


def check_output_path(path: str, label: str) -> Path:
    """Normalize an output path and make sure it can be written

    The file is opened and closed once; if it did not exist before it is
    removed again.

    Returns:
        The absolute path

    Raises:
        ConfigurationError: if the file cannot be opened for writing
    """
    normalized = Path(os.path.abspath(os.path.expanduser(path)))
    existed = normalized.exists()

    try:
        with open(normalized, "a", encoding="utf-8"):
            pass
        if not existed:
            normalized.unlink()
    except OSError as e:
        logger.debug(f"Write probe failed for {normalized}: {e}")
        raise ConfigurationError(
            f"The given file path for {label} is not writeable: {normalized}"
        ) from e

    return normalized
