"""
Logging setup for PDF Joiner.

Every line written to the console or app.log passes through
SanitizedFormatter, so file paths stay useful for support while the user
name in home directories is replaced with <user>.
"""
import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

LOGGER_NAME = "pdf_joiner"

# C:\Users\<name>\... on Windows, /home/<name>/... and /Users/<name>/... elsewhere
_HOME_PATTERNS = (
    re.compile(r'([A-Za-z]:\\Users\\)([^\\]+)(\\|$)', re.IGNORECASE),
    re.compile(r'(/home/|/Users/)([^/]+)(/|$)'),
)

# Request fields that never go to the log
PAYLOAD_EXCLUDED_KEYS = frozenset({'image_url', 'on_progress'})

MAX_LOGGED_ITEMS = 20


def redact_user_paths(text: str) -> str:
    """Replace the user name segment of home directory paths with <user>."""
    for pattern in _HOME_PATTERNS:
        text = pattern.sub(r'\1<user>\3', text)
    return text


class SanitizedFormatter(logging.Formatter):
    """
    Formatter that redacts user names from the whole record.

    The formatted text is redacted after formatting, so paths inside
    exception tracebacks and Ghostscript output are covered too.
    """

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        redact_usernames: bool = True
    ):
        super().__init__(fmt, datefmt)
        self.redact_usernames = redact_usernames

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        if self.redact_usernames:
            text = redact_user_paths(text)
        return text


def setup_logging(
    log_level: int = logging.INFO,
    log_file: Optional[Path] = None,
    redact_usernames: bool = True
) -> logging.Logger:
    """
    Configure the application logger.

    Args:
        log_level: Logging level for the logger and its handlers
        log_file: app.log location; console only when None
        redact_usernames: Whether to redact user names from paths

    Returns:
        The pdf_joiner logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)
    logger.handlers.clear()

    formatter = SanitizedFormatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        redact_usernames=redact_usernames
    )

    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def sanitize_path_for_log(path) -> str:
    """Path (or string) with the user name redacted."""
    return redact_user_paths(str(path))


def safe_log_dict(
    data: Dict[str, Any],
    exclude_keys: Iterable[str] = PAYLOAD_EXCLUDED_KEYS
) -> Dict[str, Any]:
    """
    Copy of a request payload that is safe and short enough to log.

    Image data URLs and progress callbacks are redacted, paths are
    sanitized and long page sequences are summarised by their length.
    """
    excluded = set(exclude_keys)
    result = {}
    for key, value in data.items():
        if key in excluded:
            result[key] = '<redacted>'
        elif isinstance(value, Path):
            result[key] = sanitize_path_for_log(value)
        elif isinstance(value, (list, tuple)) and len(value) > MAX_LOGGED_ITEMS:
            result[key] = f'<{type(value).__name__} of length {len(value)}>'
        else:
            result[key] = value
    return result


def get_logger() -> logging.Logger:
    """The application logger; console logging is set up on first use."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        setup_logging()
    return logger
