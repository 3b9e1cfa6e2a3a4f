"""
Logging setup for the Parently API.

Every module logs through `get_logger(__name__)`; services that are
classes mix in `LoggerMixin`. Output goes to stdout and, unless
LOG_TO_FILE is false, to logs/parently_YYYYMMDD.log.

Log lines never carry message bodies or check-in notes, only ids
(truncated) and counts.
"""
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Client libraries that log every HTTP round trip at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "urllib3", "groq", "google")

_configured = False


def setup_logging(
    log_level: str = "INFO",
    log_dir: Optional[Path] = None,
    log_to_file: bool = True,
) -> logging.Logger:
    """
    Attach console (and optionally file) handlers to the root logger.

    Safe to call more than once; only the first call installs handlers.

    Args:
        log_level: Console threshold (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Where the daily file goes. Defaults to 'logs/' next to the package.
        log_to_file: Set False in tests and read-only containers

    Returns:
        The root logger
    """
    global _configured

    root = logging.getLogger()
    if _configured:
        return root

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    console.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    root.setLevel(logging.DEBUG)
    root.addHandler(console)

    log_file = None
    if log_to_file:
        log_dir = log_dir or Path(__file__).resolve().parent.parent.parent / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        log_file = log_dir / f"parently_{datetime.now():%Y%m%d}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.DEBUG)
        root.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True
    root.debug(f"Parently logging ready (console={log_level}, file={log_file})")
    return root


def get_logger(name: str) -> logging.Logger:
    """
    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Check-in recorded")
        2024-01-15 10:30:45 | INFO     | parently.api.routes.parent:67 | Check-in recorded
    """
    return logging.getLogger(name)


class LoggerMixin:
    """Gives a class a `self.logger` named after the class."""

    @property
    def logger(self) -> logging.Logger:
        return get_logger(type(self).__name__)
