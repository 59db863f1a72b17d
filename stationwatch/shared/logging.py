"""Logging configuration for StationWatch services."""

import logging
from pathlib import Path
from typing import List, Optional, Union

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Chatty third-party loggers, held at WARNING
QUIET_LOGGERS = ["paho", "pymysql"]


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    debug: bool = False,
    quiet_loggers: Optional[List[str]] = None,
) -> None:
    """Configure root logging for a service.

    The dashboard owns the terminal, so it logs to a file; the uplink
    logger runs under a supervisor and logs to stderr.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ...).
        log_file: Write to this file instead of stderr.
        debug: Force DEBUG, e.g. from the user's advanced settings.
        quiet_loggers: Extra logger names to hold at WARNING.
    """
    log_level = logging.DEBUG if debug else getattr(logging, level.upper(), logging.INFO)

    handlers: List[logging.Handler] = []
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    else:
        handlers.append(logging.StreamHandler())

    logging.basicConfig(level=log_level, format=DEFAULT_FORMAT, handlers=handlers, force=True)

    for logger_name in QUIET_LOGGERS + (quiet_loggers or []):
        logging.getLogger(logger_name).setLevel(logging.WARNING)
