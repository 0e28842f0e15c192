"""
Logging configuration for the Book Search API.

``setup_logging`` attaches a console handler (and optionally a file
handler) to the root logger the first time it is called.  On every call
it sets the level of the ``book_search_api`` logger tree and of the
client module, and caps chatty third-party loggers at ``WARNING`` so
catalog requests do not flood the log at ``DEBUG``.
"""

import logging
from pathlib import Path
from typing import Optional


APP_LOGGERS = ("book_search_api", "book_search_client")
QUIET_LOGGERS = ("urllib3", "multipart", "httpx")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Configure application logging.

    Parameters
    ----------
    level : str
        Level name for the application loggers (e.g. ``"DEBUG"``).
        Case insensitive; unknown names fall back to ``INFO``.
    logfile : Optional[str]
        Path to a file to log messages to.  If omitted, no file
        handler is added.
    """
    numeric_level = getattr(logging, str(level).upper(), logging.INFO)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    for name in APP_LOGGERS:
        logging.getLogger(name).setLevel(numeric_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    root = logging.getLogger()
    if root.handlers:
        # Handlers already attached (pytest, uvicorn, repeated create_app).
        return
    root.setLevel(numeric_level)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if logfile:
        file_handler = logging.FileHandler(Path(logfile).resolve(), encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
