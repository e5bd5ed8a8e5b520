"""
Logging setup for the paddle conditions service.

setup_logging() is called once by app.py / cli.py. It routes every module
logger (`logging.getLogger(__name__)`) to stdout, and optionally to a file,
with one line per record:

    2026-07-15 12:00:00 | WARNING  | pipeline | Forecast API failed for ...

Cache hits and upstream calls log at INFO, fallbacks at WARNING. HTTP
client and dev-server chatter is held at WARNING so it doesn't bury them.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

QUIET_LOGGERS = ("urllib3", "requests", "werkzeug")


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="a"))

    # force: cli.py and tests may configure more than once per process
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
