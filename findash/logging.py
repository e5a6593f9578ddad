import logging
import sys
from pathlib import Path

import structlog

from .config import settings

# third-party loggers and the floor they are held at relative to LOG_LEVEL;
# apscheduler reports every job execution at INFO
_LIBRARY_FLOORS = {
    "apscheduler": logging.WARNING,
    "httpx": logging.WARNING,
    "uvicorn": logging.NOTSET,
    "uvicorn.error": logging.NOTSET,
    "uvicorn.access": logging.NOTSET,
}


def _handlers(level: int, error_file: str) -> list[logging.Handler]:
    plain = logging.Formatter("%(message)s")
    stdout = logging.StreamHandler(sys.stdout)
    stdout.setLevel(level)
    stdout.setFormatter(plain)
    out = [stdout]
    if error_file:
        Path(error_file).parent.mkdir(parents=True, exist_ok=True)
        errors = logging.FileHandler(error_file)
        errors.setLevel(logging.ERROR)
        errors.setFormatter(plain)
        out.append(errors)
    return out


def setup_logging(level: str | None = None, service: str = "findash", error_file: str | None = None) -> int:
    """Route stdlib and structlog output as one JSON line per event.

    Every event carries ``service``; the batch and refresh loggers add their
    own fields. Returns the numeric level in effect.
    """
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.DEBUG)
    for handler in _handlers(log_level, (settings.log_error_file if error_file is None else error_file).strip()):
        root.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=False,
    )
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service=service)

    for name, floor in _LIBRARY_FLOORS.items():
        logging.getLogger(name).setLevel(max(log_level, floor))
    return log_level
