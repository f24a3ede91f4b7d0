"""fieldfilter logging utilities.

The library only emits records on the ``fieldfilter`` logger; applications
that want the compact console format call :func:`configure_logging` once at
startup.
"""

from __future__ import annotations

import logging
from typing import Final, Optional

from . import settings

_LEVEL_ABBREV: Final[dict[int, str]] = {
    logging.DEBUG: "DEBG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERRO",
    logging.CRITICAL: "ERRO",
}


class _AbbrevLevelFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 - stdlib name
        record.levelabbr = _LEVEL_ABBREV.get(record.levelno, record.levelname[:4])
        return super().format(record)


log = logging.getLogger("fieldfilter")


def configure_logging(*, level: Optional[str] = None) -> logging.Logger:
    """Attach a console handler using ``mm-dd HH:MM:SS [LVL] message`` lines.

    Args:
        level: Logging level name (e.g. INFO, DEBUG). Defaults to
            FIELDFILTER_LOG_LEVEL (read after loading ``.env``). Unknown names
            fall back to INFO.

    Returns:
        The configured package logger.
    """
    if level is None:
        settings.load_env()
        level = settings.log_level()
    resolved_level = getattr(logging, (level or "INFO").upper(), logging.INFO)

    formatter = _AbbrevLevelFormatter(
        fmt="%(asctime)s [%(levelabbr)s] %(message)s",
        datefmt="%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    log.handlers.clear()
    log.addHandler(handler)
    log.setLevel(resolved_level)
    log.propagate = False
    return log
