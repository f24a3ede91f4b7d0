"""
Environment configuration for fieldfilter.

Values are read from the process environment. Importing this module has no
side effects; entry points such as ``load_registry`` call :func:`load_env`
first so a ``.env`` file in the working directory is honored.
"""

import os
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigurationError

DEFAULT_SEARCHES_FILE = "config/searches.yaml"


def load_env() -> None:
    """Load ``.env`` from the working directory; variables already set are kept."""
    load_dotenv(find_dotenv(usecwd=True))


def searches_path() -> Path:
    return Path(os.getenv("SEARCHES_FILE", DEFAULT_SEARCHES_FILE))


def log_level() -> str:
    return os.getenv("FIELDFILTER_LOG_LEVEL", "INFO")


def search_time_zone() -> Optional[ZoneInfo]:
    """The zone used to read date/time search terms, or None for naive parsing."""
    name = os.getenv("SEARCH_TIME_ZONE", "").strip()
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown SEARCH_TIME_ZONE: {name}", name) from e
