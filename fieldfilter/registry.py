import json
import logging
import typing as t
from datetime import tzinfo
from pathlib import Path

import yaml

from . import settings
from .errors import ConfigurationError, UnknownSearch
from .filters import FIELDS_SCHEMA
from .query import FilterFragment, Search, SearchMode
from .validation import _validate_document

log = logging.getLogger(__name__)

SEARCHES_SCHEMA: dict[str, t.Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Search Definitions",
    "$defs": FIELDS_SCHEMA["$defs"],
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "searches": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "additionalProperties": False,
                "properties": {"fields": {"$ref": "#/$defs/Fields"}},
                "required": ["fields"],
            },
        },
    },
    "required": ["searches"],
}


class Registry:
    """Named searches, loaded once from a YAML or JSON definitions file."""

    def __init__(self, time_zone: t.Optional[tzinfo] = None):
        self.time_zone = time_zone
        self.searches: dict[str, Search] = {}

    def load(self, path: t.Optional[t.Union[str, Path]] = None) -> "Registry":
        path = Path(path) if path is not None else settings.searches_path()
        if not path.exists():
            raise ConfigurationError(f"Search definitions file not found: {path}", str(path))
        with path.open("r", encoding="utf-8") as f:
            try:
                if path.suffix.lower() in (".yaml", ".yml"):
                    cfg = yaml.safe_load(f)
                else:
                    cfg = json.load(f)
            except (yaml.YAMLError, json.JSONDecodeError) as e:
                log.warning("could not parse %s: %s", path, e)
                raise ConfigurationError(
                    f"Malformed search definitions file {path}: {e}", str(path)
                ) from e
        self.load_definitions(cfg)
        log.info("loaded %d searches from %s", len(self.searches), path)
        return self

    def load_definitions(self, cfg: t.Any) -> "Registry":
        _validate_document(cfg, SEARCHES_SCHEMA, what="search definitions")
        loaded: dict[str, Search] = {}
        for name, definition in cfg["searches"].items():
            loaded[name] = Search(definition["fields"], name=name, time_zone=self.time_zone)
        self.searches = loaded
        return self

    def get(self, name: str) -> Search:
        if name not in self.searches:
            raise UnknownSearch(name)
        return self.searches[name]

    def names(self) -> list[str]:
        return list(self.searches)

    def to_sql(
        self,
        name: str,
        params: t.Any,
        mode: t.Union[SearchMode, str] = SearchMode.SIMPLE,
        *,
        tz: t.Optional[tzinfo] = None,
    ) -> t.Optional[FilterFragment]:
        return self.get(name).to_sql(params, mode, tz=tz)


def load_registry(path: t.Optional[t.Union[str, Path]] = None) -> Registry:
    """Build a Registry from the environment: SEARCHES_FILE and SEARCH_TIME_ZONE."""
    settings.load_env()
    return Registry(time_zone=settings.search_time_zone()).load(path)
