"""
fieldfilter: configuration-driven search filters.

A Search is configured once with the fields a user may search on, then turns
user terms into a parameterized condition plus ordered bind values.
"""

from .errors import (
    FieldFilterError,
    ConfigurationError,
    BadSearchValue,
    UnknownSearchMode,
    UnknownSearch,
)
from .filters import Field, FieldSet, Pattern, ValueType, parse_fields_json
from .query import FilterFragment, Search, SearchMode, combine
from .registry import Registry, load_registry
from .log import configure_logging

__all__ = [
    "FieldFilterError",
    "ConfigurationError",
    "BadSearchValue",
    "UnknownSearchMode",
    "UnknownSearch",
    "Field",
    "FieldSet",
    "Pattern",
    "ValueType",
    "parse_fields_json",
    "FilterFragment",
    "Search",
    "SearchMode",
    "combine",
    "Registry",
    "load_registry",
    "configure_logging",
]
