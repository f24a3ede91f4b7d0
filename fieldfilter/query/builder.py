from __future__ import annotations
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import tzinfo
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union
import logging

from ..errors import BadSearchValue, ConfigurationError, UnknownSearchMode
from ..filters import PLACEHOLDER, Field, FieldSet
from ..validation import is_blank, _term_value

log = logging.getLogger(__name__)


class SearchMode(str, Enum):
    SIMPLE = "simple"
    FIELD = "field"


class LogicalOperator(str, Enum):
    AND = "AND"
    OR = "OR"


# -----------------------------------------------------------------------------
# Fragment
# -----------------------------------------------------------------------------

@dataclass
class FilterFragment:
    """
    A condition with ``?`` placeholders and the values to bind to them, in
    left-to-right order.
    """
    sql: str
    params: List[Any] = field(default_factory=list)

    def __iter__(self) -> Iterator[Any]:
        # [sql, bind1, bind2, ...]
        yield self.sql
        yield from self.params

    def to_where(self) -> str:
        return f"WHERE {self.sql}"

    def render(
        self,
        paramstyle: str = "qmark",
        *,
        prefix: str = "p",
        start_index: int = 1,
    ) -> Tuple[str, Union[List[Any], Dict[str, Any]]]:
        """
        Returns (sql, params) for a DB-API driver. 'qmark' keeps the ``?``
        markers and a list; 'pyformat' numbers them as %(p1)s... with a dict.
        """
        if paramstyle not in {"qmark", "pyformat"}:
            raise ValueError("paramstyle must be 'qmark' or 'pyformat'")
        pieces = self.sql.split(PLACEHOLDER)
        if len(pieces) - 1 != len(self.params):
            raise ValueError(
                f"Fragment has {len(pieces) - 1} placeholders but {len(self.params)} params"
            )
        if paramstyle == "qmark":
            return self.sql, list(self.params)
        names = [f"{prefix}{start_index + i}" for i in range(len(self.params))]
        sql = pieces[0] + "".join(f"%({n})s{piece}" for n, piece in zip(names, pieces[1:]))
        return sql, dict(zip(names, self.params))


def combine(
    fragments: Iterable[Optional[FilterFragment]],
    logical: Union[LogicalOperator, str] = LogicalOperator.AND,
) -> Optional[FilterFragment]:
    """
    Join fragments, skipping None. Returns None when nothing is left so the
    caller can omit the filter entirely.
    """
    parts = [f for f in fragments if f is not None]
    if not parts:
        return None
    if len(parts) == 1:
        return FilterFragment(parts[0].sql, list(parts[0].params))
    op = logical if isinstance(logical, LogicalOperator) else LogicalOperator(str(logical).upper())
    joiner = f" {op.value} "
    return FilterFragment(
        joiner.join(f"({p.sql})" for p in parts),
        [v for p in parts for v in p.params],
    )


# -----------------------------------------------------------------------------
# Search
# -----------------------------------------------------------------------------

class Search:
    """
    A configured set of searchable fields.

    Fields accept the same shapes as FieldSet:

        Search(fields=["first_name", "last_name", "email"])
        Search(fields={"first_name": "equals", "last_name": "begins_with"})
        Search(fields={"fname": {"sql": "first_name", "pattern": "equals"}})

    After configuration a Search is only read, so one instance can serve
    concurrent requests.
    """

    def __init__(
        self,
        fields: Any = None,
        *,
        name: str = "",
        time_zone: Optional[tzinfo] = None,
    ):
        self.name = name
        self.time_zone = time_zone
        self._fields: Optional[FieldSet] = None
        if fields is not None:
            self.add_fields(fields)

    @property
    def fields(self) -> FieldSet:
        if self._fields is None:
            self._fields = FieldSet()
        return self._fields

    def add_fields(self, obj: Any) -> "Search":
        self.fields.extend(obj)
        return self

    def __repr__(self) -> str:
        return f"Search(name={self.name!r}, fields={self.fields.names()!r})"

    def to_sql(
        self,
        params: Any,
        mode: Union[SearchMode, str] = SearchMode.SIMPLE,
        *,
        tz: Optional[tzinfo] = None,
    ) -> Optional[FilterFragment]:
        """
        Build the filter for ``params``: a term for 'simple' mode, or a
        mapping of field name to {"value": ...} for 'field' mode.

        Returns None when ``params`` is blank or nothing applies; callers
        should then omit the filter rather than match nothing.
        """
        if is_blank(params):
            return None
        handler = getattr(self, f"to_{_mode_name(mode)}_sql", None)
        if handler is None:
            raise UnknownSearchMode(mode)
        return handler(params, tz=tz)

    # handles a simple search where a given term is matched against a number of
    # fields, and can match any of them: a single "smart" search box.
    def to_simple_sql(self, term: Any, *, tz: Optional[tzinfo] = None) -> Optional[FilterFragment]:
        if is_blank(term):
            return None
        if not self.fields:
            raise ConfigurationError(f"Search {self.name!r} has no fields", self.name)
        tz = tz if tz is not None else self.time_zone
        sql = " OR ".join(f.fragment() for f in self.fields)
        binds = [f.bind(term, tz) for f in self.fields if f.binds]
        log.debug("simple search %r: %s %r", self.name, sql, binds)
        return FilterFragment(sql, binds)

    # handles a search where a user may enter a value for any field, and
    # everything entered must match: a set of labeled search boxes.
    #
    #   field_terms = {
    #     "first_name": {"value": "Bob"},
    #     "last_name": {"value": "Smith"},
    #   }
    def to_field_sql(
        self,
        field_terms: Mapping,
        *,
        tz: Optional[tzinfo] = None,
    ) -> Optional[FilterFragment]:
        if not isinstance(field_terms, Mapping):
            raise BadSearchValue(
                "field_terms", field_terms, "expected a mapping of field name to {'value': ...}"
            )
        tz = tz if tz is not None else self.time_zone

        searched: List[Tuple[Field, Any]] = []
        for f in self.fields.selected(field_terms):
            value = _term_value(f.name, field_terms[f.name])
            if not is_blank(value):
                searched.append((f, value))
        if not searched:
            return None

        sql = " AND ".join(f.fragment() for f, _ in searched)
        binds = [f.bind(value, tz) for f, value in searched if f.binds]
        log.debug("field search %r: %s %r", self.name, sql, binds)
        return FilterFragment(sql, binds)


def _mode_name(mode: Union[SearchMode, str]) -> str:
    name = mode.value if isinstance(mode, SearchMode) else mode
    if not isinstance(name, str) or not name.isidentifier():
        raise UnknownSearchMode(mode)
    return name.lower()


__all__ = [
    "SearchMode",
    "LogicalOperator",
    "FilterFragment",
    "combine",
    "Search",
]
