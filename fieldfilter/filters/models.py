from __future__ import annotations
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime, tzinfo
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union
import json
import logging

from dateutil import parser as dt_parser
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from ..errors import BadSearchValue, ConfigurationError
from ..validation import _assert_single_entry, _validate_document

log = logging.getLogger(__name__)

PLACEHOLDER = "?"
DEFAULT_OPERATOR = "= ?"
DEFAULT_BIND_PATTERN = "?"

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Pattern(str, Enum):
    EQUALS = "equals"
    BEGINS_WITH = "begins_with"
    ENDS_WITH = "ends_with"
    CONTAINS = "contains"
    NULL = "null"
    NOT_NULL = "not_null"
    TRUE = "true"
    FALSE = "false"
    LESS_THAN = "less_than"
    LESS_THAN_OR_EQUAL_TO = "less_than_or_equal_to"
    NOT_GREATER_THAN = "not_greater_than"
    GREATER_THAN = "greater_than"
    GREATER_THAN_OR_EQUAL_TO = "greater_than_or_equal_to"
    NOT_LESS_THAN = "not_less_than"


class ValueType(str, Enum):
    STRING = "string"
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"


# pattern -> (operator, bind_pattern)
PATTERNS: Dict[Pattern, Tuple[str, Union[str, bool]]] = {
    Pattern.EQUALS: ("= ?", "?"),
    Pattern.BEGINS_WITH: ("LIKE ?", "?%"),
    Pattern.ENDS_WITH: ("LIKE ?", "%?"),
    Pattern.CONTAINS: ("LIKE ?", "%?%"),
    Pattern.NULL: ("IS NULL", DEFAULT_BIND_PATTERN),
    Pattern.NOT_NULL: ("IS NOT NULL", DEFAULT_BIND_PATTERN),
    Pattern.TRUE: ("= ?", True),
    Pattern.FALSE: ("= ?", False),
    Pattern.LESS_THAN: ("< ?", DEFAULT_BIND_PATTERN),
    Pattern.LESS_THAN_OR_EQUAL_TO: ("<= ?", DEFAULT_BIND_PATTERN),
    Pattern.NOT_GREATER_THAN: ("<= ?", DEFAULT_BIND_PATTERN),
    Pattern.GREATER_THAN: ("> ?", DEFAULT_BIND_PATTERN),
    Pattern.GREATER_THAN_OR_EQUAL_TO: (">= ?", DEFAULT_BIND_PATTERN),
    Pattern.NOT_LESS_THAN: (">= ?", DEFAULT_BIND_PATTERN),
}


# ---------------------------------------------------------------------------
# Configuration record
# ---------------------------------------------------------------------------

class FieldOptions(BaseModel):
    """
    One fully-formed field configuration. Explicit ``operator`` and
    ``bind_pattern`` win over whatever ``pattern`` expands to.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    sql: Optional[str] = None
    pattern: Optional[Pattern] = None
    operator: Optional[str] = None
    bind_pattern: Optional[Union[bool, str]] = None
    type: Optional[ValueType] = None

    @field_validator("name", mode="before")
    @classmethod
    def _name_as_text(cls, v: Any) -> str:
        if v is None or isinstance(v, (bool, Mapping, list, tuple, set)):
            raise ValueError(f"field name must be a scalar, got {v!r}")
        name = str(v)
        if not name.strip():
            raise ValueError("field name must not be blank")
        return name

    @field_validator("operator")
    @classmethod
    def _single_placeholder(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v.count(PLACEHOLDER) > 1:
            raise ValueError(f"operator may hold at most one {PLACEHOLDER!r}, got {v!r}")
        return v

    @field_validator("pattern", mode="before")
    @classmethod
    def _boolean_patterns(cls, v: Any) -> Any:
        # YAML turns a bare `true` / `false` into booleans
        if isinstance(v, bool):
            return Pattern.TRUE if v else Pattern.FALSE
        return v


# ---------------------------------------------------------------------------
# Field
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Field:
    """
    A searchable attribute: the logical ``name`` used in user input, the
    ``sql`` column it compares against, and how terms are compared and bound.
    """
    name: str
    sql: str = ""
    operator: str = DEFAULT_OPERATOR
    bind_pattern: Union[str, bool] = DEFAULT_BIND_PATTERN
    type: ValueType = ValueType.STRING

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", str(self.name))
        object.__setattr__(self, "type", ValueType(self.type))
        if self.operator.count(PLACEHOLDER) > 1:
            raise ConfigurationError(
                f"Field {self.name!r}: operator may hold at most one {PLACEHOLDER!r}",
                self.operator,
            )
        if not self.sql:
            object.__setattr__(self, "sql", self.name)

    @classmethod
    def from_options(cls, options: FieldOptions) -> "Field":
        operator, bind_pattern = DEFAULT_OPERATOR, DEFAULT_BIND_PATTERN
        if options.pattern is not None:
            operator, bind_pattern = PATTERNS[options.pattern]
        if options.operator is not None:
            operator = options.operator
        if options.bind_pattern is not None:
            bind_pattern = options.bind_pattern
        return cls(
            name=options.name,
            sql=options.sql or options.name,
            operator=operator,
            bind_pattern=bind_pattern,
            type=options.type or ValueType.STRING,
        )

    def with_pattern(self, pattern: Union[Pattern, str]) -> "Field":
        """Copy of this field with operator and bind pattern taken from ``pattern``."""
        operator, bind_pattern = PATTERNS[Pattern(pattern)]
        return replace(self, operator=operator, bind_pattern=bind_pattern)

    @property
    def binds(self) -> bool:
        return PLACEHOLDER in self.operator

    def fragment(self) -> str:
        return f"{self.sql} {self.operator}"

    def bind(self, term: Any, tz: Optional[tzinfo] = None) -> Any:
        """
        The value to bind for ``term``, or None when the operator takes no
        placeholder (e.g. IS NULL).
        """
        if not self.binds:
            return None
        if not isinstance(self.bind_pattern, str):
            return self.bind_pattern
        value = self.typecast(term, tz)
        if self.bind_pattern == PLACEHOLDER:
            return value
        return self.bind_pattern.replace(PLACEHOLDER, str(value), 1)

    def typecast(self, value: Any, tz: Optional[tzinfo] = None) -> Any:
        if self.type is ValueType.DATE:
            return self._parse_time(value, tz).date() if isinstance(value, str) else value
        if self.type in (ValueType.TIME, ValueType.DATETIME):
            return self._parse_time(value, tz) if isinstance(value, str) else value
        return str(value).strip()

    def _parse_time(self, value: str, tz: Optional[tzinfo]) -> datetime:
        try:
            parsed = dt_parser.parse(value)
        except (ValueError, OverflowError) as e:
            raise BadSearchValue(self.name, value, str(e)) from e
        if tz is None:
            return parsed
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=tz)
        try:
            return parsed.astimezone(tz)
        except OverflowError as e:
            raise BadSearchValue(self.name, value, str(e)) from e


# ---------------------------------------------------------------------------
# Normalization of the accepted configuration shapes
# ---------------------------------------------------------------------------

def normalize_entry(entry: Any) -> Field:
    """
    Turn one configuration entry into a Field. Accepted shapes:

        "email"                                      # name only
        {"email": "not_null"}                        # name -> pattern
        {"email": {"sql": "email", "pattern": ...}}  # name -> options
    """
    if isinstance(entry, Field):
        return entry

    if isinstance(entry, Mapping):
        _assert_single_entry(entry)
        name, value = next(iter(entry.items()))
        if value is None:
            opts: Dict[str, Any] = {}
        elif isinstance(value, Mapping):
            opts = dict(value)
        elif isinstance(value, (str, bool)):
            opts = {"pattern": value}
        else:
            log.warning("rejected field %r with value %r", name, value)
            raise ConfigurationError(
                f"Field {name!r} must map to a pattern or an options mapping, got {value!r}",
                entry,
            )
        opts["name"] = name
    elif isinstance(entry, (str, int, float)) and not isinstance(entry, bool):
        opts = {"name": entry}
    else:
        log.warning("rejected field entry %r", entry)
        raise ConfigurationError(f"Unrecognized field entry: {entry!r}", entry)

    try:
        return Field.from_options(FieldOptions.model_validate(opts))
    except ValidationError as e:
        log.warning("rejected field entry %r: %s", entry, e)
        raise ConfigurationError(f"Invalid field entry {entry!r}: {e}", entry) from e


def split_entries(obj: Any) -> List[Any]:
    """A field map becomes one single-key entry per name; a sequence is kept as is."""
    if isinstance(obj, Mapping):
        return [{k: v} for k, v in obj.items()]
    if isinstance(obj, (list, tuple)):
        return list(obj)
    raise ConfigurationError(f"Fields must be a list or a mapping, got {type(obj).__name__}", obj)


class FieldSet(List[Field]):
    """
    Ordered fields. Every way of adding or replacing entries normalizes
    them into Fields; order is the order fragments and binds are produced in.
    """

    def __init__(self, entries: Any = ()) -> None:
        super().__init__()
        if entries:
            self.extend(entries)

    def append(self, entry: Any) -> None:
        super().append(normalize_entry(entry))

    def extend(self, entries: Any) -> None:
        for entry in split_entries(entries):
            self.append(entry)

    def insert(self, index: Any, entry: Any) -> None:
        super().insert(index, normalize_entry(entry))

    def __setitem__(self, index: Any, entry: Any) -> None:
        if isinstance(index, slice):
            super().__setitem__(index, [normalize_entry(e) for e in split_entries(entry)])
        else:
            super().__setitem__(index, normalize_entry(entry))

    def __iadd__(self, entries: Any) -> "FieldSet":
        self.extend(entries)
        return self

    def __add__(self, entries: Any) -> "FieldSet":
        combined = FieldSet(self)
        combined.extend(entries)
        return combined

    def names(self) -> List[str]:
        return [f.name for f in self]

    def selected(self, names: Mapping) -> List[Field]:
        return [f for f in self if f.name in names]


# ---------------------------------------------------------------------------
# JSON Schemas
# ---------------------------------------------------------------------------

_PATTERN_VALUES: List[Any] = [p.value for p in Pattern] + [True, False]

FIELDS_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Search Fields",
    "$defs": {
        "FieldOptions": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "sql": {"type": "string", "minLength": 1},
                "pattern": {"enum": _PATTERN_VALUES},
                "operator": {"type": "string", "minLength": 1},
                "bind_pattern": {"type": ["string", "boolean"]},
                "type": {"enum": [t.value for t in ValueType]},
            },
        },
        "FieldValue": {
            "anyOf": [
                {"type": "null"},
                {"enum": _PATTERN_VALUES},
                {"$ref": "#/$defs/FieldOptions"},
            ],
        },
        "FieldEntry": {
            "anyOf": [
                {"type": "string", "minLength": 1},
                {"type": "number"},
                {
                    "type": "object",
                    "minProperties": 1,
                    "maxProperties": 1,
                    "additionalProperties": {"$ref": "#/$defs/FieldValue"},
                },
            ],
        },
        "Fields": {
            "anyOf": [
                {"type": "array", "items": {"$ref": "#/$defs/FieldEntry"}},
                {"type": "object", "additionalProperties": {"$ref": "#/$defs/FieldValue"}},
            ],
        },
    },
    "$ref": "#/$defs/Fields",
}


def parse_fields_json(
    payload: Union[str, Dict[str, Any], List[Any]],
    *,
    validate: bool = True,
) -> FieldSet:
    """
    Accept a JSON string or decoded list/map of fields and return a FieldSet.
    """
    data = json.loads(payload) if isinstance(payload, str) else payload
    if validate:
        _validate_document(data, FIELDS_SCHEMA, what="fields")
    fields = FieldSet()
    fields.extend(data)
    return fields


__all__ = [
    "PLACEHOLDER",
    "Pattern",
    "ValueType",
    "PATTERNS",
    "FieldOptions",
    "Field",
    "FieldSet",
    "normalize_entry",
    "split_entries",
    "FIELDS_SCHEMA",
    "parse_fields_json",
]
