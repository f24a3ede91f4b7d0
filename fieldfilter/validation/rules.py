import logging
from collections.abc import Mapping
from typing import Any, Dict

import jsonschema

from ..errors import BadSearchValue, ConfigurationError

log = logging.getLogger(__name__)


def is_blank(value: Any) -> bool:
    """
    True for None, False, whitespace-only text and empty collections.
    Numbers (including 0) are never blank.
    """
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (Mapping, list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def _validate_document(instance: Any, schema: Dict[str, Any], *, what: str) -> None:
    try:
        jsonschema.validate(instance=instance, schema=schema)
    except jsonschema.ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path) or "<root>"
        log.warning("rejected %s at %s: %s", what, location, e.message)
        raise ConfigurationError(f"Invalid {what} at {location}: {e.message}", instance) from e


def _assert_single_entry(entry: Mapping) -> None:
    if len(entry) != 1:
        log.warning("rejected field entry with %d names: %r", len(entry), entry)
        raise ConfigurationError(
            f"A mapped field entry must name exactly one field, got {len(entry)}", entry
        )


def _term_value(name: str, record: Any) -> Any:
    """The raw value of one field-search term record ({"value": ...})."""
    if record is None:
        return None
    if not isinstance(record, Mapping):
        raise BadSearchValue(name, record, "expected a mapping with a 'value' key")
    return record.get("value")
