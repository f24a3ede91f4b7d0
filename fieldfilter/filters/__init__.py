"""
Field configuration for fieldfilter.

This module provides the Field model, the pattern table, the normalization of
configuration shapes into a FieldSet, and the fields JSON schema.
"""

from .models import (
    PLACEHOLDER,
    Pattern,
    ValueType,
    PATTERNS,
    FieldOptions,
    Field,
    FieldSet,
    normalize_entry,
    split_entries,
    FIELDS_SCHEMA,
    parse_fields_json,
)

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
