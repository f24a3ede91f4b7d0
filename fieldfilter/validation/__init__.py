"""
Validation helpers for fieldfilter.

This module provides blankness checks, schema validation of configuration
documents and term-record checks.
"""

from .rules import (
    is_blank,
    _validate_document,
    _assert_single_entry,
    _term_value,
)

__all__ = [
    "is_blank",
    "_validate_document",
    "_assert_single_entry",
    "_term_value",
]
