"""
Query building module for fieldfilter.

This module turns a configured Search and user terms into parameterized
filter fragments.
"""

from .builder import (
    SearchMode,
    LogicalOperator,
    FilterFragment,
    combine,
    Search,
)

__all__ = [
    "SearchMode",
    "LogicalOperator",
    "FilterFragment",
    "combine",
    "Search",
]
