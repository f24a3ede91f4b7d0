from typing import Any


class FieldFilterError(Exception):
    """Root of the fieldfilter error hierarchy."""


class ConfigurationError(FieldFilterError, ValueError):
    """A field configuration entry could not be turned into a Field."""

    def __init__(self, message: str, entry: Any = None):
        super().__init__(message)
        self.entry = entry


class BadSearchValue(FieldFilterError, ValueError):
    def __init__(self, field_name: str, value: Any, reason: str = ""):
        message = f"Bad search value for {field_name!r}: {value!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.field_name = field_name
        self.value = value


class UnknownSearchMode(FieldFilterError, ValueError):
    def __init__(self, mode: Any):
        super().__init__(f"Unknown search mode: {mode!r}")
        self.mode = mode


class UnknownSearch(FieldFilterError, KeyError):
    def __init__(self, search_name: str):
        super().__init__(f"Unknown search: {search_name}")
        self.search_name = search_name

    def __str__(self) -> str:
        return self.args[0]
