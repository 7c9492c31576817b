"""Request string normalization."""

from typing import Any


def trim_strings(value: Any) -> Any:
    """
    Recursively strip whitespace from strings in a decoded JSON value.

    Strings that are empty after stripping become None, so a blank field is
    treated the same as an absent value by validation.
    """
    if isinstance(value, str):
        trimmed = value.strip()
        return trimmed if trimmed else None
    if isinstance(value, dict):
        return {key: trim_strings(item) for key, item in value.items()}
    if isinstance(value, list):
        return [trim_strings(item) for item in value]
    return value
