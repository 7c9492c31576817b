"""Shared helpers."""

from tasktrail.utils.strings import trim_strings
from tasktrail.utils.time import ensure_utc, utc_now

__all__ = ["ensure_utc", "trim_strings", "utc_now"]
