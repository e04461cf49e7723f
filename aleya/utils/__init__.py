"""Shared utility functions and models for the Aleya Shop back office.

Convenience re-exports so consumers can import directly from
``aleya.utils`` while full module imports remain supported.
"""

from aleya.utils.audit import ActivityEvent, log_activity
from aleya.utils.formatting import format_cop
from aleya.utils.string_helpers import (
    normalize_keys,
    sanitize_postgrest_value,
    to_camel_case,
    to_snake_case,
)

__all__ = [
    "ActivityEvent",
    "format_cop",
    "log_activity",
    "normalize_keys",
    "sanitize_postgrest_value",
    "to_camel_case",
    "to_snake_case",
]
