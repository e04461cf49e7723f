"""
String Helpers.

Key normalisation between the camelCase payloads used by the web front
end and the snake_case columns of the Supabase tables, plus sanitising
of user search terms before they reach a PostgREST filter.
"""

from __future__ import annotations

import re
from typing import Union, overload

__all__ = [
    "JsonValue",
    "normalize_keys",
    "sanitize_postgrest_value",
    "to_camel_case",
    "to_snake_case",
]

JsonValue = Union[
    str,
    int,
    float,
    bool,
    None,
    dict[str, "JsonValue"],
    list["JsonValue"],
]

_RE_UPPER_RUN = re.compile(r"([A-Z]+)([A-Z][a-z])")
_RE_CAMEL_BOUNDARY = re.compile(r"([a-z\d])([A-Z])")
_RE_MULTI_UNDERSCORE = re.compile(r"_+")


def to_snake_case(name: str) -> str:
    """Convert a camelCase or PascalCase key to snake_case.

        paymentMethod            -> payment_method
        cancellationRequestedBy  -> cancellation_requested_by
        storeId                  -> store_id
    """
    s1 = _RE_UPPER_RUN.sub(r"\1_\2", name)
    s2 = _RE_CAMEL_BOUNDARY.sub(r"\1_\2", s1)
    s3 = _RE_MULTI_UNDERSCORE.sub("_", s2)
    return s3.lower()


def to_camel_case(name: str) -> str:
    """Convert a snake_case key to camelCase (``expense_id`` -> ``expenseId``)."""
    head, *tail = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in tail)


@overload
def normalize_keys(data: dict[str, JsonValue]) -> dict[str, JsonValue]: ...


@overload
def normalize_keys(data: list[JsonValue]) -> list[JsonValue]: ...


@overload
def normalize_keys(data: JsonValue) -> JsonValue: ...


def normalize_keys(
    data: Union[dict[str, JsonValue], list[JsonValue], JsonValue],
) -> Union[dict[str, JsonValue], list[JsonValue], JsonValue]:
    """Recursively convert all dictionary keys to snake_case."""
    if isinstance(data, dict):
        return {to_snake_case(k): normalize_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [normalize_keys(item) for item in data]
    return data


# Allowlist: alphanumerics, whitespace, hyphens, slashes and accented
# Latin characters (category names such as "Sueldos/Nómina").
_POSTGREST_UNSAFE_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9\s\-/\u00C0-\u024F]")


def sanitize_postgrest_value(value: str) -> str:
    """Strip characters unsafe for PostgREST filter interpolation.

    Removes PostgREST operators (``.``, ``,``, ``(``, ``)``), SQL
    wildcards (``%``, ``_``) and escape characters so the result can be
    embedded in an ``ilike`` expression.
    """
    return _POSTGREST_UNSAFE_RE.sub("", value)
