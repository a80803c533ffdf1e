"""Attribute resolution module."""

from . import aliases
from .resolver import (
    age_ns,
    duration_ns,
    first_bool,
    first_int,
    first_number,
    first_present,
    first_string,
    first_timestamp_ns,
    normalize_timestamp_ns,
    parse_attrs_json,
)

__all__ = [
    "aliases",
    "age_ns",
    "duration_ns",
    "first_bool",
    "first_int",
    "first_number",
    "first_present",
    "first_string",
    "first_timestamp_ns",
    "normalize_timestamp_ns",
    "parse_attrs_json",
]
