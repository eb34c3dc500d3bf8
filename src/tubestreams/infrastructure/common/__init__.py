"""Common infrastructure utilities."""

from __future__ import annotations

from .converters import to_int, to_str
from .urls import get_query_parameters, get_segment_url, set_query_parameter

__all__ = [
    "to_int",
    "to_str",
    "get_query_parameters",
    "get_segment_url",
    "set_query_parameter",
]
