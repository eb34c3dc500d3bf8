"""URL query helpers."""

from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit


def get_query_parameters(value: str) -> dict[str, str]:
    """Parse a full URL or a bare query string into a dict.

    Later duplicates win. Blank values are kept.
    """
    query = urlsplit(value).query if "?" in value else value
    return dict(parse_qsl(query, keep_blank_values=True))


def set_query_parameter(url: str, name: str, value: str) -> str:
    """Set (or replace) one query parameter, keeping the others in order."""
    parts = urlsplit(url)
    params = parse_qsl(parts.query, keep_blank_values=True)
    replaced = False
    updated: list[tuple[str, str]] = []
    for key, existing in params:
        if key == name:
            if not replaced:
                updated.append((key, value))
                replaced = True
            continue
        updated.append((key, existing))
    if not replaced:
        updated.append((name, value))
    return urlunsplit(parts._replace(query=urlencode(updated)))


def get_segment_url(url: str, start: int, end: int) -> str:
    """URL of the inclusive byte range ``start-end`` of a stream."""
    return set_query_parameter(url, "range", f"{start}-{end}")
