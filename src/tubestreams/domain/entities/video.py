"""Video identity value objects."""

from __future__ import annotations

import re
from dataclasses import dataclass

_ID_RE = re.compile(r"^[\w-]{11}$")

# Order matters: the most common URL shapes first.
_URL_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"youtube\..+?/watch.*?v=(.*?)(?:&|/|$)"),
    re.compile(r"youtu\.be/(.*?)(?:\?|&|/|$)"),
    re.compile(r"youtube\..+?/embed/(.*?)(?:\?|&|/|$)"),
    re.compile(r"youtube\..+?/shorts/(.*?)(?:\?|&|/|$)"),
    re.compile(r"youtube\..+?/live/(.*?)(?:\?|&|/|$)"),
)


def _is_valid(video_id: str) -> bool:
    return bool(_ID_RE.match(video_id))


@dataclass(frozen=True)
class VideoId:
    """Validated 11-character video identifier."""

    value: str

    def __post_init__(self) -> None:
        if not _is_valid(self.value):
            raise ValueError(f"Invalid video ID '{self.value}'.")

    @classmethod
    def try_parse(cls, raw: str | None) -> VideoId | None:
        """Parse a raw id or a watch/short/embed/shorts/live URL.

        Returns None when nothing valid can be extracted.
        """
        if not raw:
            return None
        raw = raw.strip()
        if _is_valid(raw):
            return cls(raw)
        for pattern in _URL_PATTERNS:
            match = pattern.search(raw)
            if match and _is_valid(match.group(1)):
                return cls(match.group(1))
        return None

    @classmethod
    def parse(cls, raw: str) -> VideoId:
        video_id = cls.try_parse(raw)
        if video_id is None:
            raise ValueError(f"Invalid YouTube video ID or URL '{raw}'.")
        return video_id

    def __str__(self) -> str:
        return self.value
