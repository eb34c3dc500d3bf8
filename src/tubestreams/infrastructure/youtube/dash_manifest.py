"""DASH (MPD) manifest reader: the secondary stream source."""

from __future__ import annotations

import re
from functools import cached_property
from urllib.parse import unquote

from lxml import etree

from tubestreams.domain.exceptions import ExtractionError
from tubestreams.infrastructure.common.converters import null_if_blank, to_int

_CLEN_PATH_RE = re.compile(r"[/?]clen[/=](\d+)")
_MIME_PATH_RE = re.compile(r"mime[/=]\w*%2F([\w\d]*)")


def _children(element: etree._Element, name: str) -> list[etree._Element]:
    """Direct children by local name, ignoring the MPD namespace."""
    return element.xpath(f"./*[local-name()='{name}']")


def _descendants(element: etree._Element, name: str) -> list[etree._Element]:
    return element.xpath(f".//*[local-name()='{name}']")


class DashStreamData:
    """Stream descriptor backed by one MPD ``Representation`` element.

    DASH streams are never ciphered and carry no quality label.
    """

    signature: str | None = None
    signature_parameter: str | None = None
    video_quality_label: str | None = None
    audio_track_name: str | None = None

    def __init__(self, element: etree._Element) -> None:
        self._element = element

    def __repr__(self) -> str:
        return f"DashStreamData(itag={self.itag!r})"

    @cached_property
    def itag(self) -> int | None:
        return to_int(self._element.get("id"))

    @cached_property
    def url(self) -> str | None:
        base_urls = _children(self._element, "BaseURL")
        if not base_urls or base_urls[0].text is None:
            return None
        return null_if_blank(base_urls[0].text.strip())

    @cached_property
    def content_length(self) -> int | None:
        declared = to_int(self._element.get("contentLength"))
        if declared is not None:
            return declared
        if self.url is None:
            return None
        match = _CLEN_PATH_RE.search(self.url)
        return int(match.group(1)) if match else None

    @cached_property
    def bitrate(self) -> int | None:
        return to_int(self._element.get("bandwidth"))

    @cached_property
    def container(self) -> str | None:
        if self.url is None:
            return None
        match = _MIME_PATH_RE.search(self.url)
        return null_if_blank(unquote(match.group(1))) if match else None

    @cached_property
    def _is_audio_only(self) -> bool:
        return bool(_children(self._element, "AudioChannelConfiguration"))

    @cached_property
    def audio_codec(self) -> str | None:
        return self._element.get("codecs") if self._is_audio_only else None

    @cached_property
    def video_codec(self) -> str | None:
        return None if self._is_audio_only else self._element.get("codecs")

    @cached_property
    def video_width(self) -> int | None:
        return to_int(self._element.get("width"))

    @cached_property
    def video_height(self) -> int | None:
        return to_int(self._element.get("height"))

    @cached_property
    def video_framerate(self) -> int | None:
        return to_int(self._element.get("frameRate"))


def _is_media_representation(element: etree._Element) -> bool:
    # Thumbnail/storyboard representations have non-numeric ids
    if not (element.get("id") or "").isdigit():
        return False
    # Segmented (sq/) streams cannot be fetched as one file
    for init in _descendants(element, "Initialization"):
        if "sq/" in (init.get("sourceURL") or ""):
            return False
    return bool(null_if_blank(element.get("codecs")))


class DashManifest:
    def __init__(self, root: etree._Element) -> None:
        self._root = root

    @classmethod
    def parse(cls, raw: str | bytes) -> DashManifest:
        data = raw.encode("utf-8") if isinstance(raw, str) else raw
        try:
            root = etree.fromstring(data)
        except etree.XMLSyntaxError as exc:
            raise ExtractionError("Failed to parse the DASH manifest.") from exc
        return cls(root)

    @cached_property
    def streams(self) -> tuple[DashStreamData, ...]:
        return tuple(
            DashStreamData(element)
            for element in _descendants(self._root, "Representation")
            if _is_media_representation(element)
        )
