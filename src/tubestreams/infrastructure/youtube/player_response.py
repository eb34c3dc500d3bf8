"""Read-only view over the platform's player response document.

The player response is undocumented and changes often. Every accessor
walks its property path tolerantly: a missing key, a wrong type or an
out-of-range index anywhere along the path yields ``None`` (or an empty
tuple for list accessors) instead of an exception.

All derived values are memoized with ``cached_property``; they are pure
functions of the wrapped document, which is never mutated.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import cached_property
from typing import Any, Mapping

import structlog

from tubestreams.domain.exceptions import ExtractionError
from tubestreams.infrastructure.common.converters import (
    null_if_blank,
    substring_after,
    substring_until,
    to_float,
    to_int,
    to_str,
)
from tubestreams.infrastructure.common.urls import get_query_parameters

log = structlog.get_logger(__name__)

_CLEN_QUERY_RE = re.compile(r"[?&]clen=(\d+)")
_PREVIEW_VIDEO_ID_RE = re.compile(r"video_id=(.{11})")

# "unknown" is what the platform reports for av01 streams
_AV1_FALLBACK_CODEC = "av01.0.05M.08"


def get_path(node: Any, *path: str | int) -> Any:
    """Walk *path* through nested dicts/lists, short-circuiting to None."""
    for key in path:
        if isinstance(key, int):
            if not isinstance(node, list) or not -len(node) <= key < len(node):
                return None
            node = node[key]
        else:
            if not isinstance(node, Mapping):
                return None
            node = node.get(key)
        if node is None:
            return None
    return node


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _decode_preview_blob(raw: str) -> str | None:
    """Best-effort scrape of a video id out of a mangled base64 payload.

    The payload is supposed to hold JSON but decodes to partial garbage;
    the ``video_id=...`` fragment usually survives intact.
    """
    normalized = raw.replace("-", "+").replace("_", "/")
    normalized += "=" * (-len(normalized) % 4)
    try:
        decoded = base64.b64decode(normalized).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError):
        log.debug("preview_blob_undecodable", length=len(raw))
        return None
    match = _PREVIEW_VIDEO_ID_RE.search(decoded)
    return null_if_blank(match.group(1)) if match else None


@dataclass(frozen=True)
class ThumbnailData:
    url: str | None
    width: int | None
    height: int | None

    @classmethod
    def from_json(cls, content: Any) -> ThumbnailData:
        return cls(
            url=to_str(get_path(content, "url")),
            width=to_int(get_path(content, "width")),
            height=to_int(get_path(content, "height")),
        )


@dataclass(frozen=True)
class ClosedCaptionTrackData:
    url: str
    language_code: str
    language_name: str
    is_auto_generated: bool

    @classmethod
    def from_json(cls, content: Any) -> ClosedCaptionTrackData:
        name = to_str(get_path(content, "name", "simpleText"))
        if name is None:
            runs = _as_list(get_path(content, "name", "runs"))
            texts = [to_str(get_path(run, "text")) for run in runs]
            name = "".join(t for t in texts if t is not None)
        vss_id = to_str(get_path(content, "vssId")) or ""
        return cls(
            url=to_str(get_path(content, "baseUrl")) or "",
            language_code=to_str(get_path(content, "languageCode")) or "",
            language_name=name,
            is_auto_generated=vss_id.startswith("a."),
        )


class JsonStreamData:
    """Stream descriptor backed by one ``formats``/``adaptiveFormats`` entry."""

    def __init__(self, content: Mapping[str, Any]) -> None:
        self._content = content

    def __repr__(self) -> str:
        return f"JsonStreamData(itag={self.itag!r})"

    @cached_property
    def itag(self) -> int | None:
        return to_int(get_path(self._content, "itag"))

    @cached_property
    def _cipher_data(self) -> dict[str, str] | None:
        raw = to_str(get_path(self._content, "cipher")) or to_str(
            get_path(self._content, "signatureCipher")
        )
        return get_query_parameters(raw) if raw is not None else None

    @cached_property
    def url(self) -> str | None:
        direct = to_str(get_path(self._content, "url"))
        if direct is not None:
            return direct
        return self._cipher_data.get("url") if self._cipher_data else None

    @cached_property
    def signature(self) -> str | None:
        return self._cipher_data.get("s") if self._cipher_data else None

    @cached_property
    def signature_parameter(self) -> str | None:
        return self._cipher_data.get("sp") if self._cipher_data else None

    @cached_property
    def content_length(self) -> int | None:
        declared = to_int(get_path(self._content, "contentLength"))
        if declared is not None:
            return declared
        if self.url is None:
            return None
        match = _CLEN_QUERY_RE.search(self.url)
        return int(match.group(1)) if match else None

    @cached_property
    def bitrate(self) -> int | None:
        return to_int(get_path(self._content, "bitrate"))

    @cached_property
    def _mime_type(self) -> str | None:
        return to_str(get_path(self._content, "mimeType"))

    @cached_property
    def container(self) -> str | None:
        if self._mime_type is None:
            return None
        return substring_after(substring_until(self._mime_type, ";"), "/")

    @cached_property
    def _is_audio_only(self) -> bool:
        return (self._mime_type or "").lower().startswith("audio/")

    @cached_property
    def _codecs(self) -> str | None:
        if self._mime_type is None:
            return None
        return substring_until(substring_after(self._mime_type, 'codecs="'), '"')

    @cached_property
    def audio_codec(self) -> str | None:
        if self._codecs is None:
            return None
        if self._is_audio_only:
            return null_if_blank(self._codecs)
        return null_if_blank(substring_after(self._codecs, ", "))

    @cached_property
    def video_codec(self) -> str | None:
        if self._is_audio_only or self._codecs is None:
            return None
        codec = null_if_blank(substring_until(self._codecs, ", "))
        if codec is not None and codec.lower() == "unknown":
            return _AV1_FALLBACK_CODEC
        return codec

    @cached_property
    def video_quality_label(self) -> str | None:
        return to_str(get_path(self._content, "qualityLabel"))

    @cached_property
    def video_width(self) -> int | None:
        return to_int(get_path(self._content, "width"))

    @cached_property
    def video_height(self) -> int | None:
        return to_int(get_path(self._content, "height"))

    @cached_property
    def video_framerate(self) -> int | None:
        return to_int(get_path(self._content, "fps"))

    @cached_property
    def audio_track_name(self) -> str | None:
        return null_if_blank(
            to_str(get_path(self._content, "audioTrack", "displayName"))
        )


class PlayerResponse:
    """Memoizing projection over one parsed player response document."""

    def __init__(self, content: Mapping[str, Any]) -> None:
        self._content = content

    @classmethod
    def parse(cls, raw: str) -> PlayerResponse:
        try:
            content = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ExtractionError("Failed to parse the player response.") from exc
        if not isinstance(content, dict):
            raise ExtractionError(
                f"Player response must be a JSON object, got {type(content).__name__}."
            )
        return cls(content)

    # ------------------------------------------------------------------
    # Playability
    # ------------------------------------------------------------------

    @cached_property
    def _playability(self) -> Any:
        return get_path(self._content, "playabilityStatus")

    @cached_property
    def playability_status(self) -> str | None:
        return to_str(get_path(self._playability, "status"))

    @cached_property
    def playability_error(self) -> str | None:
        return to_str(get_path(self._playability, "reason"))

    @cached_property
    def is_available(self) -> bool:
        status = (self.playability_status or "").lower()
        return status != "error" and self._details is not None

    @cached_property
    def is_playable(self) -> bool:
        return (self.playability_status or "").lower() == "ok"

    @cached_property
    def preview_video_id(self) -> str | None:
        """Id of the free preview when the real video requires purchase.

        Tries the direct trailer field, then the ``video_id`` query
        parameter of the trailer's player vars, then a best-effort scrape
        of the trailer's encoded player response.
        """
        error_screen = get_path(self._playability, "errorScreen")

        direct = to_str(
            get_path(
                error_screen, "playerLegacyDesktopYpcTrailerRenderer", "trailerVideoId"
            )
        )
        if null_if_blank(direct):
            return direct

        player_vars = to_str(
            get_path(error_screen, "ypcTrailerRenderer", "playerVars")
        )
        if player_vars is not None:
            from_vars = null_if_blank(
                get_query_parameters(player_vars).get("video_id")
            )
            if from_vars:
                return from_vars

        encoded = to_str(
            get_path(error_screen, "ypcTrailerRenderer", "playerResponse")
        )
        if encoded is not None:
            return _decode_preview_blob(encoded)

        return None

    # ------------------------------------------------------------------
    # Video details
    # ------------------------------------------------------------------

    @cached_property
    def _details(self) -> Any:
        details = get_path(self._content, "videoDetails")
        return details if isinstance(details, Mapping) else None

    @cached_property
    def title(self) -> str | None:
        return to_str(get_path(self._details, "title"))

    @cached_property
    def channel_id(self) -> str | None:
        return to_str(get_path(self._details, "channelId"))

    @cached_property
    def author(self) -> str | None:
        return to_str(get_path(self._details, "author"))

    @cached_property
    def upload_date(self) -> datetime | None:
        raw = to_str(
            get_path(
                self._content, "microformat", "playerMicroformatRenderer", "uploadDate"
            )
        )
        if raw is None:
            return None
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            return None

    @cached_property
    def duration(self) -> timedelta | None:
        seconds = to_float(get_path(self._details, "lengthSeconds"))
        return timedelta(seconds=seconds) if seconds is not None else None

    @cached_property
    def thumbnails(self) -> tuple[ThumbnailData, ...]:
        items = _as_list(get_path(self._details, "thumbnail", "thumbnails"))
        return tuple(ThumbnailData.from_json(item) for item in items)

    @cached_property
    def keywords(self) -> tuple[str, ...]:
        items = _as_list(get_path(self._details, "keywords"))
        return tuple(item for item in items if isinstance(item, str))

    @cached_property
    def description(self) -> str | None:
        return to_str(get_path(self._details, "shortDescription"))

    @cached_property
    def view_count(self) -> int | None:
        return to_int(get_path(self._details, "viewCount"))

    # ------------------------------------------------------------------
    # Streaming data
    # ------------------------------------------------------------------

    @cached_property
    def _streaming_data(self) -> Any:
        return get_path(self._content, "streamingData")

    @cached_property
    def dash_manifest_url(self) -> str | None:
        return to_str(get_path(self._streaming_data, "dashManifestUrl"))

    @cached_property
    def hls_manifest_url(self) -> str | None:
        return to_str(get_path(self._streaming_data, "hlsManifestUrl"))

    @cached_property
    def streams(self) -> tuple[JsonStreamData, ...]:
        """Muxed streams followed by adaptive streams, in document order."""
        muxed = _as_list(get_path(self._streaming_data, "formats"))
        adaptive = _as_list(get_path(self._streaming_data, "adaptiveFormats"))
        return tuple(
            JsonStreamData(item)
            for item in (*muxed, *adaptive)
            if isinstance(item, Mapping)
        )

    @cached_property
    def closed_caption_tracks(self) -> tuple[ClosedCaptionTrackData, ...]:
        items = _as_list(
            get_path(
                self._content,
                "captions",
                "playerCaptionsTracklistRenderer",
                "captionTracks",
            )
        )
        return tuple(ClosedCaptionTrackData.from_json(item) for item in items)
