"""Domain entities for media streams.

Pure value objects without I/O.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Union

from tubestreams.domain.exceptions import ExtractionError

# Quality labels: "1080p", "1080p60", "1080s" (360°), "2160p60 HDR"
_QUALITY_LABEL_RE = re.compile(r"^(\d+)\D(\d+)?")

# Max video height per itag (muxed, HLS, 3D, DASH mp4/webm/av01).
_ITAG_MAX_HEIGHTS: dict[int, int] = {
    5: 144, 6: 240, 13: 144, 17: 144, 18: 360, 22: 720, 34: 360, 35: 480,
    36: 240, 37: 1080, 38: 3072, 43: 360, 44: 480, 45: 720, 46: 1080,
    59: 480, 78: 480,
    82: 360, 83: 480, 84: 720, 85: 1080, 100: 360, 101: 480, 102: 720,
    91: 144, 92: 240, 93: 360, 94: 480, 95: 720, 96: 1080, 132: 240, 151: 144,
    133: 240, 134: 360, 135: 480, 136: 720, 137: 1080, 138: 4320,
    142: 240, 143: 360, 144: 480, 145: 720, 146: 1080, 160: 144,
    212: 480, 213: 480, 214: 720, 215: 720, 216: 1080, 217: 1080,
    264: 1440, 266: 2160, 298: 720, 299: 1080,
    167: 360, 168: 480, 169: 720, 170: 1080, 218: 480, 219: 480,
    242: 240, 243: 360, 244: 480, 245: 480, 246: 480, 247: 720, 248: 1080,
    271: 1440, 272: 2160, 278: 144, 302: 720, 303: 1080, 308: 1440,
    313: 2160, 315: 2160, 330: 144, 331: 240, 332: 360, 333: 480,
    334: 720, 335: 1080, 336: 1440, 337: 2160,
    394: 144, 395: 240, 396: 360, 397: 480, 398: 720, 399: 1080,
    400: 1440, 401: 2160, 402: 2880, 571: 4320,
}  # fmt: skip

_DEFAULT_RESOLUTIONS: dict[int, tuple[int, int]] = {
    144: (256, 144),
    240: (426, 240),
    360: (640, 360),
    480: (854, 480),
    720: (1280, 720),
    1080: (1920, 1080),
    1440: (2560, 1440),
    2160: (3840, 2160),
    2880: (5120, 2880),
    3072: (4096, 3072),
    4320: (7680, 4320),
}

_AUDIO_ONLY_CONTAINERS = frozenset({"mp3", "m4a", "ogg", "weba", "opus"})


@dataclass(frozen=True)
class Container:
    """Stream container name (e.g. ``mp4``, ``webm``, ``3gpp``)."""

    name: str

    @property
    def is_audio_only(self) -> bool:
        return self.name.lower() in _AUDIO_ONLY_CONTAINERS

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, order=True)
class Bitrate:
    bits_per_second: int

    @property
    def kilobits_per_second(self) -> float:
        return self.bits_per_second / 1024

    @property
    def megabits_per_second(self) -> float:
        return self.kilobits_per_second / 1024

    def __str__(self) -> str:
        if self.megabits_per_second >= 1:
            return f"{self.megabits_per_second:.2f} Mbit/s"
        if self.kilobits_per_second >= 1:
            return f"{self.kilobits_per_second:.2f} Kbit/s"
        return f"{self.bits_per_second} Bit/s"


@dataclass(frozen=True, order=True)
class FileSize:
    bytes: int

    @property
    def kilobytes(self) -> float:
        return self.bytes / 1024

    @property
    def megabytes(self) -> float:
        return self.kilobytes / 1024

    @property
    def gigabytes(self) -> float:
        return self.megabytes / 1024

    def __str__(self) -> str:
        if self.gigabytes >= 1:
            return f"{self.gigabytes:.2f} GB"
        if self.megabytes >= 1:
            return f"{self.megabytes:.2f} MB"
        if self.kilobytes >= 1:
            return f"{self.kilobytes:.2f} KB"
        return f"{self.bytes} B"


@dataclass(frozen=True)
class Resolution:
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


def _format_quality_label(max_height: int, framerate: int) -> str:
    """Build a label like ``1080p`` or ``1080p60``.

    Framerate appears only above 30 and is rounded up to the next ten,
    the way the platform labels its own streams.
    """
    if framerate <= 30:
        return f"{max_height}p"
    return f"{max_height}p{math.ceil(framerate / 10) * 10}"


@dataclass(frozen=True)
class VideoQuality:
    """Video quality as advertised by the platform."""

    label: str
    max_height: int
    framerate: int

    @classmethod
    def from_height(cls, max_height: int, framerate: int) -> VideoQuality:
        return cls(_format_quality_label(max_height, framerate), max_height, framerate)

    @classmethod
    def from_label(cls, label: str, framerate_fallback: int) -> VideoQuality:
        """Parse a quality label, e.g. ``1080p60`` or ``2160p60 HDR``.

        The framerate embedded in the label wins over *framerate_fallback*.
        """
        match = _QUALITY_LABEL_RE.match(label)
        if match is None:
            raise ExtractionError(f"Failed to parse video quality label '{label}'.")
        max_height = int(match.group(1))
        framerate = int(match.group(2)) if match.group(2) else framerate_fallback
        return cls(label, max_height, framerate)

    @classmethod
    def from_itag(cls, itag: int, framerate: int) -> VideoQuality:
        max_height = _ITAG_MAX_HEIGHTS.get(itag)
        if max_height is None:
            raise ExtractionError(f"Unrecognized itag '{itag}'.")
        return cls.from_height(max_height, framerate)

    @property
    def is_high_definition(self) -> bool:
        return self.max_height >= 1080

    def get_default_video_resolution(self) -> Resolution:
        width, height = _DEFAULT_RESOLUTIONS.get(
            self.max_height, (16 * self.max_height // 9, self.max_height)
        )
        return Resolution(width, height)

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class AudioOnlyStreamInfo:
    """Audio-only media stream."""

    url: str
    container: Container
    size: FileSize
    bitrate: Bitrate
    audio_codec: str
    language: str | None = None

    def __str__(self) -> str:
        return f"Audio-only ({self.container}, Language: {self.language or 'Unknown'})"


@dataclass(frozen=True)
class VideoOnlyStreamInfo:
    """Video-only media stream (adaptive, no audio track)."""

    url: str
    container: Container
    size: FileSize
    bitrate: Bitrate
    video_codec: str
    video_quality: VideoQuality
    video_resolution: Resolution

    def __str__(self) -> str:
        return f"Video-only ({self.video_quality} | {self.container})"


@dataclass(frozen=True)
class MuxedStreamInfo:
    """Muxed media stream (audio and video in a single file)."""

    url: str
    container: Container
    size: FileSize
    bitrate: Bitrate
    audio_codec: str
    video_codec: str
    video_quality: VideoQuality
    video_resolution: Resolution
    language: str | None = None

    def __str__(self) -> str:
        return (
            f"Muxed ({self.video_quality} | {self.container} | "
            f"Language: {self.language or 'Unknown'})"
        )


StreamInfo = Union[AudioOnlyStreamInfo, VideoOnlyStreamInfo, MuxedStreamInfo]
AudioStreamInfo = Union[AudioOnlyStreamInfo, MuxedStreamInfo]
VideoStreamInfo = Union[VideoOnlyStreamInfo, MuxedStreamInfo]


@dataclass(frozen=True)
class StreamManifest:
    """Ordered, immutable collection of resolved streams for one video."""

    streams: tuple[StreamInfo, ...]

    def __len__(self) -> int:
        return len(self.streams)

    def __iter__(self) -> Iterator[StreamInfo]:
        return iter(self.streams)

    def get_audio_streams(self) -> list[AudioStreamInfo]:
        """Streams that carry audio (audio-only and muxed)."""
        return [
            s
            for s in self.streams
            if isinstance(s, (AudioOnlyStreamInfo, MuxedStreamInfo))
        ]

    def get_video_streams(self) -> list[VideoStreamInfo]:
        """Streams that carry video (video-only and muxed)."""
        return [
            s
            for s in self.streams
            if isinstance(s, (VideoOnlyStreamInfo, MuxedStreamInfo))
        ]

    def get_muxed_streams(self) -> list[MuxedStreamInfo]:
        return [s for s in self.streams if isinstance(s, MuxedStreamInfo)]

    def get_audio_only_streams(self) -> list[AudioOnlyStreamInfo]:
        return [s for s in self.streams if isinstance(s, AudioOnlyStreamInfo)]

    def get_video_only_streams(self) -> list[VideoOnlyStreamInfo]:
        return [s for s in self.streams if isinstance(s, VideoOnlyStreamInfo)]

    def get_with_highest_bitrate(self) -> StreamInfo | None:
        """Stream with the highest bitrate, or None for an empty manifest."""
        return max(self.streams, key=lambda s: s.bitrate, default=None)

    def get_with_highest_video_quality(self) -> VideoStreamInfo | None:
        """Video stream with the best quality (height, then framerate, then bitrate)."""
        return max(
            self.get_video_streams(),
            key=lambda s: (
                s.video_quality.max_height,
                s.video_quality.framerate,
                s.bitrate,
            ),
            default=None,
        )
