"""Port for raw per-stream descriptors."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class StreamData(Protocol):
    """Raw, possibly incomplete attributes of one stream entry.

    Implemented by the player-response (JSON) and DASH manifest (XML)
    readers. Every attribute is optional; the stream builder decides which
    ones are mandatory.
    """

    @property
    def itag(self) -> int | None: ...

    @property
    def url(self) -> str | None: ...

    @property
    def signature(self) -> str | None: ...

    @property
    def signature_parameter(self) -> str | None: ...

    @property
    def content_length(self) -> int | None: ...

    @property
    def bitrate(self) -> int | None: ...

    @property
    def container(self) -> str | None: ...

    @property
    def audio_codec(self) -> str | None: ...

    @property
    def video_codec(self) -> str | None: ...

    @property
    def video_quality_label(self) -> str | None: ...

    @property
    def video_width(self) -> int | None: ...

    @property
    def video_height(self) -> int | None: ...

    @property
    def video_framerate(self) -> int | None: ...

    @property
    def audio_track_name(self) -> str | None:
        """Display name of the audio track, e.g. ``English (United States)``."""
        ...
