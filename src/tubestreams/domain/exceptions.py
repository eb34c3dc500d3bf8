"""Stream resolution exceptions."""

from __future__ import annotations


class TubeStreamsError(Exception):
    """Base class for all stream-resolution errors."""


class ExtractionError(TubeStreamsError):
    """Raised when a mandatory attribute is missing from the upstream data.

    Usually means the platform changed its response schema.
    """


class VideoUnplayableError(TubeStreamsError):
    """Raised when the video exists but cannot be played."""

    def __init__(self, message: str, reason: str | None = None) -> None:
        super().__init__(message)
        self.reason = reason


class VideoUnavailableError(VideoUnplayableError):
    """Raised when the video does not exist or is private."""


class VideoRequiresPurchaseError(VideoUnplayableError):
    """Raised when the video is a paid title; only its preview is free."""

    def __init__(self, message: str, preview_video_id: str) -> None:
        super().__init__(message)
        self.preview_video_id = preview_video_id
