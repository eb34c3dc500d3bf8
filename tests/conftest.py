"""Shared test fixtures for the tubestreams test suite."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from unittest.mock import AsyncMock

import pytest

from tubestreams.domain.entities.cipher import CipherManifest, ReverseOperation
from tubestreams.domain.entities.video import VideoId

CDN = "https://cdn.example.com"

# ---------------------------------------------------------------------------
# Domain fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def video_id() -> VideoId:
    return VideoId("dQw4w9WgXcQ")


@pytest.fixture()
def reverse_cipher() -> CipherManifest:
    """Cipher manifest that reverses the signature."""
    return CipherManifest(signature_timestamp="19834", operations=(ReverseOperation(),))


# ---------------------------------------------------------------------------
# Player response documents
# ---------------------------------------------------------------------------


@pytest.fixture()
def player_document() -> dict[str, Any]:
    """Playable document with one muxed, one video-only and one audio stream."""
    return {
        "playabilityStatus": {"status": "OK"},
        "videoDetails": {
            "videoId": "dQw4w9WgXcQ",
            "title": "Test video",
            "author": "Test channel",
            "channelId": "UCtestchannel",
            "lengthSeconds": "212",
            "keywords": ["music", "test"],
            "shortDescription": "A test video.",
            "viewCount": "1000",
            "thumbnail": {
                "thumbnails": [
                    {"url": "https://i.example.com/default.jpg", "width": 120, "height": 90}
                ]
            },
        },
        "microformat": {"playerMicroformatRenderer": {"uploadDate": "2009-10-25"}},
        "streamingData": {
            "formats": [
                {
                    "itag": 18,
                    "url": f"{CDN}/v18?itag=18",
                    "mimeType": 'video/mp4; codecs="avc1.42001E, mp4a.40.2"',
                    "bitrate": 500000,
                    "contentLength": "50000",
                    "qualityLabel": "360p",
                    "width": 640,
                    "height": 360,
                    "fps": 30,
                }
            ],
            "adaptiveFormats": [
                {
                    "itag": 137,
                    "url": f"{CDN}/v137?itag=137",
                    "mimeType": 'video/mp4; codecs="avc1.640028"',
                    "bitrate": 4000000,
                    "contentLength": "123456",
                    "qualityLabel": "1080p",
                    "width": 1920,
                    "height": 1080,
                    "fps": 24,
                },
                {
                    "itag": 140,
                    "url": f"{CDN}/v140?itag=140",
                    "mimeType": 'audio/mp4; codecs="mp4a.40.2"',
                    "bitrate": 130000,
                    "contentLength": "3400000",
                },
            ],
        },
    }


# ---------------------------------------------------------------------------
# Stream descriptor fakes
# ---------------------------------------------------------------------------


@dataclass
class FakeStreamData:
    """Plain StreamData implementation for builder and use case tests."""

    itag: int | None = 137
    url: str | None = f"{CDN}/v137?itag=137"
    signature: str | None = None
    signature_parameter: str | None = None
    content_length: int | None = 123456
    bitrate: int | None = 4_000_000
    container: str | None = "mp4"
    audio_codec: str | None = None
    video_codec: str | None = "avc1.640028"
    video_quality_label: str | None = "1080p"
    video_width: int | None = 1920
    video_height: int | None = 1080
    video_framerate: int | None = 24
    audio_track_name: str | None = None


@pytest.fixture()
def fake_stream_data() -> FakeStreamData:
    return FakeStreamData()


@pytest.fixture()
def stream_data_factory() -> type[FakeStreamData]:
    """Build FakeStreamData variants: ``stream_data_factory(itag=140, ...)``."""
    return FakeStreamData


# ---------------------------------------------------------------------------
# Mock collaborators
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_prober() -> AsyncMock:
    """Prober that confirms the declared content length."""
    prober = AsyncMock()
    prober.probe = AsyncMock(side_effect=lambda data, url: data.content_length)
    return prober


@pytest.fixture()
def mock_cipher(reverse_cipher: CipherManifest) -> AsyncMock:
    cipher = AsyncMock()
    cipher.get = AsyncMock(return_value=reverse_cipher)
    return cipher
