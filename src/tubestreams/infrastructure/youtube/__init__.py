"""Readers and network adapters for the video platform's stream data."""

from __future__ import annotations

from .cipher_cache import CipherManifestCache
from .content_length import ContentLengthProber
from .controller import HttpxYoutubeController
from .dash_manifest import DashManifest
from .player_response import PlayerResponse
from .stream_builder import StreamInfoBuilder

__all__ = [
    "CipherManifestCache",
    "ContentLengthProber",
    "DashManifest",
    "HttpxYoutubeController",
    "PlayerResponse",
    "StreamInfoBuilder",
]
