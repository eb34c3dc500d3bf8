"""Fetches player responses and DASH manifests over httpx."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from tubestreams.domain.entities.video import VideoId
from tubestreams.infrastructure.youtube.dash_manifest import DashManifest
from tubestreams.infrastructure.youtube.player_response import PlayerResponse

log = structlog.get_logger(__name__)

DEFAULT_PLAYER_API_URL = "https://www.youtube.com/youtubei/v1/player"
DEFAULT_CLIENT_NAME = "ANDROID_VR"
DEFAULT_CLIENT_VERSION = "1.60.19"

# The VR client is served unciphered stream URLs without a PO token.
_ANDROID_VR_DEVICE: dict[str, Any] = {
    "deviceMake": "Oculus",
    "deviceModel": "Quest 3",
    "androidSdkVersion": 32,
    "osName": "Android",
    "osVersion": "12L",
}


class HttpxYoutubeController:
    """Thin network layer over the platform's player endpoint.

    Raises ``httpx.HTTPError`` on transport or status failures; parsing
    errors surface as ``ExtractionError`` from the readers.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        player_api_url: str = DEFAULT_PLAYER_API_URL,
        client_name: str = DEFAULT_CLIENT_NAME,
        client_version: str = DEFAULT_CLIENT_VERSION,
    ) -> None:
        self._http = http_client
        self._player_api_url = player_api_url
        self._client_name = client_name
        self._client_version = client_version

    def _player_payload(self, video_id: VideoId) -> dict[str, Any]:
        client: dict[str, Any] = {
            "clientName": self._client_name,
            "clientVersion": self._client_version,
            "hl": "en",
            "timeZone": "UTC",
            "utcOffsetMinutes": 0,
        }
        if self._client_name == DEFAULT_CLIENT_NAME:
            client.update(_ANDROID_VR_DEVICE)

        return {
            "context": {"client": client},
            "videoId": str(video_id),
            "contentCheckOk": True,
        }

    async def get_player_response(self, video_id: VideoId) -> PlayerResponse:
        response = await self._http.post(
            self._player_api_url,
            json=self._player_payload(video_id),
        )
        response.raise_for_status()
        log.debug(
            "player_response_fetched",
            video_id=str(video_id),
            client=self._client_name,
            bytes=len(response.content),
        )
        return PlayerResponse.parse(response.text)

    async def get_dash_manifest(self, url: str) -> DashManifest:
        response = await self._http.get(url)
        response.raise_for_status()
        return DashManifest.parse(response.content)
