"""Tests for StreamManifestUseCase."""

from __future__ import annotations

import asyncio
import base64
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest

from tubestreams.application.use_cases.stream_manifest import StreamManifestUseCase
from tubestreams.domain.entities.streams import (
    AudioOnlyStreamInfo,
    MuxedStreamInfo,
    VideoOnlyStreamInfo,
)
from tubestreams.domain.entities.video import VideoId
from tubestreams.domain.exceptions import (
    ExtractionError,
    VideoRequiresPurchaseError,
    VideoUnavailableError,
    VideoUnplayableError,
)
from tubestreams.infrastructure.youtube.player_response import PlayerResponse
from tubestreams.infrastructure.youtube.stream_builder import StreamInfoBuilder

_DASH_URL = "https://manifest.example.com/api/manifest/dash/id/1"


def _controller(response: Any) -> AsyncMock:
    controller = AsyncMock()
    controller.get_player_response = AsyncMock(return_value=response)
    controller.get_dash_manifest = AsyncMock(return_value=SimpleNamespace(streams=[]))
    return controller


def _make_uc(
    controller: AsyncMock,
    prober: AsyncMock,
    cipher: AsyncMock,
    **kwargs: Any,
) -> StreamManifestUseCase:
    return StreamManifestUseCase(
        controller=controller,
        builder=StreamInfoBuilder(prober, cipher),
        **kwargs,
    )


@pytest.fixture()
def player_response(player_document: dict[str, Any]) -> PlayerResponse:
    return PlayerResponse(player_document)


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestExecute:
    async def test_builds_all_streams_in_order(
        self,
        video_id: VideoId,
        player_response: PlayerResponse,
        mock_prober: AsyncMock,
        mock_cipher: AsyncMock,
    ) -> None:
        uc = _make_uc(_controller(player_response), mock_prober, mock_cipher)

        manifest = await uc.execute(video_id)

        assert [type(s) for s in manifest] == [
            MuxedStreamInfo,
            VideoOnlyStreamInfo,
            AudioOnlyStreamInfo,
        ]
        video = manifest.get_video_only_streams()[0]
        assert video.video_resolution.width == 1920
        assert video.size.bytes == 123456

    async def test_accepts_url_as_video_id(
        self,
        player_response: PlayerResponse,
        mock_prober: AsyncMock,
        mock_cipher: AsyncMock,
    ) -> None:
        controller = _controller(player_response)
        uc = _make_uc(controller, mock_prober, mock_cipher)

        await uc.execute("https://youtu.be/dQw4w9WgXcQ")

        assert controller.get_player_response.await_args.args[0] == VideoId(
            "dQw4w9WgXcQ"
        )

    async def test_invalid_video_id_raises(
        self, mock_prober: AsyncMock, mock_cipher: AsyncMock
    ) -> None:
        uc = _make_uc(_controller(None), mock_prober, mock_cipher)
        with pytest.raises(ValueError):
            await uc.execute("definitely not an id")

    async def test_parallel_build_preserves_order(
        self,
        video_id: VideoId,
        player_response: PlayerResponse,
        mock_prober: AsyncMock,
        mock_cipher: AsyncMock,
    ) -> None:
        uc = _make_uc(
            _controller(player_response), mock_prober, mock_cipher, probe_concurrency=4
        )

        manifest = await uc.execute(video_id)

        assert [s.bitrate.bits_per_second for s in manifest] == [
            500000,
            4000000,
            130000,
        ]

    async def test_resolve_uses_supplied_response(
        self,
        video_id: VideoId,
        player_response: PlayerResponse,
        mock_prober: AsyncMock,
        mock_cipher: AsyncMock,
    ) -> None:
        controller = _controller(None)
        uc = _make_uc(controller, mock_prober, mock_cipher)

        manifest = await uc.resolve(video_id, player_response)

        assert len(manifest) == 3
        controller.get_player_response.assert_not_awaited()

    async def test_repeated_resolution_filters_the_same_streams(
        self,
        video_id: VideoId,
        player_response: PlayerResponse,
        mock_prober: AsyncMock,
        mock_cipher: AsyncMock,
    ) -> None:
        async def _probe(stream_data: Any, url: str) -> int | None:
            return None if stream_data.itag == 137 else stream_data.content_length

        mock_prober.probe = AsyncMock(side_effect=_probe)
        uc = _make_uc(_controller(player_response), mock_prober, mock_cipher)

        first = await uc.execute(video_id)
        second = await uc.execute(video_id)

        assert first.streams == second.streams
        assert [type(s) for s in first] == [MuxedStreamInfo, AudioOnlyStreamInfo]


class _FailFastBuilder:
    """Fails on the muxed stream while the other builds are still probing."""

    def __init__(self) -> None:
        self.finished: list[int] = []
        self.cancelled: list[int] = []

    async def build(self, stream_data: Any) -> None:
        if stream_data.itag == 18:
            raise ExtractionError("Failed to extract the stream codec.")
        try:
            await asyncio.sleep(0.05)
        except asyncio.CancelledError:
            self.cancelled.append(stream_data.itag)
            raise
        self.finished.append(stream_data.itag)


class TestParallelBuild:
    async def test_failed_build_cancels_siblings(
        self, video_id: VideoId, player_response: PlayerResponse
    ) -> None:
        builder = _FailFastBuilder()
        uc = StreamManifestUseCase(
            controller=_controller(player_response),
            builder=builder,  # type: ignore[arg-type]
            probe_concurrency=3,
        )

        with pytest.raises(ExtractionError):
            await uc.execute(video_id)

        assert sorted(builder.cancelled) == [137, 140]
        await asyncio.sleep(0.1)
        assert builder.finished == []


# ---------------------------------------------------------------------------
# Playability checks
# ---------------------------------------------------------------------------


class TestPlayability:
    async def test_purchase_required(
        self,
        video_id: VideoId,
        mock_prober: AsyncMock,
        mock_cipher: AsyncMock,
    ) -> None:
        response = PlayerResponse(
            {
                "playabilityStatus": {
                    "status": "UNPLAYABLE",
                    "reason": "This video requires payment to watch.",
                    "errorScreen": {
                        "playerLegacyDesktopYpcTrailerRenderer": {
                            "trailerVideoId": "trailer0001"
                        }
                    },
                },
                "videoDetails": {},
            }
        )
        uc = _make_uc(_controller(response), mock_prober, mock_cipher)

        with pytest.raises(VideoRequiresPurchaseError) as exc_info:
            await uc.execute(video_id)

        assert exc_info.value.preview_video_id == "trailer0001"
        mock_prober.probe.assert_not_awaited()

    @pytest.mark.parametrize(
        "error_screen",
        [
            {"playerLegacyDesktopYpcTrailerRenderer": {"trailerVideoId": "trailer0001"}},
            {"ypcTrailerRenderer": {"playerVars": "autoplay=1&video_id=trailer0001"}},
            {
                "ypcTrailerRenderer": {
                    "playerResponse": base64.urlsafe_b64encode(
                        b"\x08\x01garbage video_id=trailer0001&more"
                    )
                    .decode()
                    .rstrip("=")
                }
            },
        ],
        ids=["direct", "player-vars", "encoded-blob"],
    )
    async def test_purchase_required_even_when_playable(
        self,
        video_id: VideoId,
        player_document: dict[str, Any],
        mock_prober: AsyncMock,
        mock_cipher: AsyncMock,
        error_screen: dict[str, Any],
    ) -> None:
        player_document["playabilityStatus"] = {
            "status": "OK",
            "errorScreen": error_screen,
        }
        response = PlayerResponse(player_document)
        assert response.is_playable
        uc = _make_uc(_controller(response), mock_prober, mock_cipher)

        with pytest.raises(VideoRequiresPurchaseError) as exc_info:
            await uc.execute(video_id)

        assert exc_info.value.preview_video_id == "trailer0001"
        mock_prober.probe.assert_not_awaited()

    async def test_unplayable_carries_reason(
        self, video_id: VideoId, mock_prober: AsyncMock, mock_cipher: AsyncMock
    ) -> None:
        response = PlayerResponse(
            {
                "playabilityStatus": {"status": "LOGIN_REQUIRED", "reason": "Sign in"},
                "videoDetails": {"videoId": "dQw4w9WgXcQ"},
            }
        )
        uc = _make_uc(_controller(response), mock_prober, mock_cipher)

        with pytest.raises(VideoUnplayableError) as exc_info:
            await uc.execute(video_id)

        assert not isinstance(exc_info.value, VideoUnavailableError)
        assert exc_info.value.reason == "Sign in"

    async def test_unavailable(
        self, video_id: VideoId, mock_prober: AsyncMock, mock_cipher: AsyncMock
    ) -> None:
        response = PlayerResponse(
            {"playabilityStatus": {"status": "ERROR", "reason": "Video unavailable"}}
        )
        uc = _make_uc(_controller(response), mock_prober, mock_cipher)

        with pytest.raises(VideoUnavailableError) as exc_info:
            await uc.execute(video_id)

        assert exc_info.value.reason == "Video unavailable"

    async def test_no_stream_descriptors(
        self, video_id: VideoId, mock_prober: AsyncMock, mock_cipher: AsyncMock
    ) -> None:
        response = PlayerResponse(
            {"playabilityStatus": {"status": "OK"}, "videoDetails": {}}
        )
        uc = _make_uc(_controller(response), mock_prober, mock_cipher)

        with pytest.raises(VideoUnplayableError, match="does not contain any playable"):
            await uc.execute(video_id)

    async def test_all_streams_dead(
        self,
        video_id: VideoId,
        player_response: PlayerResponse,
        mock_prober: AsyncMock,
        mock_cipher: AsyncMock,
    ) -> None:
        mock_prober.probe = AsyncMock(return_value=None)
        uc = _make_uc(_controller(player_response), mock_prober, mock_cipher)

        with pytest.raises(VideoUnplayableError, match="does not contain any playable"):
            await uc.execute(video_id)


# ---------------------------------------------------------------------------
# DASH manifest
# ---------------------------------------------------------------------------


class TestDashManifest:
    @pytest.fixture()
    def dash_document(self, player_document: dict[str, Any]) -> dict[str, Any]:
        player_document["streamingData"]["dashManifestUrl"] = _DASH_URL
        return player_document

    async def test_dash_streams_follow_primary_streams(
        self,
        video_id: VideoId,
        dash_document: dict[str, Any],
        stream_data_factory: Any,
        mock_prober: AsyncMock,
        mock_cipher: AsyncMock,
    ) -> None:
        controller = _controller(PlayerResponse(dash_document))
        controller.get_dash_manifest = AsyncMock(
            return_value=SimpleNamespace(
                streams=[stream_data_factory(itag=248, video_codec="vp9")]
            )
        )
        uc = _make_uc(controller, mock_prober, mock_cipher)

        manifest = await uc.execute(video_id)

        assert len(manifest) == 4
        assert manifest.streams[-1].video_codec == "vp9"
        controller.get_dash_manifest.assert_awaited_once_with(_DASH_URL)

    async def test_dash_network_failure_is_swallowed(
        self,
        video_id: VideoId,
        dash_document: dict[str, Any],
        mock_prober: AsyncMock,
        mock_cipher: AsyncMock,
    ) -> None:
        controller = _controller(PlayerResponse(dash_document))
        controller.get_dash_manifest = AsyncMock(
            side_effect=httpx.ConnectError("dash down")
        )
        uc = _make_uc(controller, mock_prober, mock_cipher)

        manifest = await uc.execute(video_id)

        assert len(manifest) == 3
        # Swallowed, so the whole resolution was not retried
        assert controller.get_player_response.await_count == 1

    async def test_dash_socket_error_is_swallowed(
        self,
        video_id: VideoId,
        dash_document: dict[str, Any],
        mock_prober: AsyncMock,
        mock_cipher: AsyncMock,
    ) -> None:
        controller = _controller(PlayerResponse(dash_document))
        controller.get_dash_manifest = AsyncMock(
            side_effect=ConnectionResetError("connection reset by peer")
        )
        uc = _make_uc(controller, mock_prober, mock_cipher)

        manifest = await uc.execute(video_id)

        assert len(manifest) == 3
        assert controller.get_player_response.await_count == 1

    async def test_dash_parse_failure_propagates(
        self,
        video_id: VideoId,
        dash_document: dict[str, Any],
        mock_prober: AsyncMock,
        mock_cipher: AsyncMock,
    ) -> None:
        controller = _controller(PlayerResponse(dash_document))
        controller.get_dash_manifest = AsyncMock(
            side_effect=ExtractionError("Failed to parse the DASH manifest.")
        )
        uc = _make_uc(controller, mock_prober, mock_cipher)

        with pytest.raises(ExtractionError, match="DASH"):
            await uc.execute(video_id)

    async def test_dash_disabled(
        self,
        video_id: VideoId,
        dash_document: dict[str, Any],
        mock_prober: AsyncMock,
        mock_cipher: AsyncMock,
    ) -> None:
        controller = _controller(PlayerResponse(dash_document))
        uc = _make_uc(controller, mock_prober, mock_cipher, include_dash_manifest=False)

        await uc.execute(video_id)

        controller.get_dash_manifest.assert_not_awaited()


# ---------------------------------------------------------------------------
# Retry
# ---------------------------------------------------------------------------


class TestRetry:
    async def test_transient_failures_are_retried(
        self,
        video_id: VideoId,
        player_response: PlayerResponse,
        mock_prober: AsyncMock,
        mock_cipher: AsyncMock,
    ) -> None:
        controller = _controller(None)
        controller.get_player_response = AsyncMock(
            side_effect=[
                httpx.ConnectError("refused"),
                httpx.ReadTimeout("slow"),
                player_response,
            ]
        )
        uc = _make_uc(controller, mock_prober, mock_cipher)

        manifest = await uc.execute(video_id)

        assert len(manifest) == 3
        assert controller.get_player_response.await_count == 3

    async def test_probe_failure_retries_whole_resolution(
        self,
        video_id: VideoId,
        player_response: PlayerResponse,
        mock_prober: AsyncMock,
        mock_cipher: AsyncMock,
    ) -> None:
        controller = _controller(player_response)
        results: list[Any] = [OSError("reset"), 50000, 123456, 3400000]
        mock_prober.probe = AsyncMock(side_effect=results)
        uc = _make_uc(controller, mock_prober, mock_cipher)

        manifest = await uc.execute(video_id)

        assert len(manifest) == 3
        assert controller.get_player_response.await_count == 2

    async def test_retries_exhausted_raise_last_error(
        self,
        video_id: VideoId,
        mock_prober: AsyncMock,
        mock_cipher: AsyncMock,
    ) -> None:
        controller = _controller(None)
        controller.get_player_response = AsyncMock(
            side_effect=httpx.ConnectError("refused")
        )
        uc = _make_uc(controller, mock_prober, mock_cipher, max_retries=2)

        with pytest.raises(httpx.ConnectError):
            await uc.execute(video_id)

        assert controller.get_player_response.await_count == 3

    async def test_default_budget_is_five_retries(
        self,
        video_id: VideoId,
        mock_prober: AsyncMock,
        mock_cipher: AsyncMock,
    ) -> None:
        controller = _controller(None)
        controller.get_player_response = AsyncMock(
            side_effect=httpx.ConnectError("refused")
        )
        uc = _make_uc(controller, mock_prober, mock_cipher)

        with pytest.raises(httpx.ConnectError):
            await uc.execute(video_id)

        assert controller.get_player_response.await_count == 6

    async def test_extraction_error_is_not_retried(
        self,
        video_id: VideoId,
        mock_prober: AsyncMock,
        mock_cipher: AsyncMock,
    ) -> None:
        controller = _controller(None)
        controller.get_player_response = AsyncMock(
            side_effect=ExtractionError("schema changed")
        )
        uc = _make_uc(controller, mock_prober, mock_cipher)

        with pytest.raises(ExtractionError):
            await uc.execute(video_id)

        assert controller.get_player_response.await_count == 1

    async def test_cancellation_is_not_retried(
        self,
        video_id: VideoId,
        mock_prober: AsyncMock,
        mock_cipher: AsyncMock,
    ) -> None:
        controller = _controller(None)
        controller.get_player_response = AsyncMock(side_effect=asyncio.CancelledError)
        uc = _make_uc(controller, mock_prober, mock_cipher)

        with pytest.raises(asyncio.CancelledError):
            await uc.execute(video_id)

        assert controller.get_player_response.await_count == 1

    async def test_resolve_retries_with_same_response(
        self,
        video_id: VideoId,
        player_response: PlayerResponse,
        mock_prober: AsyncMock,
        mock_cipher: AsyncMock,
    ) -> None:
        controller = _controller(None)
        mock_prober.probe = AsyncMock(
            side_effect=[httpx.ReadError("eof"), 50000, 123456, 3400000]
        )
        uc = _make_uc(controller, mock_prober, mock_cipher)

        manifest = await uc.resolve(video_id, player_response)

        assert len(manifest) == 3
        controller.get_player_response.assert_not_awaited()


# ---------------------------------------------------------------------------
# HLS
# ---------------------------------------------------------------------------


class TestHttpLiveStreamUrl:
    async def test_returns_hls_url(
        self,
        video_id: VideoId,
        player_document: dict[str, Any],
        mock_prober: AsyncMock,
        mock_cipher: AsyncMock,
    ) -> None:
        player_document["streamingData"]["hlsManifestUrl"] = "https://hls.example.com/m"
        uc = _make_uc(
            _controller(PlayerResponse(player_document)), mock_prober, mock_cipher
        )

        assert await uc.get_http_live_stream_url(video_id) == "https://hls.example.com/m"

    async def test_missing_hls_url_raises(
        self,
        video_id: VideoId,
        player_response: PlayerResponse,
        mock_prober: AsyncMock,
        mock_cipher: AsyncMock,
    ) -> None:
        uc = _make_uc(_controller(player_response), mock_prober, mock_cipher)

        with pytest.raises(ExtractionError, match="live stream"):
            await uc.get_http_live_stream_url(video_id)

    async def test_retries_player_response_fetch(
        self,
        video_id: VideoId,
        player_document: dict[str, Any],
        mock_prober: AsyncMock,
        mock_cipher: AsyncMock,
    ) -> None:
        player_document["streamingData"]["hlsManifestUrl"] = "https://hls.example.com/m"
        controller = _controller(None)
        controller.get_player_response = AsyncMock(
            side_effect=[httpx.ConnectError("refused"), PlayerResponse(player_document)]
        )
        uc = _make_uc(controller, mock_prober, mock_cipher)

        assert await uc.get_http_live_stream_url(video_id) == "https://hls.example.com/m"
        assert controller.get_player_response.await_count == 2
