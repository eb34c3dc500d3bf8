"""Stream manifest resolution use case.

video id -> player response -> purchase/playability checks
-> primary streams -> DASH streams (best effort) -> StreamManifest,
with the whole sequence retried on transient network failures.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Iterable, Sequence
from typing import Protocol

import httpx
import structlog

from tubestreams.domain.entities.streams import StreamInfo, StreamManifest
from tubestreams.domain.entities.video import VideoId
from tubestreams.domain.exceptions import (
    ExtractionError,
    VideoRequiresPurchaseError,
    VideoUnavailableError,
    VideoUnplayableError,
)
from tubestreams.domain.ports.stream_data import StreamData

# ---------------------------------------------------------------------------
# Collaborator shapes. The youtube infrastructure classes match these
# structurally.
# ---------------------------------------------------------------------------


class _PlayerResponse(Protocol):
    @property
    def preview_video_id(self) -> str | None: ...

    @property
    def is_available(self) -> bool: ...

    @property
    def is_playable(self) -> bool: ...

    @property
    def playability_error(self) -> str | None: ...

    @property
    def streams(self) -> Sequence[StreamData]: ...

    @property
    def dash_manifest_url(self) -> str | None: ...

    @property
    def hls_manifest_url(self) -> str | None: ...


class _DashManifest(Protocol):
    @property
    def streams(self) -> Sequence[StreamData]: ...


class _Controller(Protocol):
    async def get_player_response(self, video_id: VideoId) -> _PlayerResponse: ...

    async def get_dash_manifest(self, url: str) -> _DashManifest: ...


class _StreamBuilder(Protocol):
    async def build(self, stream_data: StreamData) -> StreamInfo | None: ...

    def iter_stream_infos(
        self, stream_datas: Iterable[StreamData]
    ) -> AsyncIterator[StreamInfo]: ...


log = structlog.get_logger(__name__)

# Failures worth another attempt. OSError covers socket-level I/O errors
# raised outside httpx's own exception hierarchy.
_TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (httpx.HTTPError, OSError)

DEFAULT_MAX_RETRIES = 5


def _coerce_video_id(video_id: VideoId | str) -> VideoId:
    return video_id if isinstance(video_id, VideoId) else VideoId.parse(video_id)


class StreamManifestUseCase:
    """Resolves the stream manifest of one video.

    Args:
        controller: Fetches player responses and DASH manifests.
        builder: Turns raw stream data into typed stream infos.
        max_retries: Additional attempts after a transient failure.
        probe_concurrency: Streams built in parallel (1 = sequential).
        include_dash_manifest: Merge streams from the DASH manifest.
    """

    def __init__(
        self,
        *,
        controller: _Controller,
        builder: _StreamBuilder,
        max_retries: int = DEFAULT_MAX_RETRIES,
        probe_concurrency: int = 1,
        include_dash_manifest: bool = True,
    ) -> None:
        self._controller = controller
        self._builder = builder
        self._max_retries = max_retries
        self._probe_concurrency = max(1, probe_concurrency)
        self._include_dash_manifest = include_dash_manifest

    async def execute(self, video_id: VideoId | str) -> StreamManifest:
        """Fetch the player response for *video_id* and resolve its streams."""
        video_id = _coerce_video_id(video_id)
        return await self._with_retries(video_id, None)

    async def resolve(
        self, video_id: VideoId | str, player_response: _PlayerResponse
    ) -> StreamManifest:
        """Resolve streams from an already fetched player response."""
        video_id = _coerce_video_id(video_id)
        return await self._with_retries(video_id, player_response)

    async def get_http_live_stream_url(self, video_id: VideoId | str) -> str:
        """HLS manifest URL of a playable (live) video."""
        video_id = _coerce_video_id(video_id)
        attempt = 0
        while True:
            try:
                player_response = await self._controller.get_player_response(video_id)
                break
            except _TRANSIENT_ERRORS as exc:
                if attempt >= self._max_retries:
                    raise
                attempt += 1
                log.warning(
                    "player_response_retry",
                    video_id=str(video_id),
                    attempt=attempt,
                    error=str(exc),
                )

        self._ensure_playable(video_id, player_response)

        hls_url = player_response.hls_manifest_url
        if not hls_url:
            raise ExtractionError(
                "Failed to extract the HTTP Live Stream manifest URL. "
                f"Video '{video_id}' is likely not a live stream."
            )
        return hls_url

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _with_retries(
        self, video_id: VideoId, player_response: _PlayerResponse | None
    ) -> StreamManifest:
        attempt = 0
        while True:
            try:
                streams = await self._resolve_streams(video_id, player_response)
                return StreamManifest(tuple(streams))
            except _TRANSIENT_ERRORS as exc:
                if attempt >= self._max_retries:
                    log.error(
                        "stream_manifest_retries_exhausted",
                        video_id=str(video_id),
                        attempts=attempt + 1,
                        error=str(exc),
                    )
                    raise
                attempt += 1
                log.warning(
                    "stream_manifest_retry",
                    video_id=str(video_id),
                    attempt=attempt,
                    max_retries=self._max_retries,
                    error=str(exc),
                )

    async def _resolve_streams(
        self, video_id: VideoId, player_response: _PlayerResponse | None
    ) -> list[StreamInfo]:
        if player_response is None:
            player_response = await self._controller.get_player_response(video_id)

        self._ensure_playable(video_id, player_response)

        streams = await self._build_streams(player_response.streams)
        log.debug(
            "primary_streams_built",
            video_id=str(video_id),
            total=len(player_response.streams),
            alive=len(streams),
        )

        dash_url = player_response.dash_manifest_url
        if self._include_dash_manifest and dash_url:
            streams.extend(await self._build_dash_streams(video_id, dash_url))

        if not streams:
            raise VideoUnplayableError(
                f"Video '{video_id}' does not contain any playable streams."
            )

        log.info("stream_manifest_resolved", video_id=str(video_id), streams=len(streams))
        return streams

    def _ensure_playable(
        self, video_id: VideoId, player_response: _PlayerResponse
    ) -> None:
        preview_video_id = player_response.preview_video_id
        if preview_video_id:
            raise VideoRequiresPurchaseError(
                f"Video '{video_id}' requires purchase and cannot be played.",
                preview_video_id,
            )

        if not player_response.is_playable:
            reason = player_response.playability_error
            error_cls = (
                VideoUnplayableError
                if player_response.is_available
                else VideoUnavailableError
            )
            raise error_cls(
                f"Video '{video_id}' is unplayable. Reason: '{reason}'.", reason
            )

    async def _build_dash_streams(
        self, video_id: VideoId, dash_url: str
    ) -> list[StreamInfo]:
        """Streams from the DASH manifest; network failures yield none."""
        try:
            dash_manifest = await self._controller.get_dash_manifest(dash_url)
            return await self._build_streams(dash_manifest.streams)
        except _TRANSIENT_ERRORS as exc:
            log.warning(
                "dash_manifest_failed",
                video_id=str(video_id),
                error=str(exc),
            )
            return []

    async def _build_streams(
        self, stream_datas: Sequence[StreamData]
    ) -> list[StreamInfo]:
        if self._probe_concurrency == 1:
            return [s async for s in self._builder.iter_stream_infos(stream_datas)]

        semaphore = asyncio.Semaphore(self._probe_concurrency)

        async def _build_one(stream_data: StreamData) -> StreamInfo | None:
            async with semaphore:
                return await self._builder.build(stream_data)

        tasks = [asyncio.ensure_future(_build_one(sd)) for sd in stream_datas]
        try:
            results = await asyncio.gather(*tasks)
        finally:
            # A failed build must not leave its siblings probing the network.
            pending = [t for t in tasks if not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
        return [r for r in results if r is not None]
