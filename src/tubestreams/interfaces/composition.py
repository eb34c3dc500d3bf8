"""Composition root: wires config, HTTP client and the resolution pipeline."""

from __future__ import annotations

from types import TracebackType

import httpx
import structlog

from tubestreams.application.use_cases.stream_manifest import StreamManifestUseCase
from tubestreams.domain.entities.streams import StreamManifest
from tubestreams.domain.entities.video import VideoId
from tubestreams.domain.ports.cipher import CipherManifestResolverPort
from tubestreams.infrastructure.config.schema import AppConfig
from tubestreams.infrastructure.youtube import (
    CipherManifestCache,
    ContentLengthProber,
    HttpxYoutubeController,
    StreamInfoBuilder,
)

log = structlog.get_logger(__name__)


def create_http_client(config: AppConfig) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=config.http_follow_redirects,
    )


class StreamClient:
    """Entry point for resolving the streams of a video.

    Usable as an async context manager. A client passed in via
    ``http_client`` stays owned by the caller and is not closed here.

    Args:
        config: Validated application config.
        http_client: Optional shared ``httpx.AsyncClient``.
        cipher_resolver: Produces the cipher manifest for signed stream
            URLs. Without one, signed streams fail with ``ExtractionError``.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        cipher_resolver: CipherManifestResolverPort | None = None,
    ) -> None:
        self._config = config or AppConfig()
        self._owns_http_client = http_client is None
        self._http = http_client or create_http_client(self._config)

        streams = self._config.streams

        # 1) Network adapter
        controller = HttpxYoutubeController(
            self._http,
            player_api_url=streams.player_api_url,
            client_name=streams.player_client_name,
            client_version=streams.player_client_version,
        )

        # 2) Per-client cipher cache (resolved at most once)
        self._cipher = CipherManifestCache(cipher_resolver)

        # 3) Stream builder
        builder = StreamInfoBuilder(
            ContentLengthProber(
                self._http, timeout_seconds=self._config.http_timeout_seconds
            ),
            self._cipher,
        )

        # 4) Orchestrator
        self._manifests = StreamManifestUseCase(
            controller=controller,
            builder=builder,
            max_retries=streams.max_retries,
            probe_concurrency=streams.probe_concurrency,
            include_dash_manifest=streams.include_dash_manifest,
        )
        log.debug(
            "stream_client_initialized",
            owns_http_client=self._owns_http_client,
            has_cipher_resolver=cipher_resolver is not None,
        )

    async def get_manifest(self, video_id: VideoId | str) -> StreamManifest:
        """Resolve every playable stream of *video_id*."""
        return await self._manifests.execute(video_id)

    async def get_http_live_stream_url(self, video_id: VideoId | str) -> str:
        """HLS manifest URL of a live video."""
        return await self._manifests.get_http_live_stream_url(video_id)

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http.aclose()
            log.debug("http_client_closed")

    async def __aenter__(self) -> StreamClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
