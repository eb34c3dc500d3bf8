"""Stream classifier: raw descriptors -> typed stream infos.

For every descriptor the builder
1. requires itag and url,
2. deciphers the signature (if any) into the URL,
3. probes the real content length, skipping dead streams,
4. requires container and bitrate,
5. classifies by codecs into muxed / video-only / audio-only.

Missing mandatory attributes raise ``ExtractionError``; dead streams are
dropped silently.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable
from typing import Protocol

import structlog

from tubestreams.domain.entities.cipher import CipherManifest
from tubestreams.domain.entities.streams import (
    AudioOnlyStreamInfo,
    Bitrate,
    Container,
    FileSize,
    MuxedStreamInfo,
    Resolution,
    StreamInfo,
    VideoOnlyStreamInfo,
    VideoQuality,
)
from tubestreams.domain.exceptions import ExtractionError
from tubestreams.domain.ports.stream_data import StreamData
from tubestreams.infrastructure.common.converters import null_if_blank
from tubestreams.infrastructure.common.urls import set_query_parameter

log = structlog.get_logger(__name__)

_DEFAULT_SIGNATURE_PARAMETER = "sig"
_DEFAULT_FRAMERATE = 24


class _ContentLengthProber(Protocol):
    async def probe(self, stream_data: StreamData, url: str) -> int | None: ...


class _CipherSource(Protocol):
    async def get(self) -> CipherManifest: ...


def _resolve_video_quality(stream_data: StreamData, itag: int) -> VideoQuality:
    framerate = stream_data.video_framerate
    if framerate is None:
        framerate = _DEFAULT_FRAMERATE
    label = null_if_blank(stream_data.video_quality_label)
    if label is not None:
        return VideoQuality.from_label(label, framerate)
    return VideoQuality.from_itag(itag, framerate)


def _resolve_video_resolution(
    stream_data: StreamData, quality: VideoQuality
) -> Resolution:
    if stream_data.video_width is not None and stream_data.video_height is not None:
        return Resolution(stream_data.video_width, stream_data.video_height)
    return quality.get_default_video_resolution()


class StreamInfoBuilder:
    """Turns ``StreamData`` into ``StreamInfo`` variants.

    Args:
        prober: Content-length/liveness prober.
        cipher: Resolve-once source of the cipher manifest.
    """

    def __init__(self, prober: _ContentLengthProber, cipher: _CipherSource) -> None:
        self._prober = prober
        self._cipher = cipher

    async def build(self, stream_data: StreamData) -> StreamInfo | None:
        """Build one stream info, or return None if the stream is dead."""
        itag = stream_data.itag
        if itag is None:
            raise ExtractionError("Failed to extract the stream itag.")

        url = stream_data.url
        if url is None:
            raise ExtractionError("Failed to extract the stream URL.")

        signature = null_if_blank(stream_data.signature)
        if signature is not None:
            cipher_manifest = await self._cipher.get()
            url = set_query_parameter(
                url,
                stream_data.signature_parameter or _DEFAULT_SIGNATURE_PARAMETER,
                cipher_manifest.decipher(signature),
            )

        content_length = await self._prober.probe(stream_data, url)
        if content_length is None:
            log.info("stream_skipped_dead", itag=itag)
            return None

        if not stream_data.container:
            raise ExtractionError("Failed to extract the stream container.")
        container = Container(stream_data.container)

        if stream_data.bitrate is None:
            raise ExtractionError("Failed to extract the stream bitrate.")
        bitrate = Bitrate(stream_data.bitrate)

        size = FileSize(content_length)
        language = stream_data.audio_track_name
        audio_codec = null_if_blank(stream_data.audio_codec)
        video_codec = null_if_blank(stream_data.video_codec)

        if video_codec is not None:
            quality = _resolve_video_quality(stream_data, itag)
            resolution = _resolve_video_resolution(stream_data, quality)

            if audio_codec is not None:
                return MuxedStreamInfo(
                    url=url,
                    container=container,
                    size=size,
                    bitrate=bitrate,
                    audio_codec=audio_codec,
                    video_codec=video_codec,
                    video_quality=quality,
                    video_resolution=resolution,
                    language=language,
                )

            return VideoOnlyStreamInfo(
                url=url,
                container=container,
                size=size,
                bitrate=bitrate,
                video_codec=video_codec,
                video_quality=quality,
                video_resolution=resolution,
            )

        if audio_codec is not None:
            return AudioOnlyStreamInfo(
                url=url,
                container=container,
                size=size,
                bitrate=bitrate,
                audio_codec=audio_codec,
                language=language,
            )

        raise ExtractionError("Failed to extract the stream codec.")

    async def iter_stream_infos(
        self, stream_datas: Iterable[StreamData]
    ) -> AsyncIterator[StreamInfo]:
        """Lazily build streams in input order, skipping dead ones."""
        for stream_data in stream_datas:
            stream_info = await self.build(stream_data)
            if stream_info is not None:
                yield stream_info
