"""Stream liveness and content-length probe.

The declared ``contentLength`` is sometimes stale and signed URLs expire,
so every stream is confirmed with a tail read of its last two bytes before
it is exposed. Streams without a declared length get a HEAD request first.

404 means the stream is gone and is reported as ``None``; any other error
status raises ``httpx.HTTPStatusError``.
"""

from __future__ import annotations

import httpx
import structlog

from tubestreams.domain.ports.stream_data import StreamData
from tubestreams.infrastructure.common.converters import to_int
from tubestreams.infrastructure.common.urls import get_segment_url

log = structlog.get_logger(__name__)

_NOT_FOUND = 404


class ContentLengthProber:
    """Determines the authoritative byte length of a stream URL.

    Args:
        http_client: Shared httpx.AsyncClient (injected).
        timeout_seconds: Per-request timeout; None uses the client default.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        timeout_seconds: float | None = None,
    ) -> None:
        self._http = http_client
        self._timeout = timeout_seconds

    def _request_kwargs(self) -> dict[str, object]:
        kwargs: dict[str, object] = {"follow_redirects": True}
        if self._timeout is not None:
            kwargs["timeout"] = self._timeout
        return kwargs

    async def probe(self, stream_data: StreamData, url: str) -> int | None:
        """Return the stream's content length, or None if the stream is dead."""
        content_length = stream_data.content_length

        if content_length is None:
            response = await self._http.head(url, **self._request_kwargs())
            if response.status_code == _NOT_FOUND:
                log.debug("stream_head_not_found", itag=stream_data.itag)
                return None
            response.raise_for_status()

            content_length = to_int(response.headers.get("content-length"))
            if content_length is None:
                log.debug("stream_head_no_length", itag=stream_data.itag)
                return None

        if not await self._tail_is_alive(url, content_length):
            log.debug(
                "stream_tail_not_found",
                itag=stream_data.itag,
                content_length=content_length,
            )
            return None

        return content_length

    async def _tail_is_alive(self, url: str, content_length: int) -> bool:
        """Request the final two bytes; False on 404, raise on other errors.

        Only the headers are read. Some CDNs ignore ``range`` and answer
        200 with the whole stream, so the body is never consumed.
        """
        tail_url = get_segment_url(
            url, max(content_length - 2, 0), max(content_length - 1, 0)
        )
        async with self._http.stream(
            "GET", tail_url, **self._request_kwargs()
        ) as response:
            if response.status_code == _NOT_FOUND:
                return False
            response.raise_for_status()
            return True
