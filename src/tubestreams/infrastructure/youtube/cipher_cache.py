"""Resolve-once cache for the signature cipher manifest."""

from __future__ import annotations

import asyncio

import structlog

from tubestreams.domain.entities.cipher import CipherManifest
from tubestreams.domain.exceptions import ExtractionError
from tubestreams.domain.ports.cipher import CipherManifestResolverPort

log = structlog.get_logger(__name__)


class CipherManifestCache:
    """Lazily resolves the cipher manifest once per client.

    Concurrent first callers wait on an ``asyncio.Lock``; only the first one
    runs the resolver, the others reuse its result. A failed resolution is
    not cached, so the next caller tries again.
    """

    def __init__(self, resolver: CipherManifestResolverPort | None) -> None:
        self._resolver = resolver
        self._manifest: CipherManifest | None = None
        self._lock = asyncio.Lock()

    @property
    def is_resolved(self) -> bool:
        return self._manifest is not None

    async def get(self) -> CipherManifest:
        if self._manifest is not None:
            return self._manifest

        async with self._lock:
            # Double-check after acquiring lock
            if self._manifest is not None:
                return self._manifest

            if self._resolver is None:
                raise ExtractionError(
                    "Failed to extract the cipher manifest: no resolver configured."
                )

            manifest = await self._resolver.resolve()
            if manifest is None:
                raise ExtractionError("Failed to extract the cipher manifest.")

            self._manifest = manifest
            log.info(
                "cipher_manifest_resolved",
                signature_timestamp=manifest.signature_timestamp,
                operations=len(manifest.operations),
            )
            return manifest
