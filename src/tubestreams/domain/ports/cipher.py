"""Port for obtaining the signature cipher capability."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from tubestreams.domain.entities.cipher import CipherManifest


@runtime_checkable
class CipherManifestResolverPort(Protocol):
    """Produces the cipher manifest for the platform's current player.

    Implementations download and analyse the player script. This is
    expensive, so callers cache the result for the lifetime of a client.
    """

    async def resolve(self) -> CipherManifest | None:
        """Return the cipher manifest, or None if it could not be extracted."""
        ...
