from .stream_manifest import StreamManifestUseCase

__all__ = ["StreamManifestUseCase"]
