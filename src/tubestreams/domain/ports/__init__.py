from .cipher import CipherManifestResolverPort
from .stream_data import StreamData

__all__ = ["CipherManifestResolverPort", "StreamData"]
