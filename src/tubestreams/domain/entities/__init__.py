from .cipher import (
    CipherManifest,
    ReverseOperation,
    SpliceOperation,
    SwapOperation,
)
from .streams import (
    AudioOnlyStreamInfo,
    Bitrate,
    Container,
    FileSize,
    MuxedStreamInfo,
    Resolution,
    StreamInfo,
    StreamManifest,
    VideoOnlyStreamInfo,
    VideoQuality,
)
from .video import VideoId

__all__ = [
    "AudioOnlyStreamInfo",
    "Bitrate",
    "CipherManifest",
    "Container",
    "FileSize",
    "MuxedStreamInfo",
    "Resolution",
    "ReverseOperation",
    "SpliceOperation",
    "StreamInfo",
    "StreamManifest",
    "SwapOperation",
    "VideoId",
    "VideoOnlyStreamInfo",
    "VideoQuality",
]
