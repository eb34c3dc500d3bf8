from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import httpx
import structlog

from tubestreams.domain.entities.streams import (
    AudioOnlyStreamInfo,
    MuxedStreamInfo,
    StreamInfo,
    StreamManifest,
    VideoOnlyStreamInfo,
)
from tubestreams.domain.exceptions import TubeStreamsError
from tubestreams.infrastructure.config import load_config
from tubestreams.infrastructure.config.schema import AppConfig
from tubestreams.infrastructure.logging.setup import configure_logging
from tubestreams.interfaces.composition import StreamClient

log = structlog.get_logger(__name__)


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="tubestreams")

    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file.",
    )
    parser.add_argument(
        "--dotenv",
        default=None,
        help="Path to .env file.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )
    parser.add_argument(
        "--probe-concurrency",
        default=None,
        type=int,
        help="Streams probed in parallel.",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    manifest = commands.add_parser("manifest", help="Print the stream manifest.")
    manifest.add_argument("video", help="Video id or URL.")

    hls = commands.add_parser("hls", help="Print the HLS manifest URL.")
    hls.add_argument("video", help="Video id or URL.")

    return parser.parse_args(argv)


def stream_to_dict(stream: StreamInfo) -> dict[str, Any]:
    data: dict[str, Any] = {
        "url": stream.url,
        "container": stream.container.name,
        "size_bytes": stream.size.bytes,
        "bitrate_bps": stream.bitrate.bits_per_second,
    }
    if isinstance(stream, MuxedStreamInfo):
        data["kind"] = "muxed"
    elif isinstance(stream, VideoOnlyStreamInfo):
        data["kind"] = "video"
    else:
        data["kind"] = "audio"

    if isinstance(stream, (MuxedStreamInfo, AudioOnlyStreamInfo)):
        data["audio_codec"] = stream.audio_codec
        data["language"] = stream.language
    if isinstance(stream, (MuxedStreamInfo, VideoOnlyStreamInfo)):
        data["video_codec"] = stream.video_codec
        data["quality"] = stream.video_quality.label
        data["width"] = stream.video_resolution.width
        data["height"] = stream.video_resolution.height
    return data


def manifest_to_dicts(manifest: StreamManifest) -> list[dict[str, Any]]:
    return [stream_to_dict(stream) for stream in manifest]


async def _run(config: AppConfig, args: argparse.Namespace) -> Any:
    async with StreamClient(config) as client:
        if args.command == "hls":
            return {"url": await client.get_http_live_stream_url(args.video)}
        return manifest_to_dicts(await client.get_manifest(args.video))


def start(argv: Iterable[str] | None = None) -> int:
    """Process entrypoint: load config once, configure logging, run one command."""
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)

    cli_overrides: dict[str, Any] = {}
    if args.log_level:
        cli_overrides["log_level"] = args.log_level
    if args.log_format:
        cli_overrides["log_format"] = args.log_format
    if args.probe_concurrency is not None:
        cli_overrides["streams_probe_concurrency"] = args.probe_concurrency

    config = load_config(
        config_path=Path(args.config) if args.config else None,
        dotenv_path=Path(args.dotenv) if args.dotenv else None,
        cli_overrides=cli_overrides,
    )
    configure_logging(config)

    try:
        result = asyncio.run(_run(config, args))
    except (TubeStreamsError, ValueError, httpx.HTTPError) as exc:
        log.error("command_failed", command=args.command, error=str(exc))
        return 1

    json.dump(result, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(start())
