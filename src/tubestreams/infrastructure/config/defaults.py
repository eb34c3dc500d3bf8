"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "tubestreams",
    "environment": "dev",
    "http": {
        "timeout_seconds": 30.0,
        "follow_redirects": True,
        "user_agent": "tubestreams/0.1.0",
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "streams": {
        "max_retries": 5,
        "probe_concurrency": 1,
        "include_dash_manifest": True,
        "player_api_url": "https://www.youtube.com/youtubei/v1/player",
        "player_client_name": "ANDROID_VR",
        "player_client_version": "1.60.19",
    },
}
