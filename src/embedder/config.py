"""Centralised configuration via Pydantic Settings."""

from __future__ import annotations

import tempfile
from pathlib import Path

from pydantic_settings import BaseSettings

_TMP = Path(tempfile.gettempdir())


class Settings(BaseSettings):
    """Application-wide configuration loaded from environment variables."""

    model_config = {"env_prefix": "EMBEDDER_", "frozen": True}

    # Container runtime
    # Explicit runtime executable; leave blank to search ``runtime_candidates``.
    runtime: str = ""
    runtime_candidates: tuple[str, ...] = ("podman", "docker")
    image_name: str = "embedder-container"
    container_prefix: str = "embedder"
    driver_binary: str = "geckodriver"

    # Cross-process locks
    build_lock_path: str = str(_TMP / "embedder-build.lock")
    port_lock_path: str = str(_TMP / "embedder-port.lock")
    lock_poll_interval: float = 0.5
    lock_timeout_seconds: int = 600

    # Port allocation
    port_range_start: int = 4444
    port_range_end: int = 4544

    # Timeouts
    command_timeout_seconds: int = 60
    build_timeout_seconds: int = 1800
    connect_timeout_seconds: int = 30
    request_timeout_seconds: int = 30
    download_timeout_seconds: int = 300

    # Relaunch attempts when the allocated port is taken before the container binds it
    launch_retries: int = 3

    # Static fetch
    user_agent: str = "Mozilla/5.0 (compatible; embedder)"

    # Log at DEBUG, including image build output and driver connection polls
    debug: bool = False


def get_settings() -> Settings:
    """Factory; allows overriding in tests."""
    return Settings()
