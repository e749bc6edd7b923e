"""
IndexView configuration — all environment variables in one place.

Read from environment at runtime. Hosts that manage settings themselves
build a ViewSettings directly instead.
"""

from __future__ import annotations

import os

from indexview.kernel.types import ViewSettings, parse_bool


def _env_bool(name: str, default: bool) -> bool:
    return parse_bool(os.environ.get(name), default)


class Settings:
    """View-layer settings from environment variables."""

    # Rendering
    MAX_RECURSIVE_RENDER_DEPTH: int = int(os.environ.get("INDEXVIEW_MAX_RECURSIVE_RENDER_DEPTH", "4"))
    RENDER_NULL_AS: str = os.environ.get("INDEXVIEW_RENDER_NULL_AS", "\\-")
    DEFAULT_DATE_FORMAT: str = os.environ.get("INDEXVIEW_DATE_FORMAT", "%B %d, %Y")
    DEFAULT_DATETIME_FORMAT: str = os.environ.get("INDEXVIEW_DATETIME_FORMAT", "%I:%M %p - %B %d, %Y")

    # Refresh
    REFRESH_ENABLED: bool = _env_bool("INDEXVIEW_REFRESH_ENABLED", True)
    REFRESH_INTERVAL: int = int(os.environ.get("INDEXVIEW_REFRESH_INTERVAL", "2500"))  # ms


settings = Settings()


def load_view_settings(source: Settings | None = None) -> ViewSettings:
    """Build the ViewSettings the kernel consumes from environment-backed Settings."""
    s = source or settings
    return ViewSettings(
        max_recursive_render_depth=s.MAX_RECURSIVE_RENDER_DEPTH,
        render_null_as=s.RENDER_NULL_AS,
        refresh_enabled=s.REFRESH_ENABLED,
        refresh_interval=s.REFRESH_INTERVAL,
        default_date_format=s.DEFAULT_DATE_FORMAT,
        default_datetime_format=s.DEFAULT_DATETIME_FORMAT,
    )
