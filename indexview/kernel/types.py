"""
IndexView Kernel — Shared Types

Data classes and protocols used across the renderer, the index-backed state
and the host bridge. These are the contracts that bind the kernel together.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from indexview.kernel.host import App, Component
    from bs4 import Tag


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Workspace event fired by the index once a burst of changes has settled.
REFRESH_EVENT = "dataview:refresh-views"

TRUNCATION_PLACEHOLDER = "..."
FUNCTION_PLACEHOLDER = "<function>"
EMPTY_LIST_PLACEHOLDER = "<Empty List>"
EMPTY_OBJECT_PLACEHOLDER = "<Empty Object>"
SEPARATOR = ", "

TRUTHY_STRINGS = ("1", "true", "yes", "on")


def parse_bool(value: Any, default: bool) -> bool:
    """Settings flags arrive as bools or as strings like "false" from JSON and env."""
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_STRINGS
    return bool(value)


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


class IndexHandle(Protocol):
    """
    Anything exposing a monotonically increasing `revision`.
    Equal revisions mean no data changed between the two observations.
    """

    @property
    def revision(self) -> int: ...


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class ViewSettings:
    """The subset of plugin settings the view layer reads."""

    max_recursive_render_depth: int = 4
    render_null_as: str = "\\-"
    refresh_enabled: bool = True
    refresh_interval: int = 2500  # ms; the index uses it to debounce REFRESH_EVENT
    default_date_format: str = "%B %d, %Y"
    default_datetime_format: str = "%I:%M %p - %B %d, %Y"

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_recursive_render_depth": self.max_recursive_render_depth,
            "render_null_as": self.render_null_as,
            "refresh_enabled": self.refresh_enabled,
            "refresh_interval": self.refresh_interval,
            "default_date_format": self.default_date_format,
            "default_datetime_format": self.default_datetime_format,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ViewSettings:
        defaults = cls()
        return cls(
            max_recursive_render_depth=int(d.get("max_recursive_render_depth", defaults.max_recursive_render_depth)),
            render_null_as=d.get("render_null_as", defaults.render_null_as),
            refresh_enabled=parse_bool(d.get("refresh_enabled"), defaults.refresh_enabled),
            refresh_interval=int(d.get("refresh_interval", defaults.refresh_interval)),
            default_date_format=d.get("default_date_format", defaults.default_date_format),
            default_datetime_format=d.get("default_datetime_format", defaults.default_datetime_format),
        )


@dataclass(frozen=True)
class RenderContext:
    """
    Everything a renderer below a mounted view may need.
    Shared by reference across the whole subtree; rebuilt on every mount.
    """

    app: App
    component: Component
    index: IndexHandle
    settings: ViewSettings
    container: Tag
