"""
IndexView Kernel — the view layer.

Four components:
  renderer  — render_literal: any runtime value → markup nodes (depth-bounded)
  state     — IndexBackedState: recompute on revision change / visibility
  host      — markdown delegation, embedding, mount/unmount wrappers
  context   — shared RenderContext for everything below a mounted view

Supporting modules: markup (bs4 tree helpers), values (value model), events (bus),
types (settings, context, constants).
"""

from indexview.kernel.context import ContextNotEstablished, provide, use_context
from indexview.kernel.events import EventBus
from indexview.kernel.host import (
    App,
    Component,
    IndexBackedView,
    ViewContainer,
    ViewRenderer,
    embed_html,
    markdown_span,
    render_markdown,
)
from indexview.kernel.renderer import render_literal
from indexview.kernel.state import IndexBackedState
from indexview.kernel.types import RenderContext, ViewSettings
from indexview.kernel.values import DataArray, Link, MemoryIndex

__all__ = [
    "App",
    "Component",
    "ContextNotEstablished",
    "DataArray",
    "EventBus",
    "IndexBackedState",
    "IndexBackedView",
    "Link",
    "MemoryIndex",
    "RenderContext",
    "ViewContainer",
    "ViewRenderer",
    "ViewSettings",
    "embed_html",
    "markdown_span",
    "provide",
    "render_literal",
    "render_markdown",
    "use_context",
]
