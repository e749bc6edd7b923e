"""
IndexView Kernel — Shared Render Context

Carries the RenderContext to every renderer below a mounted view without
threading it through each call. Bound per render pass with `provide()`;
reading it anywhere else is a programming error and fails immediately.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

from indexview.kernel.types import RenderContext


class ContextNotEstablished(RuntimeError):
    """A renderer read the shared context outside of a provide() scope."""

    pass


_current: ContextVar[RenderContext | None] = ContextVar("indexview_render_context", default=None)


@contextmanager
def provide(context: RenderContext) -> Iterator[RenderContext]:
    """Bind `context` for the duration of the block; nested scopes shadow outer ones."""
    token = _current.set(context)
    try:
        yield context
    finally:
        _current.reset(token)


def use_context() -> RenderContext:
    context = _current.get()
    if context is None:
        raise ContextNotEstablished(
            "render context read outside of a mounted view; wrap the render in provide()"
        )
    return context


def has_context() -> bool:
    return _current.get() is not None
