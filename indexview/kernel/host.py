"""
IndexView Kernel — Host Bridge

Glue between the view layer and the host application:

  Component / MarkdownRenderChild   host lifecycle primitives (load/unload)
  ViewContainer                     host element with a visibility signal
  render_markdown                   async delegation to the markup renderer
  markdown_span / embed_html        nodes that receive delegated markup
  ViewRenderer                      mounts a render function under the
                                    shared context into a container
  IndexBackedView                   ViewRenderer driven by IndexBackedState

This is where async work happens. The value renderer itself is synchronous;
markdown delegation is scheduled on the owning component and can be awaited
with `settle()`.
"""

from __future__ import annotations

import asyncio
import logging
import xml.etree.ElementTree as etree
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Coroutine, Generic, Protocol, TypeVar

import markdown as markdown_lib
from bs4 import Tag
from bs4.element import PageElement
from markdown.extensions import Extension
from markdown.inlinepatterns import InlineProcessor

from indexview.kernel.context import provide, use_context
from indexview.kernel.events import EventBus, EventRef
from indexview.kernel.markup import DOCUMENT, flatten, new_tag, parse_fragment
from indexview.kernel.state import IndexBackedState, create_task
from indexview.kernel.types import IndexHandle, RenderContext, ViewSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Markup renderer
# ---------------------------------------------------------------------------


class MarkupRenderer(Protocol):
    async def render_markdown(
        self,
        markdown: str,
        el: Tag,
        source_path: str,
        component: Component,
    ) -> None:
        """Render `markdown` into `el` in place."""
        ...


WIKILINK_PATTERN = r"(!?)\[\[([^\]|]+)(?:\|([^\]]+))?\]\]"


class WikiLinkInlineProcessor(InlineProcessor):
    """[[target|display]] to an internal link; ![[target]] to an embed placeholder."""

    def handleMatch(self, m, data):
        embed, target, display = m.group(1), m.group(2).strip(), m.group(3)
        if embed:
            el = etree.Element("span")
            el.set("class", "internal-embed")
            el.set("src", target)
        else:
            el = etree.Element("a")
            el.set("class", "internal-link")
            el.set("data-href", target)
            el.set("href", target)
            el.text = (display or target).strip()
        return el, m.start(0), m.end(0)


class WikiLinkExtension(Extension):
    def extendMarkdown(self, md):
        # Below backticks (190) so code spans stay literal.
        md.inlinePatterns.register(WikiLinkInlineProcessor(WIKILINK_PATTERN, md), "indexview_wikilink", 75)


class MarkdownLibRenderer:
    """
    Default markup renderer backed by the `markdown` library.
    Raw HTML passes through, minus scripts, frames and event handlers.
    """

    def __init__(self, extensions: list[Any] | None = None) -> None:
        self.extensions = extensions if extensions is not None else ["extra", "sane_lists"]

    def to_html(self, text: str) -> str:
        return markdown_lib.markdown(text, extensions=[*self.extensions, WikiLinkExtension()])

    async def render_markdown(
        self,
        markdown: str,
        el: Tag,
        source_path: str,
        component: Component,
    ) -> None:
        el.extend(parse_fragment(self.to_html(markdown)))


@dataclass
class App:
    """The host application handle: workspace event bus plus markup renderer."""

    workspace: EventBus = field(default_factory=EventBus)
    markdown: MarkupRenderer = field(default_factory=MarkdownLibRenderer)


# ---------------------------------------------------------------------------
# Lifecycle primitives
# ---------------------------------------------------------------------------


class Component:
    """
    Host lifecycle unit. load()/unload() are idempotent; disposers registered
    while loaded run exactly once on unload; children follow the parent.
    """

    def __init__(self) -> None:
        self._state = "new"  # "new" | "loaded" | "unloaded"
        self._children: list[Component] = []
        self._disposers: list[Callable[[], Any]] = []
        self._tasks: set[asyncio.Task] = set()
        self._failures: list[BaseException] = []

    @property
    def loaded(self) -> bool:
        return self._state == "loaded"

    @property
    def unloaded(self) -> bool:
        return self._state == "unloaded"

    def load(self) -> None:
        if self._state == "loaded":
            return
        self._state = "loaded"
        self.on_load()
        for child in list(self._children):
            child.load()

    def unload(self) -> None:
        if self._state != "loaded":
            return
        self._state = "unloaded"
        for child in reversed(self._children):
            child.unload()
        while self._disposers:
            self._disposers.pop()()
        self.on_unload()

    def on_load(self) -> None:
        pass

    def on_unload(self) -> None:
        pass

    def add_child(self, child: Component) -> Component:
        self._children.append(child)
        if self.loaded:
            child.load()
        return child

    def register(self, disposer: Callable[[], Any]) -> None:
        self._disposers.append(disposer)

    def register_event(self, bus: EventBus, name: str, callback: Callable[..., Any]) -> EventRef:
        ref = bus.on(name, callback)
        self.register(lambda: bus.offref(ref))
        return ref

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        """Run `coro` as a tracked task; its failure surfaces from settle()."""
        task = create_task(coro, self._tasks)
        task.add_done_callback(self._record_failure)
        return task

    def _record_failure(self, task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception() is not None:
            self._failures.append(task.exception())

    async def settle(self) -> None:
        """Wait for every spawned task (own and children's); re-raise the first failure."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        for child in list(self._children):
            await child.settle()
        if self._failures:
            failure = self._failures.pop(0)
            self._failures.clear()
            raise failure


class MarkdownRenderChild(Component):
    """A component that owns a container element."""

    def __init__(self, container_el: Tag) -> None:
        super().__init__()
        self.container_el = container_el


class ViewContainer(Tag):
    """
    Host container element. Knows whether it is currently shown and signals
    hidden → shown transitions to `on_node_inserted` listeners.
    """

    def __init__(self, name: str = "div", attrs: dict[str, str] | None = None, shown: bool = True) -> None:
        super().__init__(builder=DOCUMENT.builder, name=name, attrs=dict(attrs or {}))
        self._shown = shown
        self._inserted: list[Callable[[], Any]] = []

    def is_shown(self) -> bool:
        return self._shown

    def on_node_inserted(self, callback: Callable[[], Any]) -> Callable[[], None]:
        self._inserted.append(callback)

        def dispose() -> None:
            if callback in self._inserted:
                self._inserted.remove(callback)

        return dispose

    def show(self) -> None:
        if self._shown:
            return
        self._shown = True
        for callback in list(self._inserted):
            callback()

    def hide(self) -> None:
        self._shown = False

    @property
    def listener_count(self) -> int:
        return len(self._inserted)


# ---------------------------------------------------------------------------
# Markdown delegation and embedding
# ---------------------------------------------------------------------------


def unwrap_paragraphs(container: Tag) -> None:
    """Replace every <p> inside `container` with its own children."""
    paragraph = container.find("p")
    while paragraph is not None:
        paragraph.unwrap()
        paragraph = container.find("p")


async def render_markdown(
    content: str,
    container: Tag,
    source_path: str,
    component: Component,
    renderer: MarkupRenderer,
    inline: bool = False,
) -> None:
    """
    Clear `container` and render `content` into it. With `inline`, paragraph
    wrappers are unwrapped afterwards so the result sits inside running text.
    Renderer failures propagate to the caller.
    """
    container.clear()
    await renderer.render_markdown(content, container, source_path, component)
    if not inline or component.unloaded:
        return
    unwrap_paragraphs(container)


def markdown_span(
    content: str,
    source_path: str,
    inline: bool = False,
    style: str | None = None,
    cls: str | None = None,
) -> Tag:
    """
    A <span> that receives `content` rendered as markdown once the owning
    component gets around to it. Must be called under a mounted view.
    """
    context = use_context()
    attrs: dict[str, str] = {}
    if cls:
        attrs["class"] = cls
    if style:
        attrs["style"] = style
    span = new_tag("span", attrs)
    context.component.spawn(
        render_markdown(content, span, source_path, context.component, context.app.markdown, inline)
    )
    return span


def embed_html(element: Tag) -> Tag:
    """A <span> holding `element` as-is. No parsing, no async work."""
    span = new_tag("span")
    span.append(element)
    return span


# ---------------------------------------------------------------------------
# Lifecycle wrapper
# ---------------------------------------------------------------------------


class ViewRenderer(MarkdownRenderChild):
    """
    Mounts `element` (a zero-argument render function) into the container
    under a fresh RenderContext on load, and detaches it on unload.
    """

    def __init__(
        self,
        app: App,
        settings: ViewSettings,
        index: IndexHandle,
        container: Tag,
        element: Callable[[], Any],
    ) -> None:
        super().__init__(container)
        self.app = app
        self.settings = settings
        self.index = index
        self.element = element
        self.context: RenderContext | None = None
        self._mounted: list[PageElement] = []

    def on_load(self) -> None:
        self.context = RenderContext(
            app=self.app,
            component=self,
            index=self.index,
            settings=self.settings,
            container=self.container_el,
        )
        self._mount()
        logger.info("view renderer: mounted %d node(s)", len(self._mounted))

    def on_unload(self) -> None:
        if self.context is None and not self._mounted:
            return
        self._detach()
        self.context = None
        logger.info("view renderer: unmounted")

    def rerender(self) -> None:
        """Redraw the view in place. Ignored when not mounted."""
        if not self.loaded or self.context is None:
            return
        self._detach()
        self._mount()

    def _mount(self) -> None:
        with provide(self.context):
            tree = self.element()
        nodes = flatten([tree])
        for node in nodes:
            self.container_el.append(node)
        self._mounted = nodes

    def _detach(self) -> None:
        for node in self._mounted:
            if node.parent is not None:
                node.extract()
        self._mounted = []


class IndexBackedView(ViewRenderer, Generic[T]):
    """
    A view whose contents are `view(value)` for a value kept fresh by an
    IndexBackedState. The container must be a ViewContainer.
    """

    def __init__(
        self,
        app: App,
        settings: ViewSettings,
        index: IndexHandle,
        container: ViewContainer,
        initial: T,
        compute: Callable[[], Awaitable[T]],
        view: Callable[[T], Any],
    ) -> None:
        super().__init__(app, settings, index, container, self._render_current)
        self.initial = initial
        self.compute = compute
        self.view = view
        self.state: IndexBackedState[T] | None = None

    def _render_current(self) -> Any:
        value = self.state.value if self.state is not None else self.initial
        return self.view(value)

    def on_load(self) -> None:
        self.state = IndexBackedState(
            self.container_el,
            self.app,
            self.settings,
            self.index,
            self.initial,
            self.compute,
            on_change=lambda _value: self.rerender(),
        )
        self.register(self.state.dispose)
        super().on_load()
        self.state.start()

    async def settle(self) -> None:
        if self.state is not None:
            await self.state.settle()
        await super().settle()
