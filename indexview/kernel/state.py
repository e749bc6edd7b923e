"""
IndexView Kernel — Index-Backed State

Keeps one computed value in step with the index:

  start()            initial value shown, one compute() kicked off
  REFRESH_EVENT      recompute if the revision moved, the container is
                     shown and refresh is enabled
  container shown    recompute unconditionally (data may have changed
                     while hidden)
  dispose()          every subscription released once; late results dropped

Each trigger takes a generation number. A finished compute is applied only
if nothing newer has been applied yet, so the visible value always belongs
to the most recent trigger that succeeded, whichever compute resolves last.
A failing newer compute never throws away an older successful one.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Coroutine, Generic, Protocol, TypeVar

from indexview.kernel.types import REFRESH_EVENT, IndexHandle, ViewSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NoRunningLoop(RuntimeError):
    """Async work was scheduled with no running event loop."""

    pass


class VisibilitySignal(Protocol):
    def is_shown(self) -> bool: ...

    def on_node_inserted(self, callback: Callable[[], Any]) -> Callable[[], None]: ...


def create_task(coro: Coroutine[Any, Any, Any], tasks: set[asyncio.Task]) -> asyncio.Task:
    """Schedule `coro` on the running loop and track it in `tasks` until done."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        coro.close()
        raise NoRunningLoop("views must be mounted from inside a running event loop") from None
    task = loop.create_task(coro)
    tasks.add(task)
    task.add_done_callback(tasks.discard)
    return task


class IndexBackedState(Generic[T]):
    """A value recomputed from the index whenever it may have changed."""

    def __init__(
        self,
        container: VisibilitySignal,
        app: Any,
        settings: ViewSettings,
        index: IndexHandle,
        initial: T,
        compute: Callable[[], Awaitable[T]],
        on_change: Callable[[T], Any] | None = None,
    ) -> None:
        self.container = container
        self.app = app
        self.settings = settings
        self.index = index
        self.value: T = initial
        self.last_reload: int = index.revision
        self.last_error: Exception | None = None
        self.compute_count = 0  # computes triggered
        self.update_count = 0  # results applied
        self._compute = compute
        self._on_change = on_change
        self._generation = 0  # last issued
        self._applied_generation = 0  # last applied
        self._failed_generation = 0
        self._tasks: set[asyncio.Task] = set()
        self._disposers: list[Callable[[], None]] = []
        self._started = False
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def start(self) -> None:
        """First load plus subscriptions. Calling it again is a no-op."""
        if self._started or self._disposed:
            return
        self._started = True
        self._trigger("initial load")

        workspace = self.app.workspace
        ref = workspace.on(REFRESH_EVENT, self._on_refresh)
        self._disposers.append(lambda: workspace.offref(ref))
        self._disposers.append(self.container.on_node_inserted(self._on_shown))

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        while self._disposers:
            self._disposers.pop()()
        logger.debug("index-backed state: disposed with %d compute(s) in flight", len(self._tasks))

    async def settle(self) -> None:
        """Wait until no compute is in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # -- triggers ------------------------------------------------------------

    def _on_refresh(self, *_args: Any) -> None:
        if self._disposed:
            return
        revision = self.index.revision
        if revision == self.last_reload:
            logger.debug("index-backed state: revision %d unchanged, skipping", revision)
            return
        if not self.container.is_shown():
            logger.debug("index-backed state: container hidden, deferring revision %d", revision)
            return
        if not self.settings.refresh_enabled:
            return
        self.last_reload = revision
        self._trigger(f"revision {revision}")

    def _on_shown(self) -> None:
        if self._disposed:
            return
        self.last_reload = self.index.revision
        self._trigger("container shown")

    def _trigger(self, reason: str) -> asyncio.Task:
        self._generation += 1
        self.compute_count += 1
        logger.debug("index-backed state: compute #%d (%s)", self._generation, reason)
        return create_task(self._run(self._generation), self._tasks)

    async def _run(self, generation: int) -> None:
        try:
            value = await self._compute()
        except Exception as e:
            if self._disposed:
                return
            logger.warning("index-backed state: compute #%d failed: %s", generation, e)
            if generation > self._applied_generation:
                self.last_error = e
                self._failed_generation = generation
            return

        if self._disposed:
            logger.debug("index-backed state: dropping compute #%d after dispose", generation)
            return
        if generation <= self._applied_generation:
            logger.debug(
                "index-backed state: dropping compute #%d, #%d already applied",
                generation,
                self._applied_generation,
            )
            return

        self._applied_generation = generation
        self.value = value
        if generation > self._failed_generation:
            self.last_error = None
        self.update_count += 1
        if self._on_change is not None:
            self._on_change(value)
