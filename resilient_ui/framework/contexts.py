"""
================================================================================
Document Contexts
================================================================================

A Context is the root document or a (possibly nested) frame, identified
structurally by the chain of frame locators leading to it. The ContextTracker
mirrors which context is selected on the driver and restores it around scoped
operations.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, ContextManager, Iterator, List, Optional, Tuple, TypeVar

from loguru import logger

from .driver import DriverFault, NoSuchFrameFault, RemoteDriver, is_unrecoverable
from .errors import ContextRestoreError, ContextSwitchError
from .locators import FRAMES, Locator, indexed_frame

T = TypeVar("T")


@dataclass(frozen=True)
class Context:
    """
    Structural identity of a document context.

    Attributes:
        frames: Frame locators from the root document down to this context;
            empty for the root document
    """
    frames: Tuple[Locator, ...] = ()

    @property
    def is_root(self) -> bool:
        return not self.frames

    @property
    def depth(self) -> int:
        return len(self.frames)

    @property
    def parent(self) -> Optional["Context"]:
        if self.is_root:
            return None
        return Context(self.frames[:-1])

    def child(self, frame_locator: Locator) -> "Context":
        return Context(self.frames + (frame_locator,))

    def __str__(self) -> str:
        if self.is_root:
            return "<root document>"
        return "<frame: " + " > ".join(str(loc) for loc in self.frames) + ">"


ROOT = Context()


def as_context(context: Optional[Context]) -> Context:
    """An unknown (None) context is the root document."""
    return ROOT if context is None else context


class ContextTracker:
    """
    Tracks the frame selected on the driver.

    Every driver call of the engine runs inside ``scoped(context)`` so callers
    never need to track frame state by hand.

    Usage:
        >>> with tracker.scoped(Context().child(Locator.id("editor"))):
        ...     driver.find_elements(None, Locator.css("p"))
    """

    def __init__(self, driver: RemoteDriver):
        self.driver = driver
        self._current: Context = ROOT

    def current(self) -> Context:
        return self._current

    def select(self, context: Optional[Context], force: bool = False) -> None:
        """
        Select the given context on the driver.

        The chain is walked from the root document. When it cannot be
        resolved, the driver is left on the root document.

        Raises:
            ContextSwitchError: When a frame of the chain is missing.
        """
        target = as_context(context)
        if target == self._current and not force:
            return

        logger.debug(f"Select {target} (was {self._current})")
        try:
            self.driver.switch_to_default()
            for frame_locator in target.frames:
                frames = self.driver.find_elements(None, frame_locator)
                if not frames:
                    raise NoSuchFrameFault(f"No frame matches '{frame_locator}'")
                self.driver.switch_to_frame(frames[0])
        except DriverFault as fault:
            if is_unrecoverable(fault) and not isinstance(fault, NoSuchFrameFault):
                raise
            logger.warning(f"Cannot select {target}, get back to the root document: {fault}")
            self.driver.switch_to_default()
            self._current = ROOT
            raise ContextSwitchError(target, fault) from fault

        self._current = target

    def reset(self) -> None:
        """Forget the tracked state and select the root document."""
        self._current = ROOT
        self.select(ROOT, force=True)

    @contextmanager
    def scoped(self, context: Optional[Context]) -> Iterator[Context]:
        """
        Run a block in ``context`` and restore the previous selection on
        every exit path, exceptions included.

        A failed selection of ``context`` still gets back to the previous
        context before the ContextSwitchError propagates.

        Raises:
            ContextRestoreError: When the block completed but the previous
                context cannot be selected again.
        """
        previous = self._current
        target = as_context(context)
        try:
            if target != previous:
                self.select(target)
            yield target
        except BaseException:
            self._restore(previous, quiet=True)
            raise
        else:
            self._restore(previous)

    def preserved(self) -> ContextManager[Context]:
        """Restore the current selection after a block of several scoped steps."""
        return self.scoped(self._current)

    def _restore(self, previous: Context, quiet: bool = False) -> None:
        if self._current == previous:
            return
        try:
            self.select(previous)
        except ContextSwitchError as error:
            if not quiet:
                raise ContextRestoreError(previous, error) from error
            logger.warning(f"Cannot get back to {previous}: {error}")
        except DriverFault as fault:
            if not quiet:
                raise
            logger.warning(f"Cannot get back to {previous}: {fault}")

    def run_in(self, context: Optional[Context], fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Functional form of ``scoped``."""
        with self.scoped(context):
            return fn(*args, **kwargs)

    def discover(self, max_depth: int = 5) -> List[Context]:
        """
        Enumerate every frame context reachable from the root document,
        breadth first. The root itself is not part of the result.
        """
        found: List[Context] = []
        level = [ROOT]
        for _ in range(max_depth):
            next_level: List[Context] = []
            for parent in level:
                try:
                    with self.scoped(parent):
                        count = len(self.driver.find_elements(None, FRAMES))
                except ContextSwitchError:
                    continue
                next_level.extend(parent.child(indexed_frame(i)) for i in range(count))
            if not next_level:
                break
            found.extend(next_level)
            level = next_level
        logger.debug(f"Discovered {len(found)} frame(s)")
        return found


__all__ = [
    "Context",
    "ContextTracker",
    "ROOT",
    "as_context",
]
