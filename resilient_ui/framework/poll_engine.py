"""
================================================================================
Poll Engine
================================================================================

Bounded-deadline polling used both to find elements and to wait for
conditions on them.

Features:
    - Single deadline loop shared by every wait (``poll``)
    - Display filtering with optional hidden fallback
    - Single vs. multiple match contract
    - Multi-locator waits returning one slot per locator
    - Transient faults absorbed until the deadline

Usage:
    >>> button = session.poll.poll_for_one(Locator.xpath("//button[@id='save']"), timeout=5)
    >>> rows = session.poll.poll_for_many(Locator.xpath(".//tr"), root=table)
    >>> session.poll.wait_while_displayed(spinner, timeout=30)

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Sequence, Tuple, TypeVar, Union

import allure
from loguru import logger

from .contexts import Context, as_context
from .driver import NoSuchElementFault, StaleReferenceFault, UnhandledModalFault
from .element import ElementHandle, wrap_found
from .errors import ContextSwitchError, MultipleVisibleElementsError, WaitElementTimeoutError
from .locators import Locator

if TYPE_CHECKING:
    from .config import EngineConfig
    from .session import BrowserSession

T = TypeVar("T")

# Faults meaning "not there yet", retried until the deadline
_NOT_YET = (StaleReferenceFault, NoSuchElementFault, ContextSwitchError)


class PollEngine:
    """
    Deadline loops over the session's driver.

    A ``timeout`` of None always means ``EngineConfig.default_timeout``.
    With ``fail=False`` an elapsed deadline returns an empty result (None,
    an empty list, a slot list of None, or False) instead of raising.
    """

    def __init__(self, session: "BrowserSession"):
        self.session = session

    @property
    def config(self) -> "EngineConfig":
        return self.session.config

    def _timeout(self, timeout: Optional[float]) -> float:
        return self.config.default_timeout if timeout is None else timeout

    def _context(self, root: Optional[ElementHandle], context: Optional[Context]) -> Context:
        if root is not None:
            return root.context
        if context is not None:
            return as_context(context)
        return self.session.tracker.current()

    # =========================================================================
    # Generic Primitive
    # =========================================================================

    def poll(
        self,
        check: Callable[[], Tuple[bool, T]],
        timeout: Optional[float] = None,
        fail: bool = True,
        description: str = "condition",
        target: Any = None,
        context: Optional[Context] = None,
    ) -> Optional[T]:
        """
        Run ``check`` until it succeeds or the deadline elapses.

        The check runs at least once, even with a zero timeout. Iterations
        are paced by ``poll_interval``, never sleeping past the deadline.

        Args:
            check: Function returning (success, result)
            timeout: Seconds to wait (None = default timeout)
            fail: Raise on timeout instead of returning the last result
            description: Human-readable description for logging
            target: What the error names (defaults to the description)
            context: Context named by the error

        Returns:
            Result of the successful check, or the last result on timeout

        Raises:
            WaitElementTimeoutError: On timeout with ``fail=True``
        """
        timeout = self._timeout(timeout)
        interval = self.config.poll_interval
        start = time.monotonic()
        deadline = start + timeout
        attempt = 0
        result: Optional[T] = None

        logger.debug(f"Waiting for {description} (timeout={timeout}s)")
        with self.session.tracker.preserved():
            while True:
                attempt += 1
                try:
                    success, result = check()
                except UnhandledModalFault:
                    self.session.purge_alerts(f"waiting for {description}")
                    success, result = False, None
                except _NOT_YET as fault:
                    logger.debug(f"\t-> attempt {attempt}: {type(fault).__name__}: {fault}")
                    success, result = False, None

                if success:
                    logger.debug(f"Wait successful after {attempt} attempts ({time.monotonic() - start:.2f}s): {description}")
                    return result

                now = time.monotonic()
                if now >= deadline:
                    elapsed = now - start
                    if fail:
                        error = WaitElementTimeoutError(
                            target if target is not None else description, timeout, elapsed, context,
                        )
                        logger.error(str(error))
                        error.attach("Wait timeout")
                        raise error
                    logger.debug(f"Timeout after {elapsed:.2f}s waiting for {description}, do not fail")
                    return result

                if interval:
                    time.sleep(min(interval, deadline - now))

    # =========================================================================
    # Element Searches
    # =========================================================================

    def find_elements(
        self,
        locator: Locator,
        root: Optional[ElementHandle] = None,
        displayed: bool = True,
        context: Optional[Context] = None,
        allow_hidden: bool = False,
    ) -> List[ElementHandle]:
        """
        One locate-all pass, no waiting.

        Args:
            locator: Locator to search for
            root: Search under this element (its context wins)
            displayed: Keep only displayed elements
            context: Context to search in when there is no root
                (None = the currently selected one)
            allow_hidden: With displayed, fall back to hidden elements when
                none is displayed
        """
        if root is not None:
            return root.find_elements(locator, displayed, allow_hidden)

        target = self._context(None, context)
        with self.session.tracker.scoped(target):
            refs = self.session.driver.find_elements(None, locator)
        return wrap_found(self.session, refs, locator, target, None, displayed, allow_hidden)

    def poll_for_many(
        self,
        locator: Locator,
        root: Optional[ElementHandle] = None,
        timeout: Optional[float] = None,
        fail: bool = True,
        displayed: bool = True,
        allow_hidden: bool = False,
        context: Optional[Context] = None,
    ) -> List[ElementHandle]:
        """
        Wait until at least one element matches, then return all of them.

        Returns:
            Handles of the matches, empty on timeout with ``fail=False``
        """
        def check() -> Tuple[bool, List[ElementHandle]]:
            found = self.find_elements(locator, root, displayed, context, allow_hidden)
            return bool(found), found

        found = self.poll(
            check, timeout, fail,
            description=f"elements '{locator}'",
            target=locator,
            context=self._context(root, context),
        )
        return found or []

    def poll_for_one(
        self,
        locator: Locator,
        root: Optional[ElementHandle] = None,
        timeout: Optional[float] = None,
        fail: bool = True,
        displayed: bool = True,
        single: bool = True,
        allow_hidden: bool = False,
        context: Optional[Context] = None,
    ) -> Optional[ElementHandle]:
        """
        Wait for one element.

        Args:
            single: Raise when several elements match; otherwise return the
                first one with a warning

        Raises:
            WaitElementTimeoutError: Nothing matched in time and ``fail``
            MultipleVisibleElementsError: Several matched and ``single``
        """
        found = self.poll_for_many(locator, root, timeout, fail, displayed, allow_hidden, context)
        if not found:
            return None
        if len(found) > 1:
            if single:
                error = MultipleVisibleElementsError(locator, found, self._context(root, context))
                logger.error(str(error))
                error.attach("Multiple elements")
                raise error
            logger.warning(f"Found {len(found)} elements for '{locator}', return the first one")
        return found[0]

    def poll_for_first_of(
        self,
        locators: Sequence[Locator],
        root: Optional[ElementHandle] = None,
        timeout: Optional[float] = None,
        fail: bool = True,
        display_flags: Optional[Sequence[bool]] = None,
        context: Optional[Context] = None,
    ) -> List[Optional[ElementHandle]]:
        """
        Wait until any of several locators matches.

        Every locator is searched in each iteration; the loop stops at the
        first iteration where one of them matches.

        Args:
            locators: Candidate locators
            display_flags: Per-locator "must be displayed" flags (default all True)

        Returns:
            One slot per locator: the first match of that locator, or None.
            All slots are None on timeout with ``fail=False``.
        """
        flags = list(display_flags) if display_flags is not None else [True] * len(locators)
        if len(flags) != len(locators):
            raise ValueError(
                f"Got {len(flags)} display flags for {len(locators)} locators"
            )

        def check() -> Tuple[bool, List[Optional[ElementHandle]]]:
            slots: List[Optional[ElementHandle]] = [None] * len(locators)
            for idx, locator in enumerate(locators):
                found = self.find_elements(locator, root, flags[idx], context)
                if found:
                    if len(found) > 1:
                        logger.debug(f"\t-> {len(found)} elements match '{locator}', keep the first one")
                    slots[idx] = found[0]
            return any(slot is not None for slot in slots), slots

        slots = self.poll(
            check, timeout, fail,
            description=f"any of {[str(loc) for loc in locators]}",
            target=" | ".join(str(loc) for loc in locators),
            context=self._context(root, context),
        )
        return slots or [None] * len(locators)

    def poll_for_any(
        self,
        locators: Sequence[Locator],
        root: Optional[ElementHandle] = None,
        timeout: Optional[float] = None,
        fail: bool = True,
        display_flags: Optional[Sequence[bool]] = None,
        context: Optional[Context] = None,
    ) -> Optional[ElementHandle]:
        """First match of ``poll_for_first_of``, in locator order."""
        slots = self.poll_for_first_of(locators, root, timeout, fail, display_flags, context)
        for slot in slots:
            if slot is not None:
                return slot
        return None

    # =========================================================================
    # Condition Waits
    # =========================================================================

    def wait_while_displayed(self, handle: ElementHandle, timeout: Optional[float] = None, fail: bool = True) -> bool:
        """
        Wait until the element is hidden or gone.

        The element is checked without recovery: a stale reference counts as
        vanished.

        Returns:
            True once the element vanished, False on timeout with ``fail=False``
        """
        def check() -> Tuple[bool, bool]:
            gone = not handle.is_displayed(recovery=False)
            return gone, gone

        with allure.step(f"Wait while displayed: {handle.locator}"):
            return bool(self.poll(
                check, timeout, fail,
                description=f"'{handle.locator}' to vanish",
                target=handle.locator,
                context=handle.context,
            ))

    def wait_while_disabled(self, handle: ElementHandle, timeout: Optional[float] = None, fail: bool = True) -> bool:
        """
        Wait until the element is enabled.

        Returns:
            True once enabled, False on timeout with ``fail=False``
        """
        def check() -> Tuple[bool, bool]:
            enabled = handle.is_enabled(recovery=False)
            return enabled, enabled

        with allure.step(f"Wait while disabled: {handle.locator}"):
            return bool(self.poll(
                check, timeout, fail,
                description=f"'{handle.locator}' to be enabled",
                target=handle.locator,
                context=handle.context,
            ))

    def wait_while_locator_displayed(
        self,
        locator: Locator,
        root: Optional[ElementHandle] = None,
        timeout: Optional[float] = None,
        fail: bool = True,
        single: bool = True,
        context: Optional[Context] = None,
    ) -> bool:
        """
        Wait until no element matching ``locator`` is displayed.

        The element is first looked up within the tiny timeout; when it is
        not there at all the wait succeeds immediately.
        """
        handle = self.poll_for_one(
            locator, root, self.config.tiny_timeout, fail=False, single=single, context=context,
        )
        if handle is None:
            logger.debug(f"'{locator}' is not displayed, no need to wait")
            return True
        return self.wait_while_displayed(handle, timeout, fail)

    def wait_for_text(
        self,
        handle: ElementHandle,
        texts: Union[str, Sequence[str]],
        timeout: Optional[float] = None,
        fail: bool = True,
    ) -> Optional[str]:
        """
        Wait until the element text starts with one of the expected texts.

        An empty expected text only matches an empty element text.

        Returns:
            The element text, None on timeout with ``fail=False``
        """
        expected = [texts] if isinstance(texts, str) else list(texts)

        def check() -> Tuple[bool, Optional[str]]:
            text = handle.get_text()
            for prefix in expected:
                if (text.startswith(prefix) and prefix) or (not prefix and not text):
                    return True, text
            return False, None

        with allure.step(f"Wait for text {expected} in: {handle.locator}"):
            return self.poll(
                check, timeout, fail,
                description=f"text {expected} in '{handle.locator}'",
                target=handle.locator,
                context=handle.context,
            )

    def click_and_wait_for(
        self,
        handle: ElementHandle,
        locator: Locator,
        timeout: Optional[float] = None,
        root: Optional[ElementHandle] = None,
        fail: bool = True,
        single: bool = True,
    ) -> Optional[ElementHandle]:
        """
        Click an element then wait for what it opens.

        The settle delay is observed after the click; the wait uses the open
        timeout unless one is given.
        """
        handle.click()
        if self.config.settle_delay:
            time.sleep(self.config.settle_delay)
        if timeout is None:
            timeout = self.config.open_timeout
        return self.poll_for_one(locator, root, timeout, fail, single=single)


__all__ = [
    "PollEngine",
]
