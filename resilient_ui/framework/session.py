"""
================================================================================
Browser Session
================================================================================

One remote driver plus everything the engine keeps for it: settings, the
context tracker, the recovery policy and the poll engine. Sessions are never
shared between test executions.

Usage:
    >>> session = BrowserSession(PlaywrightDriver(page), EngineConfig.from_config())
    >>> session.wait_for_element(Locator.id("login")).click()

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence, Tuple, Union

from loguru import logger

from resilient_ui.common.global_config import init_logger

from .config import EngineConfig
from .contexts import ROOT, Context, ContextTracker
from .driver import NoSuchElementFault, RemoteDriver, UnhandledModalFault
from .element import ElementHandle, ElementOrLocator
from .errors import ContextSwitchError, TooManyAlertsError
from .locators import FRAMES, Locator, indexed_frame
from .poll_engine import PollEngine
from .recovery import RecoveryPolicy


class BrowserSession:
    """
    Engine entry point over one remote driver.

    Attributes:
        driver: The remote driver
        config: Engine settings
        tracker: Selected context mirror
        recovery: Stale element recovery policy
        poll: Deadline loops
    """

    def __init__(self, driver: RemoteDriver, config: Optional[EngineConfig] = None):
        init_logger()
        self.driver = driver
        self.config = config or EngineConfig()
        self.tracker = ContextTracker(driver)
        self.recovery = RecoveryPolicy(self.config.max_recovery_attempts, self.config.recovery_delay)
        self.poll = PollEngine(self)
        logger.debug(f"Browser session created (max recovery attempts={self.recovery.max_attempts})")

    @classmethod
    def from_config(cls, driver: RemoteDriver, section: str = "engine") -> "BrowserSession":
        """Create a session with settings read from the global configuration."""
        return cls(driver, EngineConfig.from_config(section))

    # =========================================================================
    # Alerts
    # =========================================================================

    def purge_alerts(self, action: str) -> int:
        """
        Accept every pending alert.

        Args:
            action: What was being done, for logging

        Returns:
            Number of accepted alerts

        Raises:
            TooManyAlertsError: When more than ``max_alerts`` keep popping up
        """
        count = 0
        while True:
            text = self.driver.accept_alert()
            if text is None:
                break
            count += 1
            logger.warning(f"Unexpected alert accepted while {action}: '{text}'")
            if count > self.config.max_alerts:
                error = TooManyAlertsError(action, count)
                logger.error(str(error))
                raise error
        return count

    # =========================================================================
    # Strict Searches
    # =========================================================================

    def find_element(self, locator: Locator, context: Optional[Context] = None) -> Optional[ElementHandle]:
        """
        Strict single search in a context, no waiting.

        Args:
            locator: Locator to search for
            context: Where to search (None = the currently selected context)

        Returns:
            The found element or None
        """
        target = self.tracker.current() if context is None else context
        modal_purged = False
        with self.tracker.preserved():
            while True:
                try:
                    with self.tracker.scoped(target):
                        ref = self.driver.find_element(None, locator)
                    return ElementHandle(self, locator, ref, target)
                except NoSuchElementFault:
                    return None
                except UnhandledModalFault:
                    if modal_purged:
                        raise
                    modal_purged = True
                    self.purge_alerts(f"finding element '{locator}'")

    def find_element_in_frames(self, locator: Locator) -> Optional[Tuple[Any, Context]]:
        """
        Search a locator in the current context, then in the root document,
        then in every frame reachable from it.

        Returns:
            (remote reference, context where it was found), or None
        """
        start = self.tracker.current()
        candidates: List[Context] = [start]
        if start != ROOT:
            candidates.append(ROOT)
        candidates.extend(c for c in self.tracker.discover(self.config.max_frame_depth) if c not in candidates)

        for context in candidates:
            try:
                with self.tracker.scoped(context):
                    refs = self.driver.find_elements(None, locator)
            except ContextSwitchError:
                continue
            if refs:
                logger.debug(f"\t-> found '{locator}' in {context}")
                return refs[0], context
        logger.debug(f"\t-> '{locator}' not found in any of {len(candidates)} context(s)")
        return None

    # =========================================================================
    # Contexts
    # =========================================================================

    def select_frame(self, frame: Union[Locator, Context, None]) -> Context:
        """
        Select a frame.

        Args:
            frame: A frame locator relative to the current context, a full
                context, or None for the root document

        Returns:
            The selected context
        """
        if frame is None:
            target = ROOT
        elif isinstance(frame, Locator):
            target = self.tracker.current().child(frame)
        else:
            target = frame
        self.tracker.select(target)
        return target

    def select_visible_frame(self, timeout: Optional[float] = None) -> Context:
        """
        Select the first displayed frame of the root document.

        Raises:
            WaitElementTimeoutError: When no frame is displayed in time
        """
        if timeout is None:
            timeout = self.config.short_timeout
        self.switch_to_main()
        frames = self.poll.poll_for_many(FRAMES, timeout=timeout, context=ROOT)
        if len(frames) > 1:
            logger.warning(f"Found {len(frames)} visible frames, select the first one")
        target = ROOT.child(indexed_frame(frames[0].sibling_index))
        self.tracker.select(target)
        return target

    def switch_to_main(self) -> None:
        self.tracker.select(ROOT)

    # =========================================================================
    # Waits
    # =========================================================================

    def wait_for_element(
        self,
        locator: Locator,
        timeout: Optional[float] = None,
        fail: bool = True,
        displayed: bool = True,
        single: bool = True,
        context: Optional[Context] = None,
    ) -> Optional[ElementHandle]:
        return self.poll.poll_for_one(
            locator, timeout=timeout, fail=fail, displayed=displayed, single=single, context=context,
        )

    def wait_for_elements(
        self,
        locator: Locator,
        timeout: Optional[float] = None,
        fail: bool = True,
        displayed: bool = True,
        context: Optional[Context] = None,
    ) -> List[ElementHandle]:
        return self.poll.poll_for_many(
            locator, timeout=timeout, fail=fail, displayed=displayed, context=context,
        )

    def wait_for_first_of(
        self,
        locators: Sequence[Locator],
        timeout: Optional[float] = None,
        fail: bool = True,
        display_flags: Optional[Sequence[bool]] = None,
    ) -> List[Optional[ElementHandle]]:
        return self.poll.poll_for_first_of(locators, timeout=timeout, fail=fail, display_flags=display_flags)

    def wait_while_displayed(self, target: ElementOrLocator, timeout: Optional[float] = None, fail: bool = True) -> bool:
        """Wait until an element (or any element matching a locator) vanishes."""
        if isinstance(target, ElementHandle):
            return self.poll.wait_while_displayed(target, timeout, fail)
        return self.poll.wait_while_locator_displayed(target, timeout=timeout, fail=fail)

    def wait_while_disabled(self, handle: ElementHandle, timeout: Optional[float] = None, fail: bool = True) -> bool:
        return self.poll.wait_while_disabled(handle, timeout, fail)


__all__ = [
    "BrowserSession",
]
