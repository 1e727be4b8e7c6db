"""
================================================================================
Element Handle
================================================================================

A durable reference to one located DOM element.

The handle records how it was found (locator, context, search root and, for
elements found among several, their position and count) so that it can
re-locate itself when the driver reports the remote reference as stale.

Every operation follows the same template:
    1. select the handle's context (restored afterwards, whatever happens);
    2. run the driver call on the remote reference;
    3. on a stale reference, recover and retry within the attempt budget;
       on an unexpected modal, accept it and retry once;
       any other driver fault propagates untouched.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, TypeVar, Union

import allure
from loguru import logger

from .contexts import Context, as_context
from .driver import (
    ElementNotInteractableFault,
    NoSuchElementFault,
    RemoteDriver,
    StaleReferenceFault,
    UnhandledModalFault,
)
from .errors import (
    ContextSwitchError,
    ElementLostError,
    ScenarioFailedError,
    WaitElementTimeoutError,
)
from .locators import Locator

if TYPE_CHECKING:
    from .session import BrowserSession

T = TypeVar("T")

# Faults meaning "the remote reference cannot be used any more"
_LOST_REFERENCE = (StaleReferenceFault, ContextSwitchError)


class ElementHandle:
    """
    Rebindable wrapper around one live remote element reference.

    Attributes:
        session: Owning browser session (driver, context tracker, policy)
        locator: Locator used to find the element
        context: Context active when the element was found or last rebound
        search_root: Parent handle for relative searches, None for the document
        remote_ref: Live driver reference, replaced in place on recovery
        sibling_count: Result count of the locate-all call that produced the
            handle, 0 when it came from a single-match search
        sibling_index: Position in that result, -1 for a single-match search

    Usage:
        >>> rows = session.poll.poll_for_many(Locator.xpath(".//tr"), root=table)
        >>> rows[1].click()   # re-located transparently if the table re-rendered
    """

    def __init__(
        self,
        session: "BrowserSession",
        locator: Locator,
        remote_ref: Any,
        context: Optional[Context] = None,
        search_root: Optional["ElementHandle"] = None,
        sibling_count: int = 0,
        sibling_index: int = -1,
    ):
        context = as_context(context)
        if remote_ref is None:
            raise ScenarioFailedError(f"Web element '{locator}' should not be null!")
        if isinstance(remote_ref, ElementHandle):
            if remote_ref.context != context:
                raise ScenarioFailedError(
                    f"Current frame ({context}) is different than the wrapped element one "
                    f"({remote_ref.context})! Web element hierarchy should be in the same frame!"
                )
            remote_ref = remote_ref.remote_ref
        if search_root is not None and search_root.context != context:
            raise ScenarioFailedError(
                f"Current frame ({context}) is different than its parent ({search_root.context})! "
                f"Web element hierarchy should be in the same frame!"
            )

        self.session = session
        self.locator = locator
        self.context = context
        self.search_root = search_root
        self.sibling_count = sibling_count if sibling_count > 0 else 0
        self.sibling_index = sibling_index if sibling_count > 0 else -1
        self.remote_ref: Any = None
        self._lost: Optional[ElementLostError] = None
        self._bind(remote_ref)

    # =========================================================================
    # Internals
    # =========================================================================

    @property
    def driver(self) -> RemoteDriver:
        return self.session.driver

    @property
    def is_lost(self) -> bool:
        return self._lost is not None

    def _bind(self, remote_ref: Any) -> None:
        if isinstance(remote_ref, ElementHandle):
            raise ScenarioFailedError("Web element should not be an ElementHandle!")
        self.remote_ref = remote_ref

    def _perform(
        self,
        action: str,
        operation: Callable[[Any], T],
        recovery: bool = True,
        default: Any = None,
    ) -> T:
        """
        Run ``operation(remote_ref)`` in the handle's context.

        With ``recovery=False`` a lost reference returns ``default`` instead
        of being recovered. A completed operation is never run again: when
        the previous context cannot be restored afterwards, the
        ContextRestoreError propagates.
        """
        if self._lost is not None:
            if not recovery:
                return default
            raise self._lost

        modal_purged = False
        stale_count = 0
        with self.session.tracker.preserved():
            while True:
                try:
                    with self.session.tracker.scoped(self.context):
                        return operation(self.remote_ref)
                except UnhandledModalFault:
                    if modal_purged:
                        raise
                    modal_purged = True
                    self.session.purge_alerts(action)
                except _LOST_REFERENCE as fault:
                    if not recovery:
                        logger.debug(f"\t(workaround: {type(fault).__name__} while {action} {self} -> {default!r})")
                        return default
                    stale_count += 1
                    logger.debug(f"Stale reference while {action} {self} ({stale_count})")
                    if stale_count > self.session.recovery.max_attempts or not self._recover_within_budget(action):
                        self._give_up(action, fault)

    def _recover_within_budget(self, action: str) -> bool:
        policy = self.session.recovery
        for attempt in policy.attempts():
            try:
                if self.recover(attempt):
                    return True
            except _LOST_REFERENCE as fault:
                logger.debug(f"Exception when trying to find again '{self.locator}': {fault}")
            except UnhandledModalFault:
                self.session.purge_alerts(f"recovering '{self.locator}' while {action}")
            policy.backoff(attempt)
        return False

    def _give_up(self, action: str, fault: BaseException) -> None:
        attempts = self.session.recovery.max_attempts
        error = ElementLostError(self.locator, self.context, attempts, action)
        logger.error(str(error))
        self._lost = error
        raise error from fault

    def _check_displayed(self, ref: Any) -> bool:
        try:
            return self.driver.is_displayed(ref)
        except StaleReferenceFault:
            return False

    # =========================================================================
    # Recovery
    # =========================================================================

    def recover(self, attempt: int) -> bool:
        """
        Re-locate the element and rebind ``remote_ref``.

        The search root is recovered first. A single-match element missing
        from its context is searched in every frame on the final attempt
        (document-level handles only, so a child never leaves its parent's
        frame).

        Args:
            attempt: Attempt number, from 1 to the policy's max_attempts

        Returns:
            True when the handle is bound to a live element again
        """
        policy = self.session.recovery
        final = policy.is_final(attempt)
        logger.debug(f"\t+ Recover {self} (attempt {attempt}/{policy.max_attempts})")

        if isinstance(self.search_root, ElementHandle):
            if not self.search_root.recover(attempt):
                return False

        recovered: Any = None
        try:
            with self.session.tracker.scoped(self.context):
                recovered = self._relocate(attempt)
        except ContextSwitchError:
            if not (final and self.sibling_count == 0 and self.search_root is None):
                raise
            logger.debug(f"\t-> {self.context} is gone")

        # Children stay in their search root's frame, only document-level handles move
        if recovered is None and final and self.sibling_count == 0 and self.search_root is None:
            logger.warning(f"Recovery cannot find '{self.locator}' in {self.context}, try any possible frame")
            hit = self.session.find_element_in_frames(self.locator)
            if hit is not None:
                recovered, self.context = hit
                logger.warning(f"\t-> '{self.locator}' found again in {self.context}")

        if recovered is None:
            logger.debug(f"Cannot recover web element for '{self.locator}' (attempt {attempt})")
            return False

        self._bind(recovered)
        self._lost = None
        return True

    def _relocate(self, attempt: int) -> Any:
        root_ref = self.search_root.remote_ref if self.search_root is not None else None
        where = "parent element" if root_ref is not None else "document"

        if self.sibling_count == 0:
            logger.debug(f"\t-> find '{self.locator}' as single element in {where}...")
            try:
                return self.driver.find_element(root_ref, self.locator)
            except NoSuchElementFault:
                return None

        logger.debug(f"\t-> find '{self.locator}' as multiple elements in {where}...")
        found = self.driver.find_elements(root_ref, self.locator)
        logger.debug(f"\t-> found {len(found)} elements")
        return self.session.recovery.choose(
            found,
            self._check_displayed,
            self.sibling_count,
            self.sibling_index,
            attempt,
        )

    def synchronize(self) -> "ElementHandle":
        """
        Force a re-location now, accepting the best candidate.

        Useful when the caller knows the element was re-rendered.
        """
        if not self.recover(self.session.recovery.max_attempts):
            raise ElementLostError(self.locator, self.context, 1, "synchronizing")
        return self

    # =========================================================================
    # Input
    # =========================================================================

    def click(self, recovery: bool = True) -> None:
        """
        Click the element.

        An element reported as not interactable is scrolled into view and
        clicked once more.
        """
        logger.debug(f"\t(clicking on {self})")
        with allure.step(f"Click: {self.locator}"):
            try:
                self._perform("clicking", self.driver.click, recovery)
            except ElementNotInteractableFault:
                logger.debug(f"\t-> {self} not interactable, scroll it into view and retry")
                self.scroll_into_view()
                self._perform("clicking", self.driver.click, recovery)

    def clear(self) -> None:
        logger.debug(f"\t(clearing {self})")
        with allure.step(f"Clear: {self.locator}"):
            self._perform("clearing", self.driver.clear)

    def send_keys(self, text: str, password: bool = False, recovery: bool = True) -> None:
        """
        Type text into the element.

        Args:
            text: Text to type
            password: Mask the text in logs and reports
            recovery: Recover the element if it went stale
        """
        shown = "*****" if password else text
        logger.debug(f"\t(sending keys '{shown}' to {self})")
        with allure.step(f"Type '{shown}' into: {self.locator}"):
            self._perform(f"sending keys '{shown}'", lambda ref: self.driver.send_keys(ref, text), recovery)

    type_text = send_keys

    def submit(self) -> None:
        logger.debug(f"\t(submitting on {self})")
        with allure.step(f"Submit: {self.locator}"):
            self._perform("submitting", self.driver.submit)

    def scroll_into_view(self) -> None:
        self._perform("scrolling into view", self.driver.scroll_into_view)

    def alter(self, select: bool) -> "ElementHandle":
        """
        Select or clear a checkbox, radio button or option, clicking only when
        its state differs from the requested one.
        """
        if select != self.is_selected():
            self.click()
        return self

    def select(self) -> "ElementHandle":
        return self.alter(True)

    # =========================================================================
    # State
    # =========================================================================

    def is_displayed(self, recovery: bool = True) -> bool:
        return bool(self._perform("getting displayed state", self.driver.is_displayed, recovery, False))

    def is_enabled(self, recovery: bool = True) -> bool:
        return bool(self._perform("getting enabled state", self.driver.is_enabled, recovery, False))

    def is_selected(self, recovery: bool = True) -> bool:
        return bool(self._perform("getting selected state", self.driver.is_selected, recovery, False))

    def get_text(self, recovery: bool = True) -> str:
        """
        Rendered text of the element, or its ``textContent`` when hidden.
        """
        def read(ref: Any) -> str:
            if self.driver.is_displayed(ref):
                return self.driver.get_text(ref)
            return self.driver.get_text_content(ref)

        return self._perform("getting text", read, recovery, "") or ""

    def get_attribute(self, name: str) -> Optional[str]:
        """Attribute value, None when missing or empty."""
        value = self._perform(f"getting attribute '{name}'", lambda ref: self.driver.get_attribute(ref, name))
        return value or None

    def get_attribute_value(self, name: str) -> str:
        value = self.get_attribute(name)
        if value is None:
            raise ScenarioFailedError(f"Cannot find attribute '{name}' in web element {self}")
        return value

    def get_property(self, name: str) -> Optional[str]:
        """
        Current value of a DOM property; dotted names (``dataset.rowId``)
        walk nested objects. None when missing or empty.
        """
        value = self._perform(f"getting property '{name}'", lambda ref: self.driver.get_property(ref, name))
        return value or None

    def get_property_value(self, name: str) -> str:
        value = self.get_property(name)
        if value is None:
            raise ScenarioFailedError(f"Cannot find property '{name}' in web element {self}")
        return value

    def get_tag_name(self) -> str:
        return self._perform("getting tag name", self.driver.get_tag_name)

    def get_rect(self) -> Optional[Dict[str, float]]:
        return self._perform("getting geometry", self.driver.get_rect)

    # =========================================================================
    # Relative Search
    # =========================================================================

    def find_element(self, locator: Locator, recovery: bool = True) -> Optional["ElementHandle"]:
        """
        Strict single search under this element, no waiting.

        Returns:
            The found element, or None when nothing matches
        """
        def locate(ref: Any) -> Any:
            try:
                return self.driver.find_element(ref, locator)
            except NoSuchElementFault:
                return None

        found = self._perform(f"finding element '{locator}'", locate, recovery)
        if found is None:
            return None
        return ElementHandle(self.session, locator, found, self.context, self)

    def find_elements(
        self,
        locator: Locator,
        displayed: bool = True,
        allow_hidden: bool = False,
        recovery: bool = True,
    ) -> List["ElementHandle"]:
        """
        One locate-all pass under this element, no waiting.

        Args:
            locator: Locator relative to this element
            displayed: Keep only displayed elements
            allow_hidden: With displayed, fall back to hidden elements when
                none is displayed
            recovery: Recover this element if it went stale
        """
        found = self._perform(
            f"finding elements '{locator}'",
            lambda ref: self.driver.find_elements(ref, locator),
            recovery,
            [],
        )
        return wrap_found(self.session, found, locator, self.context, self, displayed, allow_hidden)

    def get_parent(self) -> Optional["ElementHandle"]:
        return self.find_element(Locator.xpath(".."))

    def get_ancestor(self, depth: int) -> Optional["ElementHandle"]:
        if depth < 0:
            raise ValueError("Cannot get ancestor with negative relative depth.")
        if depth == 0:
            return self
        return self.find_element(Locator.xpath("/".join([".."] * depth)))

    def get_children(self, tag: str = "*") -> List["ElementHandle"]:
        return self.find_elements(Locator.xpath(f"./child::{tag}"))

    def get_child(self, tag: str = "*") -> "ElementHandle":
        """
        Raises:
            WaitElementTimeoutError: When the element has no such child
            ScenarioFailedError: When it has several
        """
        children = self.get_children(tag)
        if not children:
            raise WaitElementTimeoutError(
                f"child::{tag}", 0, context=self.context,
                message=f"Web element {self} has no child.",
            )
        if len(children) > 1:
            raise ScenarioFailedError(f"Web element {self} has more than one child.")
        return children[0]

    @property
    def full_path(self) -> str:
        """
        Full xpath from the document, joining the search roots' locators.
        """
        current = self.locator.xpath_expression()
        if not isinstance(self.search_root, ElementHandle):
            return current

        parent = self.search_root.full_path
        start = 1 if current.startswith("(") else 0
        head, body = current[:start], current[start:]
        if body.startswith(".."):
            return f"{head}{parent}/{body}"
        if body.startswith("./"):
            return f"{head}{parent}{body[1:]}"
        if body.startswith("."):
            return f"{head}{parent}{body}"
        if body.startswith("/"):
            logger.debug(f"Non relative xpath for child element: {current} (parent: {parent})")
            return current
        return f"{head}{parent}/{body}"

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
    ) -> Optional["ElementHandle"]:
        return self.session.poll.poll_for_one(
            locator, root=self, timeout=timeout, fail=fail, displayed=displayed, single=single,
        )

    def wait_for_elements(
        self,
        locator: Locator,
        timeout: Optional[float] = None,
        fail: bool = True,
        displayed: bool = True,
    ) -> List["ElementHandle"]:
        return self.session.poll.poll_for_many(
            locator, root=self, timeout=timeout, fail=fail, displayed=displayed,
        )

    def wait_while_displayed(self, timeout: Optional[float] = None, fail: bool = True) -> bool:
        return self.session.poll.wait_while_displayed(self, timeout, fail)

    def wait_while_disabled(self, timeout: Optional[float] = None, fail: bool = True) -> bool:
        return self.session.poll.wait_while_disabled(self, timeout, fail)

    def __repr__(self) -> str:
        position = ""
        if self.sibling_count:
            position = f" #{self.sibling_index}/{self.sibling_count}"
        return f"Web element {{full xpath: {self.full_path}{position}}} in {self.context}"


def wrap_found(
    session: "BrowserSession",
    refs: List[Any],
    locator: Locator,
    context: Optional[Context],
    search_root: Optional[ElementHandle],
    displayed: bool,
    allow_hidden: bool = False,
) -> List[ElementHandle]:
    """
    Wrap the result of one locate-all call, recording each element's
    position among all matches. Hidden elements are dropped when
    ``displayed`` is set, unless none is displayed and ``allow_hidden`` is
    set. Indices stay those of the full result.
    """
    size = len(refs)
    handles: List[ElementHandle] = []
    hidden: List[ElementHandle] = []
    if size == 0:
        return handles

    driver = session.driver
    with session.tracker.scoped(context):
        for idx, ref in enumerate(refs):
            if ref is None:
                continue
            if displayed:
                try:
                    visible = driver.is_displayed(ref)
                except StaleReferenceFault:
                    visible = False
                if not visible:
                    logger.debug(f"\t  (-> element {idx} of '{locator}' not displayed)")
                    if allow_hidden:
                        hidden.append(ElementHandle(session, locator, ref, context, search_root, size, idx))
                    continue
            handles.append(ElementHandle(session, locator, ref, context, search_root, size, idx))

    if not handles and hidden:
        logger.debug(f"\t  (-> no displayed element for '{locator}', use the {len(hidden)} hidden one(s))")
        return hidden
    return handles


ElementOrLocator = Union[ElementHandle, Locator]


__all__ = [
    "ElementHandle",
    "ElementOrLocator",
    "wrap_found",
]
