"""
================================================================================
Playwright Driver
================================================================================

RemoteDriver implementation over a synchronous Playwright page.

Remote references are Playwright ``ElementHandle`` objects. The selected
context is tracked as a Playwright ``Frame``. Page dialogs are accepted by
the listener as soon as they open; the driver calls that follow report them
as UnhandledModalFault until the engine purges them.

Usage:
    >>> with sync_playwright() as p:
    ...     page = p.chromium.launch().new_page()
    ...     session = BrowserSession(PlaywrightDriver(page))

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from loguru import logger
from playwright.sync_api import Dialog, Error as PlaywrightError, Frame, Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from .driver import (
    DriverFault,
    ElementNotInteractableFault,
    NoSuchElementFault,
    NoSuchFrameFault,
    RemoteDriver,
    SessionLostFault,
    StaleReferenceFault,
    UnhandledModalFault,
)
from .locators import Locator


# Playwright error messages meaning the element handle is no longer usable
STALE_MARKERS = (
    "not attached",
    "detached",
    "disposed",
    "Execution context was destroyed",
)

# Playwright error messages meaning the browser side is gone
SESSION_LOST_MARKERS = (
    "has been closed",
    "Target closed",
    "Browser closed",
    "Connection closed",
)

_GET_PROPERTY_JS = """(element, path) => {
    let value = element;
    for (const part of path.split('.')) {
        if (value === null || value === undefined) return null;
        value = value[part];
    }
    return (value === null || value === undefined) ? null : String(value);
}"""

_IS_SELECTED_JS = "element => !!(element.checked || element.selected)"

_SUBMIT_JS = """element => {
    const form = element.form || element.closest('form');
    if (!form) throw new Error('Element is not in a form');
    if (form.requestSubmit) form.requestSubmit(); else form.submit();
}"""


class PlaywrightDriver(RemoteDriver):
    """
    Playwright sync API adapter.

    Args:
        page: Playwright page to drive
        action_timeout: Seconds Playwright waits for an input action
            (actionability checks included) before giving up
    """

    def __init__(self, page: Page, action_timeout: float = 5.0):
        self.page = page
        self.action_timeout_ms = action_timeout * 1000
        self._frame: Frame = page.main_frame
        # (type, message) of dialogs accepted but not yet purged
        self._dialogs: List[Tuple[str, str]] = []
        page.on("dialog", self._on_dialog)

    def _on_dialog(self, dialog: Dialog) -> None:
        logger.debug(f"Dialog opened: {dialog.type} '{dialog.message}'")
        self._dialogs.append((dialog.type, dialog.message))
        try:
            dialog.accept()
        except PlaywrightError as e:
            logger.warning(f"Cannot accept {dialog.type} '{dialog.message}': {e.message}")

    @contextmanager
    def _faults(self, action: str) -> Iterator[None]:
        """
        Translate Playwright errors raised while performing ``action``.

        A dialog recorded before the call is reported instead of running it.
        One opened by the call itself is reported by the next call, so the
        action that opened it is not performed twice.
        """
        if self._dialogs:
            kind, message = self._dialogs[0]
            raise UnhandledModalFault(f"Unexpected {kind} while {action}", message)
        try:
            yield
        except PlaywrightTimeoutError as e:
            raise ElementNotInteractableFault(f"Timeout while {action}: {e.message}") from e
        except PlaywrightError as e:
            raise self._translate(action, e) from e

    @staticmethod
    def _translate(action: str, error: PlaywrightError) -> DriverFault:
        message = f"Error while {action}: {error.message}"
        if any(marker in error.message for marker in STALE_MARKERS):
            return StaleReferenceFault(message)
        if any(marker in error.message for marker in SESSION_LOST_MARKERS):
            return SessionLostFault(message)
        return DriverFault(message)

    # =========================================================================
    # Locating
    # =========================================================================

    def find_elements(self, root: Any, locator: Locator) -> List[Any]:
        scope = self._frame if root is None else root
        with self._faults(f"finding '{locator}'"):
            return scope.query_selector_all(locator.selector)

    def find_element(self, root: Any, locator: Locator) -> Any:
        scope = self._frame if root is None else root
        with self._faults(f"finding '{locator}'"):
            element = scope.query_selector(locator.selector)
        if element is None:
            raise NoSuchElementFault(f"No element matches '{locator}'")
        return element

    # =========================================================================
    # State
    # =========================================================================

    def is_displayed(self, ref: Any) -> bool:
        with self._faults("getting displayed state"):
            return ref.is_visible()

    def is_enabled(self, ref: Any) -> bool:
        with self._faults("getting enabled state"):
            return ref.is_enabled()

    def is_selected(self, ref: Any) -> bool:
        with self._faults("getting selected state"):
            return bool(ref.evaluate(_IS_SELECTED_JS))

    def get_attribute(self, ref: Any, name: str) -> Optional[str]:
        with self._faults(f"getting attribute '{name}'"):
            return ref.get_attribute(name)

    def get_property(self, ref: Any, name: str) -> Optional[str]:
        with self._faults(f"getting property '{name}'"):
            return ref.evaluate(_GET_PROPERTY_JS, name)

    def get_text(self, ref: Any) -> str:
        with self._faults("getting text"):
            return ref.inner_text()

    def get_text_content(self, ref: Any) -> str:
        with self._faults("getting text content"):
            return ref.text_content() or ""

    def get_tag_name(self, ref: Any) -> str:
        with self._faults("getting tag name"):
            return ref.evaluate("element => element.tagName.toLowerCase()")

    def get_rect(self, ref: Any) -> Optional[Dict[str, float]]:
        with self._faults("getting geometry"):
            return ref.bounding_box()

    # =========================================================================
    # Input
    # =========================================================================

    def click(self, ref: Any) -> None:
        with self._faults("clicking"):
            ref.click(timeout=self.action_timeout_ms)

    def clear(self, ref: Any) -> None:
        with self._faults("clearing"):
            ref.fill("", timeout=self.action_timeout_ms)

    def send_keys(self, ref: Any, text: str) -> None:
        with self._faults("sending keys"):
            ref.focus()
            self.page.keyboard.type(text)

    def submit(self, ref: Any) -> None:
        with self._faults("submitting"):
            ref.evaluate(_SUBMIT_JS)

    def scroll_into_view(self, ref: Any) -> None:
        with self._faults("scrolling into view"):
            ref.scroll_into_view_if_needed(timeout=self.action_timeout_ms)

    # =========================================================================
    # Contexts
    # =========================================================================

    def switch_to_default(self) -> None:
        self._frame = self.page.main_frame

    def switch_to_frame(self, ref: Any) -> None:
        with self._faults("selecting frame"):
            frame = ref.content_frame()
        if frame is None:
            raise NoSuchFrameFault("Element is not a frame")
        self._frame = frame

    def accept_alert(self) -> Optional[str]:
        # Already accepted by the listener, only the record is left
        if not self._dialogs:
            return None
        _, message = self._dialogs.pop(0)
        return message


__all__ = [
    "PlaywrightDriver",
]
