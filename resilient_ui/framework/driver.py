"""
================================================================================
Remote Driver Interface
================================================================================

The contract the engine consumes from a WebDriver-style automation driver, and
the fault categories a driver adapter must raise.

Remote references (``ref`` below) are opaque driver objects. ``root=None``
means "the document of the currently selected context".

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .locators import Locator


# =============================================================================
# Driver Faults
# =============================================================================

class DriverFault(Exception):
    """
    Base driver-level fault.

    Any fault that is not one of the transient categories below is treated as
    unrecoverable: the engine never retries it.
    """
    pass


class StaleReferenceFault(DriverFault):
    """The remote element no longer corresponds to live DOM content."""
    pass


class NoSuchElementFault(DriverFault):
    """A strict single-element search matched nothing."""
    pass


class NoSuchFrameFault(DriverFault):
    """A frame could not be selected."""
    pass


class ElementNotInteractableFault(DriverFault):
    """The element exists but cannot receive the requested input."""
    pass


class UnhandledModalFault(DriverFault):
    """An alert/confirm/prompt is blocking the page."""

    def __init__(self, message: str = "Unexpected modal dialog", text: Optional[str] = None):
        super().__init__(message)
        self.text = text


class SessionLostFault(DriverFault):
    """The browser session or its connection is gone."""
    pass


TRANSIENT_FAULTS = (StaleReferenceFault, UnhandledModalFault)


def is_unrecoverable(fault: BaseException) -> bool:
    """Tell whether a fault must propagate without any retry."""
    return isinstance(fault, DriverFault) and not isinstance(
        fault, TRANSIENT_FAULTS + (NoSuchElementFault,)
    )


# =============================================================================
# Driver Contract
# =============================================================================

class RemoteDriver(ABC):
    """
    Abstract interface of the browser automation driver.

    Implementations wrap a live session (see ``PlaywrightDriver``) and must
    translate their native errors into the ``DriverFault`` hierarchy.
    """

    # -- Locating -------------------------------------------------------------

    @abstractmethod
    def find_element(self, root: Any, locator: Locator) -> Any:
        """
        Return the first match of ``locator`` under ``root``.

        Raises:
            NoSuchElementFault: When nothing matches.
        """
        ...

    @abstractmethod
    def find_elements(self, root: Any, locator: Locator) -> List[Any]:
        """Return every match of ``locator`` under ``root`` in document order."""
        ...

    # -- State ----------------------------------------------------------------

    @abstractmethod
    def is_displayed(self, ref: Any) -> bool:
        ...

    @abstractmethod
    def is_enabled(self, ref: Any) -> bool:
        ...

    @abstractmethod
    def is_selected(self, ref: Any) -> bool:
        ...

    @abstractmethod
    def get_attribute(self, ref: Any, name: str) -> Optional[str]:
        ...

    @abstractmethod
    def get_property(self, ref: Any, name: str) -> Optional[str]:
        """Return a (possibly dotted, e.g. ``dataset.id``) DOM property as text."""
        ...

    @abstractmethod
    def get_text(self, ref: Any) -> str:
        """Rendered text of a displayed element."""
        ...

    @abstractmethod
    def get_text_content(self, ref: Any) -> str:
        """Raw ``textContent``, available for hidden elements too."""
        ...

    @abstractmethod
    def get_tag_name(self, ref: Any) -> str:
        ...

    @abstractmethod
    def get_rect(self, ref: Any) -> Optional[Dict[str, float]]:
        """Geometry as ``{"x", "y", "width", "height"}`` or None when not rendered."""
        ...

    # -- Input ----------------------------------------------------------------

    @abstractmethod
    def click(self, ref: Any) -> None:
        ...

    @abstractmethod
    def clear(self, ref: Any) -> None:
        ...

    @abstractmethod
    def send_keys(self, ref: Any, text: str) -> None:
        ...

    @abstractmethod
    def submit(self, ref: Any) -> None:
        ...

    @abstractmethod
    def scroll_into_view(self, ref: Any) -> None:
        ...

    # -- Contexts -------------------------------------------------------------

    @abstractmethod
    def switch_to_default(self) -> None:
        """Select the top-level document."""
        ...

    @abstractmethod
    def switch_to_frame(self, ref: Any) -> None:
        """
        Select the document of the given frame element.

        Raises:
            NoSuchFrameFault: When the element is not a frame.
        """
        ...

    @abstractmethod
    def accept_alert(self) -> Optional[str]:
        """Accept the pending modal dialog, returning its text, or None if none."""
        ...


__all__ = [
    "DriverFault",
    "ElementNotInteractableFault",
    "NoSuchElementFault",
    "NoSuchFrameFault",
    "RemoteDriver",
    "SessionLostFault",
    "StaleReferenceFault",
    "TRANSIENT_FAULTS",
    "UnhandledModalFault",
    "is_unrecoverable",
]
