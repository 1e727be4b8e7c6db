"""
================================================================================
UI Element Engine
================================================================================

Element-handle recovery and polling engine over a WebDriver-style driver.

Components:
    - locators: Immutable, serializable element queries
    - contexts: Frame contexts and the tracker keeping them selected
    - element: Element handles re-locating themselves when stale
    - recovery: Attempt budget and candidate tie-break of recovery
    - poll_engine: Deadline loops for elements and conditions
    - session: Browser session tying the above to one driver
    - playwright_driver: Driver adapter over Playwright
    - page_base: Base page object

Author: Automation Team
License: MIT
================================================================================
"""

from .config import EngineConfig, Performance
from .contexts import ROOT, Context, ContextTracker
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
from .element import ElementHandle
from .errors import (
    ConfigurationError,
    ContextRestoreError,
    ContextSwitchError,
    ElementLostError,
    MultipleVisibleElementsError,
    ScenarioFailedError,
    TooManyAlertsError,
    WaitElementTimeoutError,
)
from .locators import Locator, LocatorKind
from .page_base import BasePage
from .poll_engine import PollEngine
from .recovery import RecoveryPolicy
from .session import BrowserSession

__all__ = [
    "BasePage",
    "BrowserSession",
    "ConfigurationError",
    "Context",
    "ContextRestoreError",
    "ContextSwitchError",
    "ContextTracker",
    "DriverFault",
    "ElementHandle",
    "ElementLostError",
    "ElementNotInteractableFault",
    "EngineConfig",
    "Locator",
    "LocatorKind",
    "MultipleVisibleElementsError",
    "NoSuchElementFault",
    "NoSuchFrameFault",
    "Performance",
    "PollEngine",
    "ROOT",
    "RecoveryPolicy",
    "RemoteDriver",
    "ScenarioFailedError",
    "SessionLostFault",
    "StaleReferenceFault",
    "TooManyAlertsError",
    "UnhandledModalFault",
    "WaitElementTimeoutError",
]
