"""
================================================================================
Base Page Object
================================================================================

Foundation class for Page Object Model implementations built on a
BrowserSession.

Provides:
    - Named element locators
    - Element interactions through recoverable handles
    - Wait strategies

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Dict, Optional, Union

import allure
from loguru import logger

from .contexts import Context
from .element import ElementHandle
from .errors import ScenarioFailedError
from .locators import Locator
from .session import BrowserSession


class BasePage:
    """
    Base class for all page objects.

    A page holds the session and the context it lives in; its elements are
    declared by name in ``LOCATORS`` and resolved when used.

    Usage:
        class LoginPage(BasePage):
            LOCATORS = {
                "username_input": Locator.id("username"),
                "password_input": Locator.id("password"),
                "login_button": Locator.xpath("//button[@type='submit']"),
            }

            def login(self, username: str, password: str):
                self.fill("username_input", username)
                self.fill("password_input", password)
                self.click("login_button")
    """

    # Override in subclasses
    LOCATORS: Dict[str, Locator] = {}

    def __init__(self, session: BrowserSession, context: Optional[Context] = None):
        """
        Initialize page object.

        Args:
            session: Browser session driving the page
            context: Frame the page lives in (None = the selected context)
        """
        self.session = session
        self.context = context

    def locator(self, element: Union[str, Locator]) -> Locator:
        """Resolve an element name declared in LOCATORS."""
        if isinstance(element, Locator):
            return element
        try:
            return self.LOCATORS[element]
        except KeyError:
            raise ScenarioFailedError(
                f"Unknown element '{element}' on {type(self).__name__}, "
                f"known: {sorted(self.LOCATORS)}"
            ) from None

    # =========================================================================
    # Element Interactions
    # =========================================================================

    def wait_for_element(
        self,
        element: Union[str, Locator],
        timeout: Optional[float] = None,
        fail: bool = True,
        displayed: bool = True,
    ) -> Optional[ElementHandle]:
        """
        Wait for a page element.

        Args:
            element: Element name or locator
            timeout: Seconds to wait (None = default timeout)
            fail: Raise on timeout instead of returning None
            displayed: Only accept a displayed element
        """
        return self.session.wait_for_element(
            self.locator(element), timeout=timeout, fail=fail, displayed=displayed, context=self.context,
        )

    def click(self, element: Union[str, Locator], timeout: Optional[float] = None) -> ElementHandle:
        with allure.step(f"Click: {element}"):
            handle = self.wait_for_element(element, timeout)
            handle.click()
            return handle

    def fill(self, element: Union[str, Locator], value: str, timeout: Optional[float] = None) -> ElementHandle:
        """
        Clear an input then type a value; values of password fields are
        masked in logs and reports.
        """
        password = isinstance(element, str) and "password" in element.lower()
        with allure.step(f"Fill {element}: {'*' * len(value) if password else value}"):
            handle = self.wait_for_element(element, timeout)
            handle.clear()
            handle.send_keys(value, password=password)
            return handle

    def get_text(self, element: Union[str, Locator], timeout: Optional[float] = None) -> str:
        return self.wait_for_element(element, timeout, displayed=False).get_text()

    def is_visible(self, element: Union[str, Locator], timeout: Optional[float] = None) -> bool:
        """
        Check if an element is visible.

        Args:
            element: Element name or locator
            timeout: Seconds to wait (None = tiny timeout)
        """
        if timeout is None:
            timeout = self.session.config.tiny_timeout
        handle = self.wait_for_element(element, timeout, fail=False)
        visible = handle is not None
        logger.debug(f"{element} visible: {visible}")
        return visible

    def wait_while_displayed(self, element: Union[str, Locator], timeout: Optional[float] = None, fail: bool = True) -> bool:
        with allure.step(f"Wait while displayed: {element}"):
            return self.session.poll.wait_while_locator_displayed(
                self.locator(element), timeout=timeout, fail=fail, context=self.context,
            )


__all__ = [
    "BasePage",
]
