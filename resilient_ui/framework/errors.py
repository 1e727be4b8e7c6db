"""
================================================================================
Engine Errors
================================================================================

Errors surfaced to test code. Every message carries the offending locator and
context (and the timeout for waits) so a failure is diagnosable from the
report alone.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Sequence

import allure

if TYPE_CHECKING:
    from .contexts import Context
    from .locators import Locator


class ScenarioFailedError(Exception):
    """Base class of every error raised by the engine."""

    def attach(self, name: str) -> None:
        """Attach the error text to the current Allure step, if any."""
        allure.attach(str(self), name=name, attachment_type=allure.attachment_type.TEXT)


class ConfigurationError(ScenarioFailedError):
    """Raised when engine settings are invalid."""
    pass


class WaitElementTimeoutError(ScenarioFailedError):
    """
    Raised when a wait deadline elapsed without the expected outcome.

    Attributes:
        target: Locator(s) or description of what was awaited
        timeout: Configured timeout in seconds
        elapsed: Seconds actually spent waiting
    """

    def __init__(
        self,
        target: Any,
        timeout: float,
        elapsed: Optional[float] = None,
        context: Optional["Context"] = None,
        message: Optional[str] = None,
    ):
        self.target = target
        self.timeout = timeout
        self.elapsed = elapsed
        self.context = context
        if message is None:
            message = f"Timeout while waiting for '{target}'"
            if context is not None:
                message += f" in {context}"
            message += f". Took longer than '{timeout}' seconds"
            if elapsed is not None:
                message += f" (waited {elapsed:.2f}s)"
            message += "."
        super().__init__(message)


class MultipleVisibleElementsError(ScenarioFailedError):
    """Raised when several elements matched where exactly one was expected."""

    def __init__(self, locator: "Locator", elements: Sequence[Any], context: Optional["Context"] = None):
        self.locator = locator
        self.elements = list(elements)
        self.context = context
        lines = [
            "Unexpected multiple elements found.",
            f"\t-> locator: {locator}",
            f"\t-> context: {context}",
            f"\t-> # found: {len(self.elements)}",
        ]
        lines.extend(f"\t-> candidate {idx}: {element}" for idx, element in enumerate(self.elements))
        super().__init__("\n".join(lines))


class ElementLostError(ScenarioFailedError):
    """Raised when a stale element could not be re-located within the attempt budget."""

    def __init__(self, locator: "Locator", context: "Context", attempts: int, action: str = ""):
        self.locator = locator
        self.context = context
        self.attempts = attempts
        self.action = action
        doing = f" while {action}" if action else ""
        super().__init__(
            f"Cannot recover web element '{locator}' in {context}{doing} "
            f"after {attempts} attempts, give up."
        )


class TooManyAlertsError(ScenarioFailedError):
    """Raised when alerts keep popping up while purging them."""

    def __init__(self, action: str, count: int):
        self.action = action
        self.count = count
        super().__init__(f"Too many unexpected alerts ({count}) while {action}, give up!")


class ContextSwitchError(ScenarioFailedError):
    """Raised when a frame chain cannot be selected."""

    def __init__(self, context: "Context", cause: Exception):
        self.context = context
        super().__init__(f"Cannot select {context}: {cause}")


class ContextRestoreError(ScenarioFailedError):
    """
    Raised when the context selected before an operation cannot be selected
    again once the operation has completed.
    """

    def __init__(self, context: "Context", cause: Exception):
        self.context = context
        super().__init__(f"Cannot get back to {context} after the operation: {cause}")


__all__ = [
    "ConfigurationError",
    "ContextRestoreError",
    "ContextSwitchError",
    "ElementLostError",
    "MultipleVisibleElementsError",
    "ScenarioFailedError",
    "TooManyAlertsError",
    "WaitElementTimeoutError",
]
