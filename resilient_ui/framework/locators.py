"""
================================================================================
Locators
================================================================================

Immutable, serializable query expressions resolved by the driver against the
currently selected document context.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class LocatorKind(Enum):
    """Supported locator strategies."""
    XPATH = "xpath"
    CSS = "css"
    ID = "id"
    NAME = "name"
    TAG = "tag"
    TEXT = "text"
    TEST_ID = "test_id"


@dataclass(frozen=True)
class Locator:
    """
    A query kind plus its expression.

    Two locators are equal iff kind and expression are equal, which makes them
    usable as context path segments and dictionary keys.

    Usage:
        >>> rows = Locator.xpath(".//tr")
        >>> rows.selector
        'xpath=.//tr'
        >>> Locator.parse("css=#login") == Locator.css("#login")
        True
    """
    kind: LocatorKind
    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.kind, LocatorKind):
            raise TypeError(f"Locator kind must be a LocatorKind, got {self.kind!r}")
        if not self.value:
            raise ValueError(f"Empty {self.kind.value} locator expression")

    # =========================================================================
    # Factories
    # =========================================================================

    @classmethod
    def xpath(cls, expression: str) -> "Locator":
        return cls(LocatorKind.XPATH, expression)

    @classmethod
    def css(cls, expression: str) -> "Locator":
        return cls(LocatorKind.CSS, expression)

    @classmethod
    def id(cls, value: str) -> "Locator":
        return cls(LocatorKind.ID, value)

    @classmethod
    def name(cls, value: str) -> "Locator":
        return cls(LocatorKind.NAME, value)

    @classmethod
    def tag(cls, value: str) -> "Locator":
        return cls(LocatorKind.TAG, value)

    @classmethod
    def text(cls, value: str) -> "Locator":
        return cls(LocatorKind.TEXT, value)

    @classmethod
    def test_id(cls, value: str) -> "Locator":
        return cls(LocatorKind.TEST_ID, value)

    @classmethod
    def parse(cls, expression: str) -> "Locator":
        """
        Parse a ``kind=value`` string. A bare expression is read as xpath when it
        starts with ``/``, ``./`` or ``(``, and as css otherwise.
        """
        kind_name, sep, value = expression.partition("=")
        if sep:
            for kind in LocatorKind:
                if kind.value == kind_name.strip():
                    return cls(kind, value)
        if expression.startswith(("/", "./", "(", "..")):
            return cls.xpath(expression)
        return cls.css(expression)

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "Locator":
        return cls(LocatorKind(data["kind"]), data["value"])

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind.value, "value": self.value}

    # =========================================================================
    # Rendering
    # =========================================================================

    @property
    def selector(self) -> str:
        """Selector string understood by Playwright-style selector engines."""
        if self.kind is LocatorKind.XPATH:
            return f"xpath={self.value}"
        if self.kind is LocatorKind.CSS:
            return f"css={self.value}"
        if self.kind is LocatorKind.ID:
            return f"id={self.value}"
        if self.kind is LocatorKind.NAME:
            return f"css=[name=\"{self.value}\"]"
        if self.kind is LocatorKind.TAG:
            return f"css={self.value}"
        if self.kind is LocatorKind.TEXT:
            return f"text={self.value}"
        return f"data-testid={self.value}"

    @property
    def is_xpath(self) -> bool:
        return self.kind is LocatorKind.XPATH

    def xpath_expression(self) -> str:
        """
        Best-effort xpath rendition, used to build an element's full path.
        """
        if self.kind is LocatorKind.XPATH:
            return self.value
        if self.kind is LocatorKind.ID:
            return f"//*[@id='{self.value}']"
        if self.kind is LocatorKind.NAME:
            return f"//*[@name='{self.value}']"
        if self.kind is LocatorKind.TAG:
            return f"//{self.value}"
        if self.kind is LocatorKind.TEST_ID:
            return f"//*[@data-testid='{self.value}']"
        if self.kind is LocatorKind.TEXT:
            return f"//*[contains(normalize-space(.), '{self.value}')]"
        return f"css({self.value})"

    def __str__(self) -> str:
        return f"{self.kind.value}={self.value}"


# Matches every frame of the selected document
FRAMES = Locator.xpath("//iframe | //frame")


def indexed_frame(index: int) -> Locator:
    """Locator of the n-th (0-based) frame of the selected document."""
    return Locator.xpath(f"(//iframe | //frame)[{index + 1}]")


__all__ = [
    "FRAMES",
    "Locator",
    "LocatorKind",
    "indexed_frame",
]
