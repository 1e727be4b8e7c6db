"""
================================================================================
Engine Configuration
================================================================================

Explicit, immutable settings handed to a BrowserSession at construction.
Nothing in the engine reads ambient globals; ``EngineConfig.from_config()``
is the single bridge to the YAML/env configuration.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Dict, Optional

from loguru import logger

from resilient_ui.common.global_config import get_config

from .errors import ConfigurationError


class Performance(Enum):
    """Environment speed class; every timeout default is multiplied by it."""
    AVERAGE = 1
    SLOW = 2
    SNAIL = 3

    @classmethod
    def parse(cls, value: Any) -> "Performance":
        if isinstance(value, Performance):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise ConfigurationError(
                f"Unknown performance level '{value}', expected one of "
                f"{[p.name.lower() for p in cls]}"
            ) from None


@dataclass(frozen=True)
class EngineConfig:
    """
    Settings of the polling and recovery engine.

    Attributes:
        default_timeout: Seconds a poll waits when no timeout is given
        short_timeout: Seconds for quick presence checks
        tiny_timeout: Seconds for "is it already there" checks
        open_timeout: Seconds allowed for a page or dialog to open
        close_timeout: Seconds allowed for a dialog to close
        max_recovery_attempts: Recovery attempts before an element is lost
        recovery_delay: Pause between two failed recovery attempts
        poll_interval: Pause between two poll iterations
        settle_delay: Pause after a click that opens something
        max_alerts: Consecutive unexpected alerts tolerated while purging
        max_frame_depth: Frame nesting explored when scanning all frames
        action_timeout: Driver-side timeout of a single input action
    """
    default_timeout: float = 60.0
    short_timeout: float = 10.0
    tiny_timeout: float = 0.0
    open_timeout: float = 30.0
    close_timeout: float = 30.0
    max_recovery_attempts: int = 5
    recovery_delay: float = 0.25
    poll_interval: float = 0.05
    settle_delay: float = 1.0
    max_alerts: int = 10
    max_frame_depth: int = 5
    action_timeout: float = 5.0

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or value < 0:
                raise ConfigurationError(f"Engine setting '{f.name}' must be >= 0, got {value!r}")
        if self.max_recovery_attempts < 1:
            raise ConfigurationError("Engine setting 'max_recovery_attempts' must be >= 1")
        if self.max_alerts < 1:
            raise ConfigurationError("Engine setting 'max_alerts' must be >= 1")

    @classmethod
    def for_performance(cls, performance: Any = Performance.AVERAGE, **overrides: Any) -> "EngineConfig":
        """
        Build the defaults of a performance class, then apply overrides.
        """
        level = Performance.parse(performance)
        m = level.value
        open_timeout = 30.0 * m
        values: Dict[str, Any] = {
            "default_timeout": 60.0 * m,
            "short_timeout": 10.0 * m,
            "tiny_timeout": 1.0 if level is Performance.SLOW else 0.0,
            "open_timeout": open_timeout,
            "close_timeout": open_timeout,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @classmethod
    def from_config(cls, section: str = "engine") -> "EngineConfig":
        """
        Build the settings from the ``engine`` section of the global config.

        Unknown keys are ignored with a warning.
        """
        raw: Optional[Dict[str, Any]] = get_config(section, {}) or {}
        known = {f.name: f.type for f in fields(cls)}
        overrides: Dict[str, Any] = {}
        for key, value in raw.items():
            if key == "performance":
                continue
            if key not in known:
                logger.warning(f"Ignoring unknown engine setting: {section}.{key}")
                continue
            try:
                overrides[key] = int(value) if key in ("max_recovery_attempts", "max_alerts", "max_frame_depth") else float(value)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid value for {section}.{key}: {value!r}") from e

        config = cls.for_performance(raw.get("performance", "average"), **overrides)
        logger.debug(f"Engine configuration: {config}")
        return config

    def with_overrides(self, **overrides: Any) -> "EngineConfig":
        return replace(self, **overrides)


__all__ = [
    "EngineConfig",
    "Performance",
]
