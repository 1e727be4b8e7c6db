"""Shared configuration and logging helpers."""

from .global_config import get_config, get_logger, init_logger, reload_config, set_config

__all__ = [
    "get_config",
    "get_logger",
    "init_logger",
    "reload_config",
    "set_config",
]
