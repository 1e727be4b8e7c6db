"""
================================================================================
Global Configuration
================================================================================

Centralized configuration and logging bootstrap for the UI engine.

Features:
    - YAML-based configuration loading (config/config.yaml + config/{ENV}.yaml)
    - Environment variable overrides (ENGINE__DEFAULT_TIMEOUT=30)
    - Centralized Loguru logging configuration

Author: Automation Team
License: MIT
================================================================================
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from loguru import logger

# Process-wide configuration storage
_config: Dict[str, Any] = {}
_logger_initialized: bool = False

# Overridable for tests and embedding applications
CONFIG_DIR_ENV = "RESILIENT_UI_CONFIG_DIR"

DEFAULT_LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"
)


def init_logger(level: Optional[str] = None, format_str: Optional[str] = None) -> None:
    """
    Initializes the global Loguru logger from the ``logging`` section.

    Safe to call several times; only the first call configures sinks.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to config value.
        format_str: Custom log format string. Defaults to config value.
    """
    global _logger_initialized

    if _logger_initialized:
        return

    _ensure_config_loaded()

    log_level = str(level or get_config("logging.level", "INFO")).upper()
    log_format = format_str or get_config("logging.format", DEFAULT_LOG_FORMAT)

    logger.remove()
    logger.add(
        sys.stderr,
        level=log_level,
        format=log_format,
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    log_file = get_config("logging.file", None)
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level=log_level,
            format=log_format.replace("{level: <8}", "{level}"),
            rotation=get_config("logging.rotation", "10 MB"),
            retention=get_config("logging.retention", "7 days"),
            compression="zip",
        )

    _logger_initialized = True
    logger.debug(f"Logger initialized with level: {log_level}")


def get_logger():
    """
    Returns the configured Loguru logger, initializing it on first use.
    """
    if not _logger_initialized:
        init_logger()
    return logger


def _ensure_config_loaded() -> None:
    if not _config:
        _load_config()


def _candidate_config_dirs() -> List[Path]:
    dirs = []
    env_dir = os.getenv(CONFIG_DIR_ENV)
    if env_dir:
        dirs.append(Path(env_dir))
    dirs.extend([
        Path("config"),
        Path(__file__).parent.parent.parent / "config",
    ])
    return dirs


def _load_config() -> None:
    """
    Loads configuration from YAML files and environment variables.

    Loading order (later wins):
        1. Built-in defaults
        2. config/config.yaml
        3. config/{ENV}.yaml
        4. SECTION__KEY environment variables
    """
    global _config

    _config = _get_defaults()

    config_dir = next((d for d in _candidate_config_dirs() if d.is_dir()), None)
    if config_dir is None:
        logger.debug("No configuration directory found. Using defaults.")
    else:
        default_config_path = config_dir / "config.yaml"
        if default_config_path.exists():
            _config = _deep_merge(_config, _read_yaml(default_config_path))
            logger.debug(f"Loaded configuration from {default_config_path}")

        env = os.getenv("ENVIRONMENT", os.getenv("ENV", "dev"))
        env_config_path = config_dir / f"{env}.yaml"
        if env_config_path.exists():
            _config = _deep_merge(_config, _read_yaml(env_config_path))
            logger.debug(f"Merged environment config: {env_config_path}")

    _apply_env_overrides()


def _read_yaml(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _get_defaults() -> Dict[str, Any]:
    return {
        "logging": {
            "level": "INFO",
            "format": DEFAULT_LOG_FORMAT,
        },
        "engine": {
            "performance": "average",
            "max_recovery_attempts": 5,
            "recovery_delay": 0.25,
            "poll_interval": 0.05,
            "settle_delay": 1.0,
            "max_alerts": 10,
            "max_frame_depth": 5,
            "action_timeout": 5.0,
        },
    }


def _deep_merge(base: Dict, override: Dict) -> Dict:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _apply_env_overrides() -> None:
    """
    Applies environment variable overrides.

    Double underscore separates nested keys, values are parsed as YAML scalars:
    ENGINE__MAX_RECOVERY_ATTEMPTS=3 sets engine.max_recovery_attempts to int 3.
    """
    for key, value in os.environ.items():
        if "__" not in key or key.startswith("__"):
            continue
        parts = [p.lower() for p in key.split("__")]
        _set_nested(_config, parts, _parse_scalar(value))


def _parse_scalar(value: str) -> Any:
    try:
        return yaml.safe_load(value)
    except yaml.YAMLError:
        return value


def _set_nested(d: Dict, keys: list, value: Any) -> None:
    for key in keys[:-1]:
        nested = d.get(key)
        if not isinstance(nested, dict):
            nested = {}
            d[key] = nested
        d = nested
    d[keys[-1]] = value


def get_config(key: str, default: Any = None) -> Any:
    """
    Retrieves a configuration value using a dot-separated key path.

    Args:
        key: Dot-separated key path (e.g., "logging.level", "engine.poll_interval").
        default: Value returned when the key is not configured.

    Examples:
        >>> get_config("engine.max_recovery_attempts", 5)
        5
    """
    _ensure_config_loaded()

    value = _config
    for k in key.split("."):
        if isinstance(value, dict) and k in value:
            value = value[k]
        else:
            return default

    return value


def set_config(key: str, value: Any) -> None:
    """
    Sets a configuration value at runtime.
    """
    _ensure_config_loaded()
    _set_nested(_config, key.split("."), value)


def reload_config() -> None:
    """
    Drops the cached configuration and reloads it from files and environment.
    """
    global _config, _logger_initialized
    _config = {}
    _logger_initialized = False
    _load_config()
    init_logger()
    logger.info("Configuration reloaded.")
