"""
Shared fixtures: a fake DOM, its driver and a fast engine session.
"""

from typing import Any, Dict, List

import pytest
from loguru import logger

from resilient_ui.common.global_config import reload_config
from resilient_ui.framework.config import EngineConfig
from resilient_ui.framework.session import BrowserSession

from .fakes import FakeDocument, FakeDriver


@pytest.fixture
def engine_config() -> EngineConfig:
    return EngineConfig(
        default_timeout=1.0,
        short_timeout=0.5,
        tiny_timeout=0.0,
        open_timeout=1.0,
        close_timeout=1.0,
        recovery_delay=0.0,
        poll_interval=0.01,
        settle_delay=0.0,
    )


@pytest.fixture
def dom() -> FakeDocument:
    return FakeDocument()


@pytest.fixture
def driver(dom) -> FakeDriver:
    return FakeDriver(dom)


@pytest.fixture
def session(driver, engine_config) -> BrowserSession:
    return BrowserSession(driver, engine_config)


@pytest.fixture
def log_records() -> List[Dict[str, Any]]:
    """Loguru records emitted during the test."""
    records: List[Dict[str, Any]] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    """Point the global configuration at an empty temporary directory."""
    monkeypatch.setenv("RESILIENT_UI_CONFIG_DIR", str(tmp_path))
    monkeypatch.delenv("ENV", raising=False)
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    yield tmp_path
    monkeypatch.undo()
    reload_config()
