"""
================================================================================
Root Pytest Configuration
================================================================================

This module provides the root pytest configuration for the entire test suite.
It initializes logging from the project configuration, registers common
markers and tags tests by location.

================================================================================
"""

import pytest

from resilient_ui.common.global_config import init_logger


def pytest_configure(config):
    """Configure pytest with project logging and custom markers."""

    # Before any test adds its own sinks
    init_logger()

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - core engine contract"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )
    config.addinivalue_line(
        "markers", "P2: Medium priority tests - edge cases and minor features"
    )

    # Test type markers
    config.addinivalue_line(
        "markers", "unit: Unit tests running against the in-memory driver"
    )

    # Feature markers
    config.addinivalue_line(
        "markers", "recovery: Tests related to stale element recovery"
    )
    config.addinivalue_line(
        "markers", "polling: Tests related to element and condition polling"
    )
    config.addinivalue_line(
        "markers", "context: Tests related to frame context tracking"
    )


def pytest_collection_modifyitems(config, items):
    """
    Modify collected test items.

    Tests under tests/unit get the 'unit' marker automatically.
    """
    for item in items:
        if "unit" in item.path.parts:
            item.add_marker(pytest.mark.unit)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "Resilient UI Element Engine",
        "=" * 60,
        "",
    ]
