"""
================================================================================
Resilient UI
================================================================================

Page-Object test automation engine over a WebDriver-style browser driver.

The engine keeps located elements usable across re-renders (stale handles are
re-located transparently), polls for elements and conditions with bounded
timeouts, and keeps the driver's selected frame consistent around every call.

Author: Automation Team
License: MIT
================================================================================
"""

__version__ = "1.0.0"
