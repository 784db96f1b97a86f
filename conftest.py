"""Root conftest.py for hwtest-relayplate.

Puts the src/ layout on the import path and registers the markers shared
with the other hwtest packages.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from _pytest.config import Config


# Add the package src directory to path for imports
PROJECT_ROOT = Path(__file__).parent
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))


def pytest_configure(config: Config) -> None:
    """Register custom markers.

    Args:
        config: pytest configuration object.
    """
    config.addinivalue_line(
        "markers",
        "uses_mock: Test uses mocking (fake SPI device or GPIO interface)",
    )
    config.addinivalue_line(
        "markers",
        "integration: Integration test requiring a real RELAYplate",
    )


def pytest_report_header(config: Config) -> list[str]:
    """Add a header line to the pytest report.

    Args:
        config: pytest configuration object.

    Returns:
        List of header lines.
    """
    return ["hwtest-relayplate test suite"]
