"""Test configuration."""

from pathlib import Path
from typing import List

import pytest

from rotasmart.core.logging import configure_logging

fixture = pytest.fixture


@fixture(scope="session")
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


pytest_plugins: List[str] = [
    "tests.fixtures.geocoding",
    "tests.fixtures.api",
]


@fixture(scope="session", autouse=True)
def setup_test_logging() -> None:
    """Configure console logging once for the whole session."""
    configure_logging(testing=True, level="debug")
