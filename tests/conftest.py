"""
Global test configuration for BadgePress.
"""

import os
import tempfile

# settings are read on import, point them at throwaway storage first
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="badgepress-uploads-"))
os.environ.setdefault("LOG_LEVEL", "warning")

# pylint: disable=wrong-import-position
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from badgepress.main import app  # noqa: E402


@pytest.fixture
def client():
    """Test client for the BadgePress app."""
    with TestClient(app) as test_client:
        yield test_client


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "smoke: Critical functionality tests")
    config.addinivalue_line("markers", "web: Web application tests")


def pytest_collection_modifyitems(config, items):
    """Auto-mark tests based on location."""
    _ = config

    for item in items:
        test_path = str(item.fspath)

        # Mark by directory
        if "/unit/" in test_path or "\\unit\\" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path or "\\integration\\" in test_path:
            item.add_marker(pytest.mark.integration)

        if "/web/" in test_path or "\\web\\" in test_path:
            item.add_marker(pytest.mark.web)
