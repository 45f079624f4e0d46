"""
Pytest configuration and fixtures for the Product Review client tests.
"""

import os
import tempfile

# Settings are read at import time, so the test environment is fixed up front.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("PREFS_STORE_PATH", "")
os.environ.setdefault(
    "LOG_FILE_PATH",
    os.path.join(tempfile.gettempdir(), "product-review-tests", "client-events.log"),
)

import pytest  # noqa: E402

from src.services.preference_store import MemoryPreferenceStore  # noqa: E402
from src.services.user_preferences import UserPreferences  # noqa: E402


@pytest.fixture
def memory_store():
    return MemoryPreferenceStore()


@pytest.fixture
def preferences(memory_store):
    return UserPreferences(memory_store, grace_period=0.05, id_factory=lambda: "generated-id")
