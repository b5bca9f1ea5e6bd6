"""Configure pytest fixtures and environment for consolesync tests."""

import pytest
from dotenv import load_dotenv

from consolesync.core import config


def pytest_sessionstart(session):
    """Load environment variables from .env."""
    load_dotenv()
    print("✅ Environment variables loaded from .env file")


@pytest.fixture(autouse=True)
def reset_settings():
    """Drop the cached global settings around each test."""
    config.settings = None
    yield
    config.settings = None
