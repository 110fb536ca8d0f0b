"""Pytest configuration and fixtures."""

import os

import pytest
from dotenv import load_dotenv

# Load environment variables from .env.local first, then .env
if os.path.exists('.env.local'):
    load_dotenv('.env.local')
else:
    load_dotenv('.env')

# Import utilities and fixtures
from tests.util.firebase_emulator import firebase_emulator  # noqa: E402,F401
from tests.util.service_setup import auth, clock, ctx, db, settings, sleeps, users  # noqa: E402,F401
from tests.util.test_env import is_emulator_running  # noqa: E402


def pytest_collection_modifyitems(config, items):
    """Skip integration tests when the Functions emulator is not reachable."""
    integration = [item for item in items if "integration" in item.keywords]
    if not integration or is_emulator_running():
        return
    skip = pytest.mark.skip(reason="Firebase emulator is not running (python run_tests.py starts it)")
    for item in integration:
        item.add_marker(skip)
