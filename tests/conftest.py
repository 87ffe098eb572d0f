"""Pytest configuration and fixtures."""

import os

import pytest

from pagecraft.db.design_sessions import SessionStore


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["OPENAI_API_KEY"] = "test-openai-key"
    os.environ["PAGECRAFT_ENV"] = "test"


@pytest.fixture
def store() -> SessionStore:
    """Fresh in-memory session store."""
    return SessionStore()
