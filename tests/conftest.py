"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before anything imports llm_meter, because the
global settings object is built at import time.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("AUTH_USERNAME", "eventing")
os.environ.setdefault("AUTH_PASSWORD", "eventing123")
os.environ.setdefault("LOG_LEVEL", "INFO")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from llm_meter.core.app_factory import create_app
from llm_meter.core.config import AppSettings, AuthSettings, LogSettings, Settings

TEST_USERNAME = "test-user"
TEST_PASSWORD = "test-pass"
TEST_TIERS = {"Bronze": 100, "Silver": 200, "Gold": 300, "Platinum": 400}


@pytest.fixture
def test_settings() -> Settings:
    """Settings with a known credential and the default four tiers."""
    return Settings(
        log=LogSettings(level="INFO", format="json"),
        auth=AuthSettings(username=TEST_USERNAME, password=TEST_PASSWORD),
        app=AppSettings(initial_tiers=dict(TEST_TIERS)),
    )


@pytest.fixture
def app(test_settings: Settings) -> FastAPI:
    """Fresh app per test so the registry and counter start clean."""
    return create_app(test_settings)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def auth() -> tuple[str, str]:
    """Valid HTTP Basic credential for the test app."""
    return (TEST_USERNAME, TEST_PASSWORD)
