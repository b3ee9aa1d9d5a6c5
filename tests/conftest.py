"""Pytest configuration for all tests."""

import os
from typing import Any, Iterator

import pytest
import structlog

from multismtp.core.config import get_settings
from multismtp.core.hooks import HookRegistry
from multismtp.domain.settings_table import ENV_PREFIX


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Drop SMTP and app variables so tests never see the host's settings."""
    for name in list(os.environ):
        if name.startswith(ENV_PREFIX) or name.startswith("MULTISMTP_"):
            monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()

    yield

    # The CLI configures structlog against the runner's streams
    structlog.reset_defaults()


@pytest.fixture
def required_source() -> dict[str, Any]:
    """Raw settings with only the required names defined."""
    return {
        "HOST": "smtp.example.com",
        "USER": "mailer",
        "PASSWORD": "s3cret",
    }


@pytest.fixture
def registry() -> HookRegistry:
    """Fresh hook registry."""
    return HookRegistry()
