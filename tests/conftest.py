"""Shared pytest fixtures for gfm-render tests."""

from __future__ import annotations

import os
from collections.abc import Generator

import pytest

from gfmrender.config import Settings, get_settings
from gfmrender.sanitize import get_policy


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Clear GFMRENDER_* env vars and the cached settings/policy around each test."""
    for key in list(os.environ):
        if key.startswith("GFMRENDER_"):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    get_policy.cache_clear()
    yield
    get_settings.cache_clear()
    get_policy.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Default settings without .env loading."""
    return Settings(_env_file=None)  # type: ignore[call-arg]
