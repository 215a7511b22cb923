"""Pytest fixtures and configuration for task-capture tests.

Provides common fixtures for configuration, reference instants, and
AI provider fakes.
"""

import json
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Generator

import pytest

from taskcapture.config import reset_config
from taskcapture.config_schema import AppConfig

# Tuesday, 2026-02-10 09:00 UTC
REFERENCE_NOW = datetime(2026, 2, 10, 9, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def reset_config_singleton() -> Generator[None, None, None]:
    """Reset the config singleton before each test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def now() -> datetime:
    """Return the fixed reference instant (a Tuesday)."""
    return REFERENCE_NOW


@pytest.fixture
def temp_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def sample_config_yaml() -> str:
    """Return a minimal valid config.yaml content."""
    return """
schema_version: 1

timezone: "Europe/Moscow"

folders:
  - slug: "finance"
    display_name: "Финансы"

splitter:
  mode: "off"
  timeout_ms: 2000
  providers: ["openai", "gemini"]
"""


@pytest.fixture
def sample_config_dict() -> dict[str, Any]:
    """Return a minimal valid config as a dictionary."""
    return {
        "schema_version": 1,
        "timezone": "Europe/Moscow",
        "folders": [{"slug": "finance", "display_name": "Финансы"}],
        "splitter": {
            "mode": "off",
            "timeout_ms": 2000,
            "providers": ["openai", "gemini"],
        },
    }


@pytest.fixture
def sample_config(sample_config_dict: dict[str, Any]) -> AppConfig:
    """Return a minimal valid AppConfig instance."""
    return AppConfig(**sample_config_dict)


@pytest.fixture
def config_file(temp_config_dir: Path, sample_config_yaml: str) -> Path:
    """Create a temporary config file with valid content."""
    config_path = temp_config_dir / "config.yaml"
    config_path.write_text(sample_config_yaml, encoding="utf-8")
    return config_path


@pytest.fixture
def set_config_env(config_file: Path) -> Generator[None, None, None]:
    """Set the TASKCAPTURE_CONFIG_PATH environment variable."""
    old_value = os.environ.get("TASKCAPTURE_CONFIG_PATH")
    os.environ["TASKCAPTURE_CONFIG_PATH"] = str(config_file)
    yield
    if old_value is None:
        del os.environ["TASKCAPTURE_CONFIG_PATH"]
    else:
        os.environ["TASKCAPTURE_CONFIG_PATH"] = old_value


# ---------------------------------------------------------------------------
# AI provider fakes
# ---------------------------------------------------------------------------


class FakeProvider:
    """Split provider returning a canned response (or raising)."""

    def __init__(self, name: str, response: str | None = None, error: Exception | None = None):
        self.name = name
        self._response = response
        self._error = error
        self.calls: list[str] = []

    async def complete(self, text: str) -> str:
        self.calls.append(text)
        if self._error is not None:
            raise self._error
        assert self._response is not None
        return self._response


def split_response(*contents: str, is_multi: bool | None = None) -> str:
    """Build a valid AI split response body."""
    return json.dumps(
        {
            "isMulti": len(contents) > 1 if is_multi is None else is_multi,
            "items": [{"content": c, "confidence": 0.9} for c in contents],
        }
    )


@pytest.fixture
def make_provider() -> type[FakeProvider]:
    """Return the FakeProvider class for building canned providers."""
    return FakeProvider


@pytest.fixture(name="split_response")
def split_response_fixture() -> Any:
    """Return the split response builder."""
    return split_response
