"""
Shared pytest configuration.

Puts the server root on sys.path so `import app` works in every test, and
provides settings / fake Gemini client fixtures.
"""

import sys
from pathlib import Path

import pytest

# Ensure server root is importable for test modules.
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app.core.config import Settings  # noqa: E402
from tests.fakes import FakeGeminiClient  # noqa: E402


@pytest.fixture
def make_settings(tmp_path):
    """Settings factory: test defaults, no static dir, overridable per test."""

    def _make(**overrides) -> Settings:
        values = {
            "environment": "test",
            "gemini_api_key": "test-key",  # pragma: allowlist secret
            "gemini_model": "gemini-test",
            "static_dir": tmp_path / "no-static",
            "session_ttl_seconds": 0,
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def fake_client() -> FakeGeminiClient:
    return FakeGeminiClient()
