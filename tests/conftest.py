"""Shared fixtures for UI inspector tests."""

import pytest


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "smoke: mark test as smoke test (fast, critical path - included in CI)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
    config.addinivalue_line(
        "markers", "e2e: mark test as end-to-end test requiring a real browser"
    )


@pytest.fixture
def mock_env_vars(monkeypatch, tmp_path):
    """Set up test environment variables.

    Runs from an empty directory so a developer's ``.env`` file is not read.
    """
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("UI_INSPECTOR_APP_URL", "http://localhost:4173")
    monkeypatch.setenv("UI_INSPECTOR_OUTPUT_DIR", str(tmp_path / "out"))
    monkeypatch.setenv("UI_INSPECTOR_SCREENSHOT_DIR", str(tmp_path / "out" / "screenshots"))
    monkeypatch.delenv("UI_INSPECTOR_VIEWPORTS", raising=False)
    monkeypatch.delenv("UI_INSPECTOR_LOG_LEVEL", raising=False)
    monkeypatch.delenv("UI_INSPECTOR_REPORT_FORMAT", raising=False)
    return tmp_path
