from pathlib import Path

import pytest

from labelcheck.config.settings import Settings


@pytest.fixture()
def example_settings(tmp_path: Path) -> Settings:
    return Settings(
        service_provider="example",
        preferences_path=str(tmp_path / "preferences.json"),
        progress_tick_seconds=0.01,
        progress_reset_delay_seconds=0.01,
    )


@pytest.fixture()
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the CLI at the offline client and a throwaway preferences file."""
    preferences = tmp_path / "preferences.json"
    monkeypatch.setenv("SERVICE_PROVIDER", "example")
    monkeypatch.setenv("PREFERENCES_PATH", str(preferences))
    monkeypatch.setenv("PROGRESS_RESET_DELAY_SECONDS", "0.01")
    monkeypatch.setenv("HEALTH_POLL_INTERVAL_SECONDS", "0.05")
    return preferences
