"""Tests for environment-driven settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from plushie_registry.config.settings import get_settings


@pytest.fixture(autouse=True)
def _clear_cache(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("PLUSHIE_BACKEND", "API_BASE_URL", "IMAGE_MAX_WIDTH", "IMAGE_QUALITY"):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.backend == "session"
    assert settings.api_base_url == "http://localhost:8080/api"
    assert settings.image_max_width == 1280
    assert settings.image_quality == 0.75


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PLUSHIE_BACKEND", "Supabase")
    monkeypatch.setenv("IMAGE_MAX_HEIGHT", "720")
    monkeypatch.setenv("SESSION_FILE", "~/custom/session.json")

    settings = get_settings()

    assert settings.backend == "supabase"
    assert settings.image_max_height == 720
    assert settings.session_path == Path("~/custom/session.json").expanduser()


def test_env_file_does_not_override_process_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    (tmp_path / ".env").write_text(
        "# local\nAPI_BASE_URL=http://from-file/api\nLOG_LEVEL=DEBUG\n", encoding="utf-8"
    )
    monkeypatch.setenv("API_BASE_URL", "unset")
    monkeypatch.delenv("API_BASE_URL")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")

    settings = get_settings()

    assert settings.api_base_url == "http://from-file/api"
    assert settings.log_level == "WARNING"


def test_unknown_backend_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PLUSHIE_BACKEND", "firebase")

    with pytest.raises(ValueError):
        get_settings()
