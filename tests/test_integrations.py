"""Tests for external integration connectivity helpers."""

from __future__ import annotations

import pytest
import pytest_mock

from plushie_registry.config.settings import get_settings
from plushie_registry.integrations.checks import (
    check_plushie_api,
    check_supabase_auth,
    run_all_checks,
)


@pytest.fixture(autouse=True)
def _setup_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PLUSHIE_BACKEND", "session")
    monkeypatch.setenv("API_BASE_URL", "http://api.test/api")
    monkeypatch.setenv("SUPABASE_URL", "")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.mark.asyncio
async def test_check_plushie_api_success(mocker: pytest_mock.MockerFixture) -> None:
    build_mock = mocker.patch("plushie_registry.integrations.checks.build_gateway", autospec=True)
    instance = build_mock.return_value
    instance.ping = mocker.AsyncMock(return_value=True)
    instance.close = mocker.AsyncMock(return_value=None)

    result = await check_plushie_api()

    assert result.success
    instance.ping.assert_awaited_once()
    instance.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_check_plushie_api_failure(mocker: pytest_mock.MockerFixture) -> None:
    build_mock = mocker.patch("plushie_registry.integrations.checks.build_gateway", autospec=True)
    instance = build_mock.return_value
    instance.ping = mocker.AsyncMock(return_value=False)
    instance.close = mocker.AsyncMock(return_value=None)

    result = await check_plushie_api()

    assert not result.success
    assert "non-success" in result.message.lower()
    instance.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_check_supabase_auth_requires_configuration() -> None:
    result = await check_supabase_auth()

    assert not result.success
    assert "not configured" in result.message


@pytest.mark.asyncio
async def test_run_all_checks_skips_supabase_for_session_backend(
    mocker: pytest_mock.MockerFixture,
) -> None:
    build_mock = mocker.patch("plushie_registry.integrations.checks.build_gateway", autospec=True)
    instance = build_mock.return_value
    instance.ping = mocker.AsyncMock(return_value=True)
    instance.close = mocker.AsyncMock(return_value=None)

    results = await run_all_checks()

    assert [result.name for result in results] == ["Plushie API"]
