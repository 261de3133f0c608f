"""Connectivity checks for the configured backend."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

import httpx

from plushie_registry.config.settings import get_settings
from plushie_registry.gateway.factory import build_gateway


@dataclass(slots=True)
class IntegrationCheckResult:
    """Structured result describing the integration check outcome."""

    name: str
    success: bool
    message: str


async def _run_check(
    name: str,
    factory: Callable[[], Awaitable[bool]],
    success_message: str,
) -> IntegrationCheckResult:
    try:
        result = await factory()
    except Exception as exc:
        return IntegrationCheckResult(name=name, success=False, message=str(exc))

    if result:
        return IntegrationCheckResult(name=name, success=True, message=success_message)
    return IntegrationCheckResult(
        name=name,
        success=False,
        message="Service responded with non-success status.",
    )


async def check_plushie_api() -> IntegrationCheckResult:
    """Ping the plushie data API through the configured gateway."""

    async def _ping() -> bool:
        gateway = build_gateway(get_settings())
        try:
            return await gateway.ping()
        finally:
            await gateway.close()

    return await _run_check(
        name="Plushie API",
        factory=_ping,
        success_message="Plushie API is reachable.",
    )


async def check_supabase_auth() -> IntegrationCheckResult:
    """Call the Supabase Auth health endpoint."""

    settings = get_settings()

    async def _ping() -> bool:
        if not settings.supabase_url or not settings.supabase_anon_key:
            raise RuntimeError("Supabase is not configured.")
        async with httpx.AsyncClient(timeout=settings.request_timeout) as client:
            response = await client.get(
                f"{settings.supabase_url.rstrip('/')}/auth/v1/health",
                headers={"apikey": settings.supabase_anon_key},
            )
        return response.is_success

    return await _run_check(
        name="Supabase Auth",
        factory=_ping,
        success_message="Supabase Auth is reachable.",
    )


async def run_all_checks() -> list[IntegrationCheckResult]:
    """Execute the checks relevant to the configured backend concurrently."""

    checks = [check_plushie_api()]
    if get_settings().backend == "supabase":
        checks.append(check_supabase_auth())
    return list(await asyncio.gather(*checks))
