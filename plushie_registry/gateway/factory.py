"""Backend selection."""

from __future__ import annotations

from typing import Callable

from plushie_registry.config.settings import Settings
from plushie_registry.gateway.base import AuthDataGateway
from plushie_registry.gateway.session_backend import SessionGateway
from plushie_registry.gateway.supabase_backend import SupabaseGateway

BACKENDS: dict[str, Callable[[Settings], AuthDataGateway]] = {
    "session": SessionGateway,
    "supabase": SupabaseGateway,
}


def build_gateway(settings: Settings) -> AuthDataGateway:
    """Instantiate the gateway configured by ``settings.backend``."""

    try:
        factory = BACKENDS[settings.backend]
    except KeyError as exc:
        raise ValueError(f"Unknown backend {settings.backend!r}.") from exc
    return factory(settings)
