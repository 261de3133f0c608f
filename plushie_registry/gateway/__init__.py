"""Auth and data gateways for the supported backends."""

from .base import AuthDataGateway
from .factory import BACKENDS, build_gateway
from .models import Plushie, PlushieDraft, User
from .session_backend import SessionGateway
from .supabase_backend import SupabaseGateway

__all__ = [
    "BACKENDS",
    "AuthDataGateway",
    "Plushie",
    "PlushieDraft",
    "SessionGateway",
    "SupabaseGateway",
    "User",
    "build_gateway",
]
