"""Integration check helpers."""

from .checks import (
    IntegrationCheckResult,
    check_plushie_api,
    check_supabase_auth,
    run_all_checks,
)

__all__ = [
    "IntegrationCheckResult",
    "check_plushie_api",
    "check_supabase_auth",
    "run_all_checks",
]
