"""Adapter that signs in through Supabase and sends its JWT to the data API."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, TypeVar

import httpx
from supabase import AuthError, Client, create_client

from plushie_registry.config.settings import Settings
from plushie_registry.errors import ErrorCode, GatewayError
from plushie_registry.gateway.http_api import UNAUTHENTICATED_CODES, PlushieApiGateway
from plushie_registry.gateway.models import User

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Error codes returned by Supabase Auth.
AUTH_ERROR_CODES: dict[str, ErrorCode] = {
    "invalid_credentials": ErrorCode.INVALID_CREDENTIALS,
    "user_already_exists": ErrorCode.EMAIL_TAKEN,
    "email_exists": ErrorCode.EMAIL_TAKEN,
    "weak_password": ErrorCode.WEAK_PASSWORD,
    "email_not_confirmed": ErrorCode.EMAIL_NOT_CONFIRMED,
    "signup_disabled": ErrorCode.REGISTRATION_CLOSED,
    "validation_failed": ErrorCode.INVALID_INPUT,
    "over_request_rate_limit": ErrorCode.RATE_LIMITED,
    "over_email_send_rate_limit": ErrorCode.RATE_LIMITED,
    "session_expired": ErrorCode.TOKEN_EXPIRED,
    "session_not_found": ErrorCode.TOKEN_MISSING,
    "refresh_token_not_found": ErrorCode.TOKEN_MISSING,
    "refresh_token_already_used": ErrorCode.TOKEN_EXPIRED,
    "bad_jwt": ErrorCode.AUTH_FAILED,
    "user_not_found": ErrorCode.AUTH_REQUIRED,
}

AUTH_STATUS_CODES: dict[int, ErrorCode] = {
    401: ErrorCode.AUTH_FAILED,
    403: ErrorCode.AUTH_FAILED,
    422: ErrorCode.INVALID_INPUT,
    429: ErrorCode.RATE_LIMITED,
}


def classify_auth_error(exc: AuthError) -> ErrorCode:
    """Map a Supabase Auth exception to an ``ErrorCode`` by its code or status."""

    code = getattr(exc, "code", None)
    if code in AUTH_ERROR_CODES:
        return AUTH_ERROR_CODES[code]
    status = getattr(exc, "status", None)
    if status in AUTH_STATUS_CODES:
        return AUTH_STATUS_CODES[status]
    return ErrorCode.AUTH_FAILED


class SupabaseGateway(PlushieApiGateway):
    """Accounts live in Supabase Auth; plushies are served by the data API."""

    name = "supabase"

    def __init__(
        self,
        settings: Settings,
        *,
        supabase_client: Client | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if supabase_client is None:
            if not settings.supabase_url or not settings.supabase_anon_key:
                raise GatewayError(
                    ErrorCode.CONFIG_MISSING,
                    "SUPABASE_URL and SUPABASE_ANON_KEY must be set for the supabase backend.",
                )
            supabase_client = create_client(settings.supabase_url, settings.supabase_anon_key)
        super().__init__(settings, transport=transport)
        self._supabase = supabase_client

    async def _call_auth(self, func: Callable[..., T], *args: Any) -> T:
        # supabase-py's auth client is synchronous.
        try:
            return await asyncio.to_thread(func, *args)
        except AuthError as exc:
            code = classify_auth_error(exc)
            logger.info("Supabase auth call %s failed: %s", getattr(func, "__name__", func), exc)
            raise GatewayError(code, str(exc), status_code=getattr(exc, "status", None)) from exc

    async def _auth_headers(self) -> dict[str, str]:
        session = await self._call_auth(self._supabase.auth.get_session)
        if session is None or not session.access_token:
            raise GatewayError(ErrorCode.TOKEN_MISSING, "No Supabase session is active.")
        return {"Authorization": f"Bearer {session.access_token}"}

    @staticmethod
    def _user_from(auth_user: Any) -> User:
        return User(id=auth_user.id, email=getattr(auth_user, "email", "") or "")

    async def register(self, email: str, password: str) -> User:
        response = await self._call_auth(
            self._supabase.auth.sign_up,
            {"email": email, "password": password},
        )
        if response.user is None:
            raise GatewayError(ErrorCode.AUTH_FAILED, "Sign-up returned no user.")
        if response.session is None:
            # Project requires e-mail confirmation before the first sign-in.
            raise GatewayError(
                ErrorCode.EMAIL_NOT_CONFIRMED,
                f"Confirmation mail sent to {email}.",
            )
        return self._user_from(response.user)

    async def login(self, email: str, password: str) -> User:
        response = await self._call_auth(
            self._supabase.auth.sign_in_with_password,
            {"email": email, "password": password},
        )
        if response.user is None:
            raise GatewayError(ErrorCode.INVALID_CREDENTIALS, "Sign-in returned no user.")
        user = self._user_from(response.user)
        logger.info("Signed in as %s", user.email)
        return user

    async def logout(self) -> None:
        await self._call_auth(self._supabase.auth.sign_out)

    async def current_user(self) -> User | None:
        try:
            session = await self._call_auth(self._supabase.auth.get_session)
        except GatewayError as exc:
            if exc.code in UNAUTHENTICATED_CODES:
                return None
            raise
        if session is None or session.user is None:
            return None
        return self._user_from(session.user)

    def export_session(self) -> dict[str, Any] | None:
        session = self._supabase.auth.get_session()
        if session is None:
            return None
        return {
            "backend": self.name,
            "access_token": session.access_token,
            "refresh_token": session.refresh_token,
        }

    def restore_session(self, payload: dict[str, Any]) -> None:
        access_token = payload.get("access_token")
        refresh_token = payload.get("refresh_token")
        if not access_token or not refresh_token:
            return
        try:
            self._supabase.auth.set_session(access_token, refresh_token)
        except AuthError as exc:
            # A stale refresh token just means the user has to sign in again.
            logger.info("Stored Supabase session could not be restored: %s", exc)
