"""Adapter for the custom backend with cookie sessions."""

from __future__ import annotations

import logging
from typing import Any

from plushie_registry.errors import ErrorCode, GatewayError
from plushie_registry.gateway.http_api import UNAUTHENTICATED_CODES, PlushieApiGateway
from plushie_registry.gateway.models import User

logger = logging.getLogger(__name__)

SESSION_COOKIE = "poppo_session"


class SessionGateway(PlushieApiGateway):
    """Email/password accounts stored by the backend; the session lives in a cookie."""

    name = "session"

    async def register(self, email: str, password: str) -> User:
        await self._request(
            "POST",
            "/register",
            json_body={"email": email, "password": password},
            authenticated=False,
            status_overrides={403: ErrorCode.REGISTRATION_CLOSED},
        )
        # Registration does not open a session on this backend.
        return await self.login(email, password)

    async def login(self, email: str, password: str) -> User:
        self._client.cookies.clear()
        payload = await self._request_json(
            "POST",
            "/login",
            json_body={"email": email, "password": password},
            authenticated=False,
            status_overrides={401: ErrorCode.INVALID_CREDENTIALS},
        )
        user = User.model_validate(payload)
        logger.info("Signed in as %s", user.email)
        return user

    async def logout(self) -> None:
        try:
            await self._request("POST", "/logout", authenticated=False)
        finally:
            self._client.cookies.clear()

    async def current_user(self) -> User | None:
        try:
            payload = await self._request_json("GET", "/me")
        except GatewayError as exc:
            if exc.code in UNAUTHENTICATED_CODES:
                return None
            raise
        return User.model_validate(payload)

    def export_session(self) -> dict[str, Any] | None:
        token = self._client.cookies.get(SESSION_COOKIE)
        if not token:
            return None
        return {"backend": self.name, "cookie": token}

    def restore_session(self, payload: dict[str, Any]) -> None:
        token = payload.get("cookie")
        if token:
            self._client.cookies.clear()
            self._client.cookies.set(SESSION_COOKIE, token)
