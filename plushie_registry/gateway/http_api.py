"""Plushie data API shared by both backend adapters."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

import httpx

from plushie_registry.config.settings import Settings
from plushie_registry.errors import ErrorCode, GatewayError
from plushie_registry.gateway.base import AuthDataGateway
from plushie_registry.gateway.models import Plushie, PlushieDraft
from plushie_registry.metrics.prometheus_exporter import gateway_requests_total

logger = logging.getLogger(__name__)

# Exact error strings emitted by the backend.
SERVER_ERROR_CODES: dict[str, ErrorCode] = {
    "invalid json": ErrorCode.INVALID_INPUT,
    "email and password required": ErrorCode.INVALID_INPUT,
    "invalid credentials": ErrorCode.INVALID_CREDENTIALS,
    "failed to create user (maybe email already used)": ErrorCode.EMAIL_TAKEN,
    "認証が必要です。ログインしてください。": ErrorCode.AUTH_REQUIRED,
    "認証に失敗しました": ErrorCode.AUTH_FAILED,
    "トークンの有効期限が切れています。再度ログインしてください。": ErrorCode.TOKEN_EXPIRED,
    "認証トークンが見つかりません。ログインしてください。": ErrorCode.TOKEN_MISSING,
    "サーバー設定エラーが発生しました。": ErrorCode.SERVER_MISCONFIGURED,
    "サーバー設定エラー: SUPABASE_JWT_SECRETが設定されていません": ErrorCode.SERVER_MISCONFIGURED,
    "無効なIDです": ErrorCode.INVALID_ID,
    "名前は必須です": ErrorCode.NAME_REQUIRED,
    "ぬいぐるみが見つかりませんでした": ErrorCode.NOT_FOUND,
    "ユーザー情報が見つかりません。再度ログインしてください。": ErrorCode.AUTH_REQUIRED,
    "フォームデータの解析に失敗しました": ErrorCode.INVALID_INPUT,
    "OPENAI_API_KEY not configured": ErrorCode.SERVER_MISCONFIGURED,
}

STATUS_ERROR_CODES: dict[int, ErrorCode] = {
    400: ErrorCode.INVALID_INPUT,
    401: ErrorCode.AUTH_REQUIRED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    413: ErrorCode.INVALID_INPUT,
    429: ErrorCode.RATE_LIMITED,
}

UNAUTHENTICATED_CODES = frozenset(
    {
        ErrorCode.AUTH_REQUIRED,
        ErrorCode.AUTH_FAILED,
        ErrorCode.TOKEN_EXPIRED,
        ErrorCode.TOKEN_MISSING,
    }
)


def classify_error(
    status_code: int,
    message: str,
    overrides: Mapping[int, ErrorCode] | None = None,
) -> ErrorCode:
    """Map an error response to an ``ErrorCode`` using exact lookups only."""

    if message in SERVER_ERROR_CODES:
        return SERVER_ERROR_CODES[message]
    if overrides and status_code in overrides:
        return overrides[status_code]
    if status_code in STATUS_ERROR_CODES:
        return STATUS_ERROR_CODES[status_code]
    if status_code >= 500:
        return ErrorCode.SERVER_ERROR
    return ErrorCode.UNKNOWN


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, Mapping) and payload.get("error"):
        return str(payload["error"])
    return response.text


def api_origin(base_url: str) -> str:
    """Return ``scheme://host[:port]`` of ``base_url``."""

    url = httpx.URL(base_url)
    port = f":{url.port}" if url.port else ""
    return f"{url.scheme}://{url.host}{port}"


class PlushieApiGateway(AuthDataGateway):
    """Implements the plushie endpoints; subclasses supply authentication."""

    name = "api"

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        base_url = settings.api_base_url.rstrip("/")
        self._settings = settings
        self._origin = api_origin(base_url)
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=settings.request_timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""

        await self._client.aclose()

    async def _auth_headers(self) -> dict[str, str]:
        return {}

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        json_body: Mapping[str, Any] | None = None,
        files: Sequence[tuple[str, tuple[Any, ...]]] | None = None,
        authenticated: bool = True,
        status_overrides: Mapping[int, ErrorCode] | None = None,
    ) -> httpx.Response:
        headers = await self._auth_headers() if authenticated else {}
        try:
            response = await self._client.request(
                method,
                endpoint,
                json=json_body,
                files=files,
                headers=headers,
            )
        except httpx.TimeoutException as exc:
            gateway_requests_total.labels(backend=self.name, outcome="timeout").inc()
            raise GatewayError(ErrorCode.TIMEOUT, f"{method} {endpoint} timed out") from exc
        except httpx.TransportError as exc:
            gateway_requests_total.labels(backend=self.name, outcome="network_error").inc()
            raise GatewayError(ErrorCode.NETWORK, str(exc)) from exc

        if response.is_error:
            gateway_requests_total.labels(backend=self.name, outcome="error").inc()
            message = _error_message(response)
            code = classify_error(response.status_code, message, status_overrides)
            logger.info(
                "%s %s failed with %s: %s", method, endpoint, response.status_code, message
            )
            raise GatewayError(code, message, status_code=response.status_code)

        gateway_requests_total.labels(backend=self.name, outcome="ok").inc()
        return response

    async def _request_json(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        response = await self._request(method, endpoint, **kwargs)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise GatewayError(
                ErrorCode.SERVER_ERROR,
                f"{method} {endpoint} returned a non-JSON body",
                status_code=response.status_code,
            ) from exc

    def _absolute_image_url(self, plushie: Plushie) -> Plushie:
        if plushie.image_url and plushie.image_url.startswith("/"):
            return plushie.model_copy(update={"image_url": f"{self._origin}{plushie.image_url}"})
        return plushie

    @staticmethod
    def _multipart(draft: PlushieDraft) -> list[tuple[str, tuple[Any, ...]]]:
        # Text fields go in as filename-less parts so the body is multipart even without a photo.
        parts: list[tuple[str, tuple[Any, ...]]] = [
            (field, (None, value)) for field, value in draft.form_fields()
        ]
        if draft.image is not None:
            parts.append(("image", (draft.image.name, draft.image.data, draft.image.media_type)))
        return parts

    async def list_plushies(self) -> list[Plushie]:
        payload = await self._request_json("GET", "/plushies")
        return [self._absolute_image_url(Plushie.model_validate(item)) for item in payload or []]

    async def get_plushie(self, plushie_id: str) -> Plushie:
        payload = await self._request_json("GET", f"/plushies/{plushie_id}")
        return self._absolute_image_url(Plushie.model_validate(payload))

    async def create_plushie(self, draft: PlushieDraft) -> str:
        payload = await self._request_json("POST", "/plushies", files=self._multipart(draft))
        try:
            return str(payload["id"])
        except (KeyError, TypeError) as exc:
            raise GatewayError(ErrorCode.SERVER_ERROR, "create response has no id") from exc

    async def update_plushie(self, plushie_id: str, draft: PlushieDraft) -> None:
        await self._request("PUT", f"/plushies/{plushie_id}", files=self._multipart(draft))

    async def delete_plushie(self, plushie_id: str) -> None:
        await self._request("DELETE", f"/plushies/{plushie_id}")

    async def update_conversation(self, plushie_id: str, history: str) -> None:
        await self._request(
            "PUT",
            f"/plushies/{plushie_id}/conversation",
            json_body={"conversation_history": history},
        )

    async def request_message(self, plushie_id: str) -> str:
        payload = await self._request_json(
            "POST",
            f"/plushies/{plushie_id}/chat",
            status_overrides={500: ErrorCode.CHAT_FAILED},
        )
        return str(payload.get("message", ""))

    async def ping(self) -> bool:
        try:
            response = await self._client.get("/me")
        except httpx.HTTPError as exc:
            logger.warning("Backend ping failed: %s", exc)
            return False
        return response.status_code < 500
