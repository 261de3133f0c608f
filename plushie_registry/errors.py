"""Error types shared across the client."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Stable identifiers for every failure a user can be told about."""

    AUTH_REQUIRED = "auth_required"
    AUTH_FAILED = "auth_failed"
    INVALID_CREDENTIALS = "invalid_credentials"
    EMAIL_TAKEN = "email_taken"
    EMAIL_NOT_CONFIRMED = "email_not_confirmed"
    WEAK_PASSWORD = "weak_password"
    REGISTRATION_CLOSED = "registration_closed"
    TOKEN_EXPIRED = "token_expired"
    TOKEN_MISSING = "token_missing"
    INVALID_INPUT = "invalid_input"
    NAME_REQUIRED = "name_required"
    INVALID_ID = "invalid_id"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    RATE_LIMITED = "rate_limited"
    CHAT_FAILED = "chat_failed"
    SERVER_MISCONFIGURED = "server_misconfigured"
    CONFIG_MISSING = "config_missing"
    SERVER_ERROR = "server_error"
    NETWORK = "network"
    TIMEOUT = "timeout"
    IMAGE_DECODE_FAILED = "image_decode_failed"
    IMAGE_ENCODE_FAILED = "image_encode_failed"
    FILE_UNREADABLE = "file_unreadable"
    UNKNOWN = "unknown"


class RegistryError(RuntimeError):
    """Base error carrying a machine-readable code and the raw detail text."""

    def __init__(self, code: ErrorCode, detail: str = "") -> None:
        self.code = code
        self.detail = detail
        super().__init__(detail or code.value)


class GatewayError(RegistryError):
    """Raised when a backend call fails or cannot be made."""

    def __init__(
        self,
        code: ErrorCode,
        detail: str = "",
        *,
        status_code: int | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(code, detail)
