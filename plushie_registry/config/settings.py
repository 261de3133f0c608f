"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

SUPPORTED_BACKENDS = ("session", "supabase")


def _load_env_file(path: str = ".env") -> None:
    """Populate os.environ from the provided .env file if it exists."""

    env_path = Path(path)
    if not env_path.exists():
        return

    for line in env_path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


@dataclass(frozen=True, slots=True)
class Settings:
    """Centralised client settings based on OS environment variables."""

    environment: str = "dev"
    log_level: str = "INFO"

    backend: str = "session"
    api_base_url: str = "http://localhost:8080/api"
    supabase_url: str = ""
    supabase_anon_key: str = ""
    request_timeout: float = 60.0
    session_file: str = "~/.plushie_registry/session.json"

    image_max_width: int = 1280
    image_max_height: int = 1280
    image_quality: float = 0.75

    @property
    def session_path(self) -> Path:
        return Path(self.session_file).expanduser()


def _build_settings() -> Settings:
    _load_env_file()

    backend = os.getenv("PLUSHIE_BACKEND", "session").strip().lower()
    if backend not in SUPPORTED_BACKENDS:
        raise ValueError(
            f"PLUSHIE_BACKEND must be one of {', '.join(SUPPORTED_BACKENDS)}, got {backend!r}."
        )

    return Settings(
        environment=os.getenv("ENVIRONMENT", "dev"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        backend=backend,
        api_base_url=os.getenv("API_BASE_URL", "http://localhost:8080/api"),
        supabase_url=os.getenv("SUPABASE_URL", ""),
        supabase_anon_key=os.getenv("SUPABASE_ANON_KEY", ""),
        request_timeout=float(os.getenv("REQUEST_TIMEOUT", "60")),
        session_file=os.getenv("SESSION_FILE", "~/.plushie_registry/session.json"),
        image_max_width=int(os.getenv("IMAGE_MAX_WIDTH", "1280")),
        image_max_height=int(os.getenv("IMAGE_MAX_HEIGHT", "1280")),
        image_quality=float(os.getenv("IMAGE_QUALITY", "0.75")),
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance to avoid re-reading configuration."""

    return _build_settings()
