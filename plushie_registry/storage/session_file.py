"""JSON file that keeps the CLI signed in between invocations."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class SessionFile:
    """Reads and writes exported gateway sessions."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    async def load(self, backend: str) -> dict[str, Any] | None:
        """Return the stored session for ``backend``, if one exists."""

        if not self._path.exists():
            return None
        body = await asyncio.to_thread(self._path.read_text, encoding="utf-8")
        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable session file %s", self._path)
            return None
        if not isinstance(payload, dict) or payload.get("backend") != backend:
            return None
        return payload

    async def save(self, payload: dict[str, Any] | None) -> None:
        """Persist ``payload``; ``None`` removes the file."""

        if payload is None:
            await self.clear()
            return
        body = json.dumps(payload, ensure_ascii=False, indent=2)
        await asyncio.to_thread(self._write_file, self._path, body)

    async def clear(self) -> None:
        await asyncio.to_thread(self._path.unlink, missing_ok=True)

    @staticmethod
    def _write_file(path: Path, body: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(body, encoding="utf-8")
        os.chmod(path, 0o600)
