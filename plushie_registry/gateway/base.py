"""Backend-agnostic capability used by the rest of the client."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from plushie_registry.gateway.models import Plushie, PlushieDraft, User


class AuthDataGateway(ABC):
    """Authentication plus plushie storage, whatever backend provides them."""

    name: str = "abstract"

    @abstractmethod
    async def register(self, email: str, password: str) -> User:
        """Create an account and sign it in."""

    @abstractmethod
    async def login(self, email: str, password: str) -> User:
        """Start a session for an existing account."""

    @abstractmethod
    async def logout(self) -> None:
        """End the current session; a no-op when already signed out."""

    @abstractmethod
    async def current_user(self) -> User | None:
        """Return the signed-in user, or ``None`` when there is no valid session."""

    @abstractmethod
    async def list_plushies(self) -> list[Plushie]: ...

    @abstractmethod
    async def get_plushie(self, plushie_id: str) -> Plushie: ...

    @abstractmethod
    async def create_plushie(self, draft: PlushieDraft) -> str:
        """Store a new plushie and return its identifier."""

    @abstractmethod
    async def update_plushie(self, plushie_id: str, draft: PlushieDraft) -> None:
        """Replace name, kind and date; the photo changes only if one is attached."""

    @abstractmethod
    async def delete_plushie(self, plushie_id: str) -> None: ...

    @abstractmethod
    async def update_conversation(self, plushie_id: str, history: str) -> None: ...

    @abstractmethod
    async def request_message(self, plushie_id: str) -> str:
        """Ask the backend for a short generated line spoken by the plushie."""

    @abstractmethod
    async def ping(self) -> bool:
        """Return ``True`` when the backend answers at all."""

    @abstractmethod
    def export_session(self) -> dict[str, Any] | None:
        """Return serialisable credentials for the active session, if any."""

    @abstractmethod
    def restore_session(self, payload: dict[str, Any]) -> None:
        """Re-activate credentials produced by :meth:`export_session`."""

    async def close(self) -> None:
        """Release network resources."""
