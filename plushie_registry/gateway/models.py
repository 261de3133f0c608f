"""Records exchanged with the backend."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, field_validator

from plushie_registry.imgproc.blob import ImageBlob


def _coerce_id(value: Any) -> str:
    if value is None:
        raise ValueError("id is required")
    return str(value)


# The session backend uses integer ids, Supabase uses UUIDs.
Identifier = Annotated[str, BeforeValidator(_coerce_id)]


class User(BaseModel):
    """Signed-in account."""

    id: Identifier
    email: str = ""

    @field_validator("email", mode="before")
    @classmethod
    def _email_or_empty(cls, value: Any) -> str:
        return value or ""


class Plushie(BaseModel):
    """A single registered plush toy."""

    id: Identifier
    name: str
    kind: str = ""
    adopted_at: date | None = None
    image_url: str | None = None
    conversation_history: str = ""
    created_at: datetime | None = None

    @field_validator("adopted_at", "image_url", "created_at", mode="before")
    @classmethod
    def _blank_as_none(cls, value: Any) -> Any:
        if value == "":
            return None
        return value

    @field_validator("kind", "conversation_history", mode="before")
    @classmethod
    def _none_as_blank(cls, value: Any) -> str:
        return value or ""


@dataclass(slots=True)
class PlushieDraft:
    """Values submitted by the create/edit form."""

    name: str
    kind: str = ""
    adopted_at: date | None = None
    image: ImageBlob | None = None

    def form_fields(self) -> list[tuple[str, str]]:
        """Return the text fields of the multipart form in submission order."""

        fields = [("name", self.name), ("kind", self.kind)]
        if self.adopted_at is not None:
            fields.append(("adopted_at", self.adopted_at.isoformat()))
        return fields
