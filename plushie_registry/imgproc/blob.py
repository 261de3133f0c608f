"""In-memory binary payload with a declared media type."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

DEFAULT_MEDIA_TYPE = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class ImageBlob:
    """Immutable file-like payload selected by the user for upload.

    ``media_type`` is declared metadata only; nothing checks it against the
    actual bytes.
    """

    data: bytes
    media_type: str
    name: str
    last_modified: datetime | None = None

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_image(self) -> bool:
        return self.media_type.lower().startswith("image/")

    @classmethod
    def from_path(cls, path: Path | str, media_type: str | None = None) -> "ImageBlob":
        """Read ``path`` into a blob, guessing the media type from the suffix."""

        file_path = Path(path).expanduser()
        guessed, _ = mimetypes.guess_type(file_path.name)
        stat = file_path.stat()
        return cls(
            data=file_path.read_bytes(),
            media_type=media_type or guessed or DEFAULT_MEDIA_TYPE,
            name=file_path.name,
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )

    def write_to(self, path: Path | str) -> Path:
        """Write the payload to ``path`` and return the resolved location."""

        target = Path(path).expanduser()
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(self.data)
        return target
