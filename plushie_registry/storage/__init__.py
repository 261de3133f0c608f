"""Local persistence helpers."""

from .session_file import SessionFile

__all__ = ["SessionFile"]
