"""Localised user-facing text."""

from .messages import MESSAGES, message_for, translate

__all__ = ["MESSAGES", "message_for", "translate"]
