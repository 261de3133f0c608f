"""Application services."""

from .inventory import InventoryService

__all__ = ["InventoryService"]
