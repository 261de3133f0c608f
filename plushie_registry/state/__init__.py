"""Client application state."""

from .store import Action, ActionType, AppState, PlushieForm, Store, reduce

__all__ = ["Action", "ActionType", "AppState", "PlushieForm", "Store", "reduce"]
