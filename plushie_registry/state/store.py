"""Single state container for the client.

State is immutable; the only way to change it is ``Store.dispatch`` with an
``Action``, which runs the pure ``reduce`` function and notifies listeners.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Any, Callable

from plushie_registry.gateway.models import Plushie, PlushieDraft, User
from plushie_registry.imgproc.blob import ImageBlob

logger = logging.getLogger(__name__)


class ActionType(str, Enum):
    """Everything that can happen to the client state."""

    SESSION_CHECKED = "session_checked"
    LOGGED_IN = "logged_in"
    LOGGED_OUT = "logged_out"
    LOAD_STARTED = "load_started"
    PLUSHIES_LOADED = "plushies_loaded"
    PLUSHIE_OPENED = "plushie_opened"
    SAVE_STARTED = "save_started"
    SAVE_FINISHED = "save_finished"
    FORM_CHANGED = "form_changed"
    EDIT_STARTED = "edit_started"
    EDIT_CANCELLED = "edit_cancelled"
    CHAT_RECEIVED = "chat_received"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class Action:
    type: ActionType
    payload: Any = None


@dataclass(frozen=True, slots=True)
class PlushieForm:
    """Create/edit form values; ``editing_id`` is set while editing."""

    name: str = ""
    kind: str = ""
    adopted_at: date | None = None
    image: ImageBlob | None = None
    editing_id: str | None = None

    def to_draft(self) -> PlushieDraft:
        return PlushieDraft(
            name=self.name,
            kind=self.kind,
            adopted_at=self.adopted_at,
            image=self.image,
        )


@dataclass(frozen=True, slots=True)
class AppState:
    user: User | None = None
    checking_session: bool = True
    plushies: tuple[Plushie, ...] = ()
    loading: bool = False
    saving: bool = False
    selected: Plushie | None = None
    chat_message: str | None = None
    form: PlushieForm = field(default_factory=PlushieForm)
    error: str | None = None


FORM_FIELDS = frozenset({"name", "kind", "adopted_at", "image"})


def reduce(state: AppState, action: Action) -> AppState:
    """Return the state that follows ``state`` after ``action``."""

    kind = action.type
    payload = action.payload

    if kind is ActionType.SESSION_CHECKED:
        return replace(state, user=payload, checking_session=False)
    if kind is ActionType.LOGGED_IN:
        return replace(state, user=payload, checking_session=False, error=None)
    if kind is ActionType.LOGGED_OUT:
        return AppState(checking_session=False)
    if kind is ActionType.LOAD_STARTED:
        return replace(state, loading=True, error=None)
    if kind is ActionType.PLUSHIES_LOADED:
        return replace(state, plushies=tuple(payload), loading=False)
    if kind is ActionType.PLUSHIE_OPENED:
        same = state.selected is not None and state.selected.id == payload.id
        return replace(
            state,
            selected=payload,
            loading=False,
            saving=False,
            chat_message=state.chat_message if same else None,
        )
    if kind is ActionType.SAVE_STARTED:
        return replace(state, saving=True, error=None)
    if kind is ActionType.SAVE_FINISHED:
        return replace(state, saving=False, form=PlushieForm())
    if kind is ActionType.FORM_CHANGED:
        unknown = set(payload) - FORM_FIELDS
        if unknown:
            raise ValueError(f"Unknown form fields: {', '.join(sorted(unknown))}")
        return replace(state, form=replace(state.form, **payload))
    if kind is ActionType.EDIT_STARTED:
        plushie: Plushie = payload
        form = PlushieForm(
            name=plushie.name,
            kind=plushie.kind,
            adopted_at=plushie.adopted_at,
            editing_id=plushie.id,
        )
        return replace(state, form=form, error=None)
    if kind is ActionType.EDIT_CANCELLED:
        return replace(state, form=PlushieForm(), error=None)
    if kind is ActionType.CHAT_RECEIVED:
        return replace(state, chat_message=payload, saving=False)
    if kind is ActionType.FAILED:
        return replace(state, error=payload, loading=False, saving=False)
    raise ValueError(f"Unhandled action {kind!r}")


Listener = Callable[[AppState, Action], None]


class Store:
    """Holds the current ``AppState`` and fans out changes to subscribers."""

    def __init__(self, initial: AppState | None = None) -> None:
        self._state = initial or AppState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> AppState:
        return self._state

    def dispatch(self, action: Action) -> AppState:
        self._state = reduce(self._state, action)
        logger.debug("Dispatched %s", action.type.value)
        for listener in list(self._listeners):
            listener(self._state, action)
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; the returned callable removes it again."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe
