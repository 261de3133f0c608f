"""Tests for the client state container."""

from __future__ import annotations

from datetime import date

import pytest

from plushie_registry.gateway.models import Plushie, User
from plushie_registry.state import Action, ActionType, AppState, PlushieForm, Store, reduce

USER = User(id="1", email="hana@example.com")
MOCHI = Plushie(id="1", name="Mochi", kind="くま", adopted_at=date(2020, 5, 1))
KURO = Plushie(id="2", name="Kuro")


def test_initial_state_is_checking_session() -> None:
    state = AppState()

    assert state.checking_session
    assert state.user is None
    assert state.plushies == ()


def test_reduce_does_not_mutate_previous_state() -> None:
    before = AppState()

    after = reduce(before, Action(ActionType.LOGGED_IN, USER))

    assert before.user is None
    assert after.user == USER
    assert not after.checking_session


def test_logout_resets_everything() -> None:
    store = Store()
    store.dispatch(Action(ActionType.LOGGED_IN, USER))
    store.dispatch(Action(ActionType.PLUSHIES_LOADED, [MOCHI, KURO]))
    store.dispatch(Action(ActionType.FORM_CHANGED, {"name": "draft"}))

    state = store.dispatch(Action(ActionType.LOGGED_OUT))

    assert state == AppState(checking_session=False)


def test_loading_cycle() -> None:
    state = reduce(AppState(error="old"), Action(ActionType.LOAD_STARTED))
    assert state.loading and state.error is None

    state = reduce(state, Action(ActionType.PLUSHIES_LOADED, [MOCHI]))
    assert not state.loading
    assert state.plushies == (MOCHI,)


def test_chat_message_survives_reopening_same_plushie_only() -> None:
    state = reduce(AppState(), Action(ActionType.PLUSHIE_OPENED, MOCHI))
    state = reduce(state, Action(ActionType.CHAT_RECEIVED, "やっほー"))

    same = reduce(state, Action(ActionType.PLUSHIE_OPENED, MOCHI))
    other = reduce(state, Action(ActionType.PLUSHIE_OPENED, KURO))

    assert same.chat_message == "やっほー"
    assert other.chat_message is None


def test_edit_prefills_form_and_cancel_clears_it() -> None:
    state = reduce(AppState(), Action(ActionType.EDIT_STARTED, MOCHI))

    assert state.form == PlushieForm(
        name="Mochi", kind="くま", adopted_at=date(2020, 5, 1), editing_id="1"
    )
    assert state.form.to_draft().name == "Mochi"
    assert reduce(state, Action(ActionType.EDIT_CANCELLED)).form == PlushieForm()


def test_save_finished_resets_form() -> None:
    state = reduce(AppState(), Action(ActionType.FORM_CHANGED, {"name": "Mochi"}))
    state = reduce(state, Action(ActionType.SAVE_STARTED))
    assert state.saving

    state = reduce(state, Action(ActionType.SAVE_FINISHED))

    assert not state.saving
    assert state.form == PlushieForm()


def test_unknown_form_field_is_rejected() -> None:
    with pytest.raises(ValueError):
        reduce(AppState(), Action(ActionType.FORM_CHANGED, {"colour": "pink"}))


def test_failure_clears_busy_flags() -> None:
    busy = AppState(loading=True, saving=True)

    state = reduce(busy, Action(ActionType.FAILED, "エラーが発生しました"))

    assert state.error == "エラーが発生しました"
    assert not state.loading and not state.saving


def test_subscribers_are_notified_until_unsubscribed() -> None:
    store = Store()
    seen: list[ActionType] = []
    unsubscribe = store.subscribe(lambda state, action: seen.append(action.type))

    store.dispatch(Action(ActionType.SESSION_CHECKED, None))
    unsubscribe()
    store.dispatch(Action(ActionType.LOAD_STARTED))

    assert seen == [ActionType.SESSION_CHECKED]
    assert not store.state.checking_session
    assert store.state.loading
