"""Business logic for managing the user's plushie inventory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from plushie_registry.errors import ErrorCode, RegistryError
from plushie_registry.gateway.base import AuthDataGateway
from plushie_registry.gateway.models import Plushie, PlushieDraft, User
from plushie_registry.i18n.messages import translate
from plushie_registry.imgproc.normalize import ImageNormalizer
from plushie_registry.state.store import Action, ActionType, Store

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 4


class InventoryService:
    """Facade over the gateway, the image normaliser and the state store."""

    def __init__(
        self,
        gateway: AuthDataGateway,
        normalizer: ImageNormalizer,
        store: Store | None = None,
    ) -> None:
        self._gateway = gateway
        self._normalizer = normalizer
        self.store = store or Store()

    @asynccontextmanager
    async def _reporting(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except RegistryError as exc:
            logger.warning("%s failed: %s (%s)", operation, exc.code.value, exc.detail)
            self.store.dispatch(Action(ActionType.FAILED, translate(exc)))
            raise

    @staticmethod
    def _validate_credentials(email: str, password: str) -> str:
        email = email.strip()
        if not email or not password:
            raise RegistryError(ErrorCode.INVALID_INPUT, "email and password required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise RegistryError(
                ErrorCode.WEAK_PASSWORD,
                f"password shorter than {MIN_PASSWORD_LENGTH} characters",
            )
        return email

    async def check_session(self) -> User | None:
        """Resolve the signed-in user at start-up; absence is not an error."""

        async with self._reporting("session check"):
            try:
                user = await self._gateway.current_user()
            except RegistryError:
                self.store.dispatch(Action(ActionType.SESSION_CHECKED, None))
                raise
        self.store.dispatch(Action(ActionType.SESSION_CHECKED, user))
        return user

    async def register(self, email: str, password: str) -> User:
        """Create an account and leave it signed in."""

        async with self._reporting("register"):
            email = self._validate_credentials(email, password)
            user = await self._gateway.register(email, password)
        self.store.dispatch(Action(ActionType.LOGGED_IN, user))
        return user

    async def login(self, email: str, password: str) -> User:
        """Sign in with e-mail and password."""

        async with self._reporting("login"):
            email = self._validate_credentials(email, password)
            user = await self._gateway.login(email, password)
        self.store.dispatch(Action(ActionType.LOGGED_IN, user))
        return user

    async def logout(self) -> None:
        async with self._reporting("logout"):
            await self._gateway.logout()
        self.store.dispatch(Action(ActionType.LOGGED_OUT))

    async def refresh(self) -> list[Plushie]:
        """Reload the plushie list."""

        self.store.dispatch(Action(ActionType.LOAD_STARTED))
        async with self._reporting("list plushies"):
            plushies = await self._gateway.list_plushies()
        self.store.dispatch(Action(ActionType.PLUSHIES_LOADED, plushies))
        return plushies

    async def save(self, draft: PlushieDraft, plushie_id: str | None = None) -> str:
        """Create a plushie, or update ``plushie_id`` when given.

        An attached photo is normalised first; a normalisation failure aborts
        the save before anything is sent.
        """

        self.store.dispatch(Action(ActionType.SAVE_STARTED))
        async with self._reporting("save plushie"):
            name = draft.name.strip()
            if not name:
                raise RegistryError(ErrorCode.NAME_REQUIRED, "name is empty")
            image = draft.image
            if image is not None:
                image = await self._normalizer.normalize(image)
            prepared = PlushieDraft(
                name=name,
                kind=draft.kind.strip(),
                adopted_at=draft.adopted_at,
                image=image,
            )
            if plushie_id is None:
                plushie_id = await self._gateway.create_plushie(prepared)
                logger.info("Created plushie %s (%s)", plushie_id, name)
            else:
                await self._gateway.update_plushie(plushie_id, prepared)
                logger.info("Updated plushie %s", plushie_id)
        self.store.dispatch(Action(ActionType.SAVE_FINISHED))
        await self.refresh()
        return plushie_id

    async def submit_form(self) -> str:
        """Save whatever the form currently holds."""

        form = self.store.state.form
        return await self.save(form.to_draft(), plushie_id=form.editing_id)

    def start_edit(self, plushie: Plushie) -> None:
        self.store.dispatch(Action(ActionType.EDIT_STARTED, plushie))

    def cancel_edit(self) -> None:
        self.store.dispatch(Action(ActionType.EDIT_CANCELLED))

    def update_form(self, **changes: object) -> None:
        self.store.dispatch(Action(ActionType.FORM_CHANGED, changes))

    async def delete(self, plushie_id: str) -> None:
        async with self._reporting("delete plushie"):
            await self._gateway.delete_plushie(plushie_id)
        logger.info("Deleted plushie %s", plushie_id)
        await self.refresh()

    async def open(self, plushie_id: str) -> Plushie:
        """Load one plushie for the detail view."""

        self.store.dispatch(Action(ActionType.LOAD_STARTED))
        async with self._reporting("open plushie"):
            plushie = await self._gateway.get_plushie(plushie_id)
        self.store.dispatch(Action(ActionType.PLUSHIE_OPENED, plushie))
        return plushie

    async def save_conversation(self, plushie_id: str, history: str) -> Plushie:
        """Store the freeform conversation history and reload the plushie."""

        self.store.dispatch(Action(ActionType.SAVE_STARTED))
        async with self._reporting("save conversation"):
            await self._gateway.update_conversation(plushie_id, history)
        return await self.open(plushie_id)

    async def talk(self, plushie_id: str) -> str:
        """Ask the backend for a generated line in the plushie's voice."""

        self.store.dispatch(Action(ActionType.SAVE_STARTED))
        async with self._reporting("generate message"):
            message = await self._gateway.request_message(plushie_id)
        self.store.dispatch(Action(ActionType.CHAT_RECEIVED, message))
        return message
