from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from .confirmation import CONFIRMATION_TIMEOUT, ConfirmationChoice, ConfirmationGate
from .context import SetupContext
from .errors import ConfirmationTimeout, PersistFailed, ServerNotFound, SetupError, StoreError
from .full_setup import full_setup
from .models import ServerConfig
from .partial_setup import partial_setup
from .resource_api import ResourceAPI
from .snapshot import take_snapshot
from .store import ConfigStore
from .translation import Translate, Translator

logger = logging.getLogger(__name__)

CANCELLED_TOKEN = "setup_server__cancelled"


class SetupMode(str, Enum):
    FULL = "full"
    PARTIAL = "partial"


class SetupOrchestrator:
    """Entry point the command layer uses to run a setup on one server."""

    def __init__(
        self,
        api: ResourceAPI,
        store: ConfigStore,
        gate: ConfirmationGate,
        translate: Optional[Translate] = None,
        *,
        confirmation_timeout: float = CONFIRMATION_TIMEOUT,
    ) -> None:
        self._ctx = SetupContext(api=api, store=store, translate=translate or Translator())
        self._gate = gate
        self._confirmation_timeout = confirmation_timeout

    async def run(self, server_id: int, user_id: int, channel_id: int, mode: SetupMode) -> str:
        config = await self._load(server_id)
        snapshot = await take_snapshot(self._ctx.api, config)

        if config.has_any_reference():
            choice = await self._gate.ask(user_id, channel_id, self._confirmation_timeout)
            if choice is ConfirmationChoice.TIMEOUT:
                raise ConfirmationTimeout()
            if choice is ConfirmationChoice.CANCEL:
                logger.info(f"Setup of server {server_id} cancelled by {user_id}")
                return CANCELLED_TOKEN

        logger.info(f"Starting {mode.value} setup of server {server_id} for {user_id}")
        try:
            if mode is SetupMode.FULL:
                token = await full_setup(self._ctx, config, snapshot)
            else:
                token = await partial_setup(self._ctx, config, snapshot)
        except SetupError as exc:
            logger.warning(f"{mode.value.capitalize()} setup of server {server_id} failed: {exc.token}")
            try:
                await self._ctx.store.update(config)
            except StoreError as store_exc:
                logger.error(f"Final save of server {server_id} failed after {exc.token}: {store_exc}")
            raise

        try:
            await self._ctx.store.update(config)
        except StoreError as exc:
            logger.error(f"Final save of server {server_id} failed: {exc}")
            raise PersistFailed() from exc
        return token

    async def _load(self, server_id: int) -> ServerConfig:
        try:
            config = await self._ctx.store.get_by_server_id(server_id)
        except StoreError as exc:
            raise ServerNotFound(f"Could not load configuration of server {server_id}.") from exc
        if config is None:
            raise ServerNotFound(f"Server {server_id} is not linked to any universe.")
        return config
