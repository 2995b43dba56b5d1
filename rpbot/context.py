from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .errors import PersistFailed, StoreError
from .models import ServerConfig
from .resource_api import ResourceAPI
from .rollback import rollback
from .store import ConfigStore
from .translation import Translate, Translator

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SetupContext:
    """Collaborators shared by every phase of one setup run."""

    api: ResourceAPI
    store: ConfigStore
    translate: Translate = field(default_factory=Translator)

    async def persist(self, config: ServerConfig, snapshot: ServerConfig) -> None:
        """Save ``config``; undo the run's remote changes if the save fails."""
        try:
            await self.store.update(config)
        except StoreError as exc:
            logger.error(
                f"Could not save configuration of server {config.server_id} "
                f"(owner_group_id={config.owner_group_id}): {exc}"
            )
            await rollback(self.api, config, snapshot)
            raise PersistFailed() from exc
