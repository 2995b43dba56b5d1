from __future__ import annotations

import asyncio
import logging

from .errors import ResourceAPIError, ServerStateUnavailable
from .models import ResourceKind, ServerConfig
from .resource_api import ResourceAPI

logger = logging.getLogger(__name__)


async def take_snapshot(api: ResourceAPI, config: ServerConfig) -> ServerConfig:
    """Copy ``config`` with every reference to a vanished resource set to ``None``."""
    try:
        roles, channels = await asyncio.gather(
            api.list_roles(config.server_id),
            api.list_channels(config.server_id),
        )
    except ResourceAPIError as exc:
        raise ServerStateUnavailable(
            f"Could not list resources of server {config.server_id}."
        ) from exc

    live_roles = {role.id for role in roles}
    live_channels = {channel.id for channel in channels}

    snapshot = config.copy()
    for name, ref in config.references():
        if ref is None:
            continue
        live = live_roles if ref.kind is ResourceKind.ROLE else live_channels
        if ref.remote_id not in live:
            logger.info(
                f"Server {config.server_id}: {name} ({ref.remote_id}) no longer exists"
            )
            setattr(snapshot, name, None)
    return snapshot
