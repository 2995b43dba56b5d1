from __future__ import annotations

import logging
import time
from typing import List, Tuple

from .errors import (
    DuplicateServerError,
    ServerAlreadyLinked,
    ServerLimitReached,
    StoreError,
    UniverseAlreadyExists,
    UniverseLimitReached,
    UniverseNotFound,
    UniverseNotOwned,
)
from .models import ResourceKind, ResourceRef, ServerConfig, Universe
from .resource_api import ResourceAPI
from .rollback import RollbackFailure, delete_resources, rollback
from .store import ConfigStore, UniverseStore

logger = logging.getLogger(__name__)

FREE_LIMIT_UNIVERSE = 2
FREE_LIMIT_SERVERS_PER_UNIVERSE = 2

CREATED_TOKEN = "create_universe__universe_successfully_created"
LINKED_TOKEN = "add_server_to_universe__guild_linked"
DELETED_TOKEN = "universe_delete__passed"
DELETE_FAILED_TOKEN = "universe_delete__failed"


async def create_universe(
    store: ConfigStore,
    universes: UniverseStore,
    server_id: int,
    creator_id: int,
    name: str,
    *,
    limit: int = FREE_LIMIT_UNIVERSE,
) -> Tuple[Universe, ServerConfig]:
    """Create a universe around the calling server and link that server to it.

    The universe record is removed again when the server record cannot be
    written, so a failed creation never counts against the creator's limit.
    """
    owned = await universes.count_universes_by_creator(creator_id)
    if owned >= limit:
        raise UniverseLimitReached(f"User {creator_id} already created {owned} universe(s).")
    if await store.get_by_server_id(server_id) is not None:
        raise UniverseAlreadyExists(f"Server {server_id} already belongs to a universe.")

    universe = Universe(
        name=name,
        creator_id=creator_id,
        creation_timestamp=int(time.time() * 1000),
    )
    await universes.insert_universe(universe)

    config = ServerConfig(owner_group_id=universe.universe_id, server_id=server_id)
    try:
        await store.insert(config)
    except StoreError as exc:
        logger.error(f"Server record for {server_id} failed, removing universe {universe.universe_id}")
        try:
            await universes.delete_universe(universe.universe_id)
        except StoreError as cleanup_exc:
            logger.error(
                f"Universe {universe.universe_id} could not be removed, manual cleanup "
                f"required: {cleanup_exc}"
            )
        if isinstance(exc, DuplicateServerError):
            raise UniverseAlreadyExists(str(exc)) from exc
        raise

    logger.info(f"Created universe '{name}' ({universe.universe_id}) on server {server_id}")
    return universe, config


async def owned_universe(universes: UniverseStore, universe_id: str, user_id: int) -> Universe:
    universe = await universes.get_universe(universe_id)
    if universe is None:
        raise UniverseNotFound(f"Universe {universe_id} does not exist.")
    if universe.creator_id != user_id:
        raise UniverseNotOwned(f"User {user_id} did not create universe {universe_id}.")
    return universe


async def link_server(
    store: ConfigStore,
    universes: UniverseStore,
    universe_id: str,
    server_id: int,
    user_id: int,
    *,
    limit: int = FREE_LIMIT_SERVERS_PER_UNIVERSE,
) -> ServerConfig:
    """Create the empty configuration record binding a server to a universe."""
    await owned_universe(universes, universe_id, user_id)

    if await store.get_by_server_id(server_id) is not None:
        raise ServerAlreadyLinked(f"Server {server_id} is already linked to a universe.")

    linked = await store.list_by_owner_group(universe_id)
    if len(linked) >= limit:
        raise ServerLimitReached(f"Universe {universe_id} already holds {len(linked)} server(s).")

    config = ServerConfig(owner_group_id=universe_id, server_id=server_id)
    try:
        await store.insert(config)
    except DuplicateServerError as exc:
        raise ServerAlreadyLinked(str(exc)) from exc
    logger.info(f"Linked server {server_id} to universe {universe_id}")
    return config


async def delete_universe(
    api: ResourceAPI,
    store: ConfigStore,
    universes: UniverseStore,
    universe_id: str,
    server_id: int,
    user_id: int,
) -> List[RollbackFailure]:
    """Remove every provisioned resource of the universe, then its records.

    Only the creator may delete a universe, and only from one of its servers.
    """
    config = await store.get_by_server_id(server_id)
    if config is None or config.owner_group_id != universe_id:
        raise UniverseNotFound(f"Server {server_id} is not part of universe {universe_id}.")
    await owned_universe(universes, universe_id, user_id)

    failures: List[RollbackFailure] = []
    for linked in await store.list_by_owner_group(universe_id):
        baseline = ServerConfig(
            owner_group_id=linked.owner_group_id,
            server_id=linked.server_id,
            record_id=linked.record_id,
        )
        failures.extend(await rollback(api, linked, baseline))

    for place in await universes.list_places(universe_id):
        pending = [
            (f"place {place.name} role", ResourceRef(place.role_id, ResourceKind.ROLE)),
            (f"place {place.name} category", ResourceRef(place.category_id, ResourceKind.CATEGORY)),
        ]
        failures.extend(await delete_resources(api, place.server_id, pending, universe_id))
    for road in await universes.list_roads(universe_id):
        pending = [
            (f"road {road.record_id} role", ResourceRef(road.role_id, ResourceKind.ROLE)),
            (f"road {road.record_id} channel", ResourceRef(road.channel_id, ResourceKind.CHANNEL)),
        ]
        failures.extend(await delete_resources(api, road.server_id, pending, universe_id))

    removed_data = await universes.delete_universe_data(universe_id)
    removed_servers = await store.delete_by_owner_group(universe_id)
    await universes.delete_universe(universe_id)
    logger.info(
        f"Deleted universe {universe_id} with {removed_servers} server record(s) "
        f"and {removed_data} place/road record(s)"
    )
    return failures
