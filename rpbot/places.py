from __future__ import annotations

import asyncio
import logging
from typing import List, Tuple

from .errors import (
    PartialSetupRequired,
    PlaceCreationFailed,
    PlaceNotFound,
    PlaceRoleCreationFailed,
    PlaceServerNotFound,
    ResourceAPIError,
    RoadChannelCreationFailed,
    RoadRecordFailed,
    RoadRoleCreationFailed,
    RoadServerNotFound,
    StoreError,
)
from .models import ChannelKind, Place, ResourceRef, Road
from .permissions import NO_PERMISSIONS, place_overwrites
from .resource_api import ResourceAPI
from .rollback import delete_resources
from .store import ConfigStore, UniverseStore

logger = logging.getLogger(__name__)

PLACE_CREATED_TOKEN = "create_place__success"
PLACE_STORE_FAILED_TOKEN = "create_place__database_not_found"
ROAD_CREATED_TOKEN = "create_road__success"
ROAD_STORE_FAILED_TOKEN = "create_road__database_error"


async def create_place(
    api: ResourceAPI,
    store: ConfigStore,
    universes: UniverseStore,
    server_id: int,
    name: str,
) -> Place:
    """Create a place: a role and a category only that role can see."""
    config = await store.get_by_server_id(server_id)
    if config is None:
        raise PlaceServerNotFound(f"Server {server_id} is not linked to a universe.")
    everyone = await api.get_everyone_role(server_id)

    try:
        role = await api.create_role(server_id, name, NO_PERMISSIONS)
    except ResourceAPIError as exc:
        logger.error(f"Role for place '{name}' on server {server_id} failed: {exc}")
        raise PlaceRoleCreationFailed(str(exc)) from exc

    created: List[Tuple[str, ResourceRef]] = [("place role", role.ref)]
    try:
        category = await api.create_channel(
            server_id,
            name,
            ChannelKind.CATEGORY,
            0,
            overwrites=place_overwrites(everyone.id, role.id),
        )
        created.append(("place category", category.ref))
        place = Place(
            universe_id=config.owner_group_id,
            server_id=server_id,
            category_id=category.id,
            role_id=role.id,
            name=name,
        )
        await universes.insert_place(place)
    except (ResourceAPIError, StoreError) as exc:
        logger.error(f"Place '{name}' on server {server_id} failed, rolling back: {exc}")
        await delete_resources(api, server_id, created, config.owner_group_id)
        raise PlaceCreationFailed(str(exc)) from exc

    logger.info(f"Created place '{name}' ({place.record_id}) on server {server_id}")
    return place


async def create_road(
    api: ResourceAPI,
    store: ConfigStore,
    universes: UniverseStore,
    server_id: int,
    place_one_category_id: int,
    place_two_category_id: int,
    distance: int,
) -> Road:
    """Join two places with a channel in the roads category."""
    config = await store.get_by_server_id(server_id)
    if config is None:
        raise RoadServerNotFound(f"Server {server_id} is not linked to a universe.")
    if config.road_category_id is None:
        raise PartialSetupRequired(f"Server {server_id} has no roads category.")

    universe_id = config.owner_group_id
    place_one, place_two = await asyncio.gather(
        universes.get_place_by_category(universe_id, place_one_category_id),
        universes.get_place_by_category(universe_id, place_two_category_id),
    )
    if place_one is None:
        raise PlaceNotFound("one")
    if place_two is None:
        raise PlaceNotFound("two")

    name = f"{place_one.name}-{place_two.name}"
    everyone = await api.get_everyone_role(server_id)
    try:
        role = await api.create_role(server_id, name, NO_PERMISSIONS)
    except ResourceAPIError as exc:
        logger.error(f"Role for road '{name}' on server {server_id} failed: {exc}")
        raise RoadRoleCreationFailed(str(exc)) from exc

    created: List[Tuple[str, ResourceRef]] = [("road role", role.ref)]
    try:
        channel = await api.create_channel(
            server_id,
            name,
            ChannelKind.TEXT,
            0,
            overwrites=place_overwrites(everyone.id, role.id),
            parent_id=config.road_category_id.remote_id,
        )
    except ResourceAPIError as exc:
        logger.error(f"Channel for road '{name}' on server {server_id} failed, rolling back: {exc}")
        await delete_resources(api, server_id, created, universe_id)
        raise RoadChannelCreationFailed(str(exc)) from exc

    created.append(("road channel", channel.ref))
    road = Road(
        universe_id=universe_id,
        server_id=server_id,
        role_id=role.id,
        channel_id=channel.id,
        place_one_id=place_one.record_id,
        place_two_id=place_two.record_id,
        distance=distance,
    )
    try:
        await universes.insert_road(road)
    except StoreError as exc:
        logger.error(f"Road '{name}' on server {server_id} could not be saved, rolling back: {exc}")
        await delete_resources(api, server_id, created, universe_id)
        raise RoadRecordFailed(str(exc)) from exc

    logger.info(f"Created road '{name}' ({road.record_id}) of length {distance} on server {server_id}")
    return road
