from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Dict, Iterable, List, Tuple

import discord

from .context import SetupContext
from .errors import (
    CategoryCreationFailed,
    ReorderFailed,
    ResourceAPIError,
    ResourceCreationError,
    RoleCreationFailed,
    ServerStateUnavailable,
)
from .models import ChannelKind, Resource, ServerConfig
from .permissions import (
    ADMIN_ROLE_PERMISSIONS,
    MODERATOR_ROLE_PERMISSIONS,
    PLAYER_ROLE_PERMISSIONS,
    SPECTATOR_ROLE_PERMISSIONS,
    road_category_overwrites,
)
from .resolver import record, resolve
from .rollback import rollback

logger = logging.getLogger(__name__)

SUCCESS_TOKEN = "setup__setup_success_message"
BOT_ROLE_POSITION = 5


@dataclass(frozen=True, slots=True)
class RoleTier:
    label: str
    field: str
    permissions: discord.Permissions
    position: int


# Resolved in this order, one tier at a time.
ROLE_TIERS: Tuple[RoleTier, ...] = (
    RoleTier("admin", "admin_role_id", ADMIN_ROLE_PERMISSIONS, 4),
    RoleTier("moderator", "moderator_role_id", MODERATOR_ROLE_PERMISSIONS, 3),
    RoleTier("spectator", "spectator_role_id", SPECTATOR_ROLE_PERMISSIONS, 2),
    RoleTier("player", "player_role_id", PLAYER_ROLE_PERMISSIONS, 1),
)


def role_positions(
    managed: Dict[str, Resource],
    bot_role: Resource,
    everyone_role: Resource,
    existing_roles: Iterable[Resource],
) -> List[Tuple[int, int]]:
    """Managed tiers at 1-4, the bot at 5, every other role stacked above."""
    positions = [(managed[tier.label].id, tier.position) for tier in ROLE_TIERS]
    # A bot whose top role is one of the tiers keeps that tier's slot.
    if bot_role.id not in {role_id for role_id, _ in positions}:
        positions.append((bot_role.id, BOT_ROLE_POSITION))

    placed = {role_id for role_id, _ in positions}
    placed.add(everyone_role.id)
    others = sorted(
        (role for role in existing_roles if role.id not in placed),
        key=lambda role: (role.position, role.id),
    )
    next_position = BOT_ROLE_POSITION + 1
    for role in others:
        positions.append((role.id, next_position))
        next_position += 1
    return positions


async def partial_setup(ctx: SetupContext, config: ServerConfig, snapshot: ServerConfig) -> str:
    """Provision the four role tiers and the roads category."""
    api = ctx.api
    server_id = config.server_id

    try:
        everyone_role = await api.get_everyone_role(server_id)
        existing_roles = await api.list_roles(server_id)
    except ResourceAPIError as exc:
        raise ServerStateUnavailable(f"Could not read roles of server {server_id}.") from exc

    roles: Dict[str, Resource] = {}
    for tier in ROLE_TIERS:
        create = partial(
            api.create_role,
            server_id,
            ctx.translate(f"{tier.label}_role_name"),
            tier.permissions,
        )
        try:
            resolved = await resolve(
                getattr(config, tier.field),
                partial(api.get_role, server_id),
                create,
                name=f"{tier.label} role",
            )
        except ResourceCreationError as exc:
            logger.error(
                f"Setup of server {server_id} (owner_group_id={config.owner_group_id}) "
                f"failed on the {tier.label} role: {exc.__cause__}"
            )
            await rollback(api, config, snapshot)
            raise RoleCreationFailed(tier.label) from exc
        roles[tier.label] = record(config, tier.field, resolved)

    try:
        bot_role = await api.get_bot_top_role(server_id)
        positions = role_positions(roles, bot_role, everyone_role, existing_roles)
        await api.reorder_roles(server_id, positions)
    except ResourceAPIError as exc:
        logger.error(f"Could not reorder roles of server {server_id}: {exc}")
        await rollback(api, config, snapshot)
        raise ReorderFailed() from exc

    overwrites = road_category_overwrites(
        everyone_role.id,
        roles["player"].id,
        roles["spectator"].id,
        roles["moderator"].id,
    )
    try:
        resolved = await resolve(
            config.road_category_id,
            api.get_channel,
            partial(
                api.create_channel,
                server_id,
                ctx.translate("road_channel_name"),
                ChannelKind.CATEGORY,
                0,
                overwrites,
            ),
            name="road category",
        )
    except ResourceCreationError as exc:
        logger.error(f"Could not create the roads category of server {server_id}: {exc.__cause__}")
        await rollback(api, config, snapshot)
        raise CategoryCreationFailed("road") from exc
    record(config, "road_category_id", resolved)

    await ctx.persist(config, snapshot)
    logger.info(f"Partial setup of server {server_id} complete")
    return SUCCESS_TOKEN
