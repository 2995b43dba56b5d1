from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .context import SetupContext
from .errors import (
    CategoryCreationFailed,
    ChannelCreationFailed,
    PartialSetupRequired,
    ResourceAPIError,
    ResourceCreationError,
    ServerStateUnavailable,
)
from .models import ChannelKind, Resource, ServerConfig
from .permissions import Overwrite, admin_category_overwrites, character_channel_overwrites
from .resolver import record, resolve
from .rollback import rollback

logger = logging.getLogger(__name__)

SUCCESS_TOKEN = "setup__setup_success_message"

RoleIds = Dict[str, int]
OverwriteFactory = Callable[[RoleIds], Sequence[Overwrite]]


def _no_overwrites(role_ids: RoleIds) -> Sequence[Overwrite]:
    return ()


def _admin_overwrites(role_ids: RoleIds) -> Sequence[Overwrite]:
    return admin_category_overwrites(
        role_ids["everyone"], role_ids["spectator"], role_ids["player"], role_ids["moderator"]
    )


def _character_overwrites(role_ids: RoleIds) -> Sequence[Overwrite]:
    return character_channel_overwrites(role_ids["player"])


@dataclass(frozen=True, slots=True)
class Blueprint:
    label: str
    field: str
    kind: ChannelKind
    position: int
    overwrites: OverwriteFactory = _no_overwrites
    parent: Optional[str] = None

    @property
    def name_key(self) -> str:
        suffix = "category" if self.kind is ChannelKind.CATEGORY else "channel"
        return f"{self.label}_{suffix}_name"


CATEGORIES: Tuple[Blueprint, ...] = (
    Blueprint("admin", "admin_category_id", ChannelKind.CATEGORY, 0, _admin_overwrites),
    Blueprint("nrp", "nrp_category_id", ChannelKind.CATEGORY, 1),
    Blueprint("rp", "rp_category_id", ChannelKind.CATEGORY, 2),
)

CHANNELS: Tuple[Blueprint, ...] = (
    Blueprint("log", "log_channel_id", ChannelKind.TEXT, 0, parent="admin"),
    Blueprint("commands", "commands_channel_id", ChannelKind.TEXT, 0, parent="admin"),
    Blueprint("moderation", "moderation_channel_id", ChannelKind.TEXT, 0, parent="admin"),
    Blueprint("nrp_general", "nrp_general_channel_id", ChannelKind.TEXT, 0, parent="nrp"),
    Blueprint(
        "rp_character",
        "rp_character_channel_id",
        ChannelKind.TEXT,
        0,
        _character_overwrites,
        parent="rp",
    ),
    Blueprint("rp_wiki", "rp_wiki_channel_id", ChannelKind.FORUM, 0, parent="rp"),
)

# Leading slots of the channel list, in order.
PINNED_CATEGORY_FIELDS: Tuple[str, ...] = (
    "admin_category_id",
    "nrp_category_id",
    "rp_category_id",
    "road_category_id",
)


async def _resolve_blueprint(
    ctx: SetupContext,
    config: ServerConfig,
    blueprint: Blueprint,
    role_ids: RoleIds,
    parent_id: Optional[int] = None,
) -> Resource:
    create = partial(
        ctx.api.create_channel,
        config.server_id,
        ctx.translate(blueprint.name_key),
        blueprint.kind,
        blueprint.position,
        blueprint.overwrites(role_ids),
        parent_id,
    )
    resolved = await resolve(
        getattr(config, blueprint.field),
        ctx.api.get_channel,
        create,
        name=blueprint.field,
    )
    return record(config, blueprint.field, resolved)


def channel_positions(config: ServerConfig, channels: Sequence[Resource]) -> List[Tuple[int, int]]:
    """Pinned categories at 0-3, every other channel after them in current order."""
    pinned = [getattr(config, name).remote_id for name in PINNED_CATEGORY_FIELDS]
    positions = [(channel_id, index) for index, channel_id in enumerate(pinned)]
    others = sorted(
        (channel for channel in channels if channel.id not in pinned),
        key=lambda channel: (channel.position, channel.id),
    )
    for offset, channel in enumerate(others, start=len(pinned)):
        positions.append((channel.id, offset))
    return positions


async def _reorder_channels(ctx: SetupContext, config: ServerConfig) -> None:
    try:
        channels = await ctx.api.list_channels(config.server_id)
        await ctx.api.reorder_channels(config.server_id, channel_positions(config, channels))
    except ResourceAPIError as exc:
        logger.warning(f"Could not reorder channels of server {config.server_id}: {exc}")


async def complementary_setup(
    ctx: SetupContext, config: ServerConfig, snapshot: ServerConfig
) -> str:
    """Provision the admin, non-RP and RP categories and their channels."""
    server_id = config.server_id
    required = ("moderator_role_id", "spectator_role_id", "player_role_id", "road_category_id")
    missing = [name for name in required if getattr(config, name) is None]
    if missing:
        raise PartialSetupRequired(
            f"Server {server_id} is missing {', '.join(missing)}; run a partial setup first."
        )

    try:
        everyone_role = await ctx.api.get_everyone_role(server_id)
    except ResourceAPIError as exc:
        raise ServerStateUnavailable(f"Could not read roles of server {server_id}.") from exc

    role_ids: RoleIds = {
        "everyone": everyone_role.id,
        "moderator": config.moderator_role_id.remote_id,
        "spectator": config.spectator_role_id.remote_id,
        "player": config.player_role_id.remote_id,
    }

    categories: Dict[str, Resource] = {}
    failed: List[str] = []
    for blueprint in CATEGORIES:
        try:
            categories[blueprint.label] = await _resolve_blueprint(ctx, config, blueprint, role_ids)
        except ResourceCreationError as exc:
            logger.error(
                f"Could not create the {blueprint.label} category of server {server_id}: "
                f"{exc.__cause__}"
            )
            failed.append(blueprint.label)
    if failed:
        await rollback(ctx.api, config, snapshot)
        raise CategoryCreationFailed(failed[0])

    for blueprint in CHANNELS:
        parent = categories[blueprint.parent]
        try:
            await _resolve_blueprint(ctx, config, blueprint, role_ids, parent.id)
        except ResourceCreationError as exc:
            logger.error(
                f"Could not create the {blueprint.label} channel of server {server_id} "
                f"(owner_group_id={config.owner_group_id}): {exc.__cause__}"
            )
            await rollback(ctx.api, config, snapshot)
            raise ChannelCreationFailed(blueprint.label) from exc

    await _reorder_channels(ctx, config)
    await ctx.persist(config, snapshot)
    logger.info(f"Complementary setup of server {server_id} complete")
    return SUCCESS_TOKEN
