from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Sequence

import discord

from .errors import ResourceAPIError, ResourceNotFoundError
from .models import ChannelKind, Resource, ResourceKind
from .permissions import Overwrite
from .resource_api import Positions, ResourceAPI

logger = logging.getLogger(__name__)

AUDIT_REASON = "RPBot server setup"


@contextmanager
def _api_errors(action: str) -> Iterator[None]:
    try:
        yield
    except discord.NotFound as exc:
        raise ResourceNotFoundError(
            f"Discord could not find the resource while {action}.", status=exc.status
        ) from exc
    except discord.Forbidden as exc:
        raise ResourceAPIError(f"Discord denied the request while {action}.", status=exc.status) from exc
    except discord.HTTPException as exc:
        raise ResourceAPIError(
            f"Discord API responded with status {exc.status} while {action}.", status=exc.status
        ) from exc


def _role_resource(role: discord.Role) -> Resource:
    return Resource(id=role.id, name=role.name, kind=ResourceKind.ROLE, position=role.position)


def _channel_resource(channel: discord.abc.GuildChannel) -> Resource:
    kind = ResourceKind.CATEGORY if isinstance(channel, discord.CategoryChannel) else ResourceKind.CHANNEL
    return Resource(id=channel.id, name=channel.name, kind=kind, position=channel.position)


def _overwrite_map(
    overwrites: Sequence[Overwrite],
) -> Dict[discord.Object, discord.PermissionOverwrite]:
    return {
        discord.Object(id=overwrite.target_id, type=discord.Role): discord.PermissionOverwrite.from_pair(
            overwrite.allow, overwrite.deny
        )
        for overwrite in overwrites
    }


class DiscordResourceAPI(ResourceAPI):
    """``ResourceAPI`` backed by a logged-in discord.py client."""

    def __init__(self, client: discord.Client) -> None:
        self._client = client

    async def _guild(self, server_id: int) -> discord.Guild:
        guild = self._client.get_guild(server_id)
        if guild is not None:
            return guild
        with _api_errors(f"fetching server {server_id}"):
            return await self._client.fetch_guild(server_id)

    async def create_role(
        self, server_id: int, name: str, permissions: discord.Permissions
    ) -> Resource:
        guild = await self._guild(server_id)
        with _api_errors(f"creating role '{name}'"):
            role = await guild.create_role(name=name, permissions=permissions, reason=AUDIT_REASON)
        logger.info(f"Created role '{name}' ({role.id}) on server {server_id}")
        return _role_resource(role)

    async def get_role(self, server_id: int, role_id: int) -> Resource:
        for role in await self.list_roles(server_id):
            if role.id == role_id:
                return role
        raise ResourceNotFoundError(f"Role {role_id} does not exist on server {server_id}.")

    async def delete_role(self, server_id: int, role_id: int) -> None:
        with _api_errors(f"deleting role {role_id}"):
            await self._client.http.delete_role(server_id, role_id, reason=AUDIT_REASON)

    async def create_channel(
        self,
        server_id: int,
        name: str,
        kind: ChannelKind,
        position: int,
        overwrites: Sequence[Overwrite] = (),
        parent_id: Optional[int] = None,
    ) -> Resource:
        guild = await self._guild(server_id)
        overwrite_map = _overwrite_map(overwrites)
        category = discord.Object(id=parent_id) if parent_id is not None else None

        with _api_errors(f"creating {kind.value} '{name}'"):
            if kind is ChannelKind.CATEGORY:
                channel = await guild.create_category(
                    name, overwrites=overwrite_map, position=position, reason=AUDIT_REASON
                )
            elif kind is ChannelKind.FORUM:
                channel = await guild.create_forum(
                    name,
                    category=category,
                    position=position,
                    overwrites=overwrite_map,
                    reason=AUDIT_REASON,
                )
            else:
                channel = await guild.create_text_channel(
                    name,
                    category=category,
                    position=position,
                    overwrites=overwrite_map,
                    reason=AUDIT_REASON,
                )
        logger.info(f"Created {kind.value} '{name}' ({channel.id}) on server {server_id}")
        return _channel_resource(channel)

    async def get_channel(self, channel_id: int) -> Resource:
        with _api_errors(f"fetching channel {channel_id}"):
            channel = await self._client.fetch_channel(channel_id)
        if not isinstance(channel, discord.abc.GuildChannel):
            raise ResourceNotFoundError(f"Channel {channel_id} is not a server channel.")
        return _channel_resource(channel)

    async def delete_channel(self, channel_id: int) -> None:
        with _api_errors(f"deleting channel {channel_id}"):
            await self._client.http.delete_channel(channel_id, reason=AUDIT_REASON)

    async def reorder_roles(self, server_id: int, positions: Positions) -> None:
        payload = [{"id": role_id, "position": position} for role_id, position in positions]
        with _api_errors(f"reordering roles of server {server_id}"):
            await self._client.http.move_role_position(server_id, payload, reason=AUDIT_REASON)

    async def reorder_channels(self, server_id: int, positions: Positions) -> None:
        payload = [{"id": channel_id, "position": position} for channel_id, position in positions]
        with _api_errors(f"reordering channels of server {server_id}"):
            await self._client.http.bulk_channel_update(server_id, payload, reason=AUDIT_REASON)

    async def list_roles(self, server_id: int) -> List[Resource]:
        guild = await self._guild(server_id)
        with _api_errors(f"listing roles of server {server_id}"):
            roles = await guild.fetch_roles()
        return [_role_resource(role) for role in roles]

    async def list_channels(self, server_id: int) -> List[Resource]:
        guild = await self._guild(server_id)
        with _api_errors(f"listing channels of server {server_id}"):
            channels = await guild.fetch_channels()
        return [_channel_resource(channel) for channel in channels]

    async def get_everyone_role(self, server_id: int) -> Resource:
        # @everyone always shares the server's id.
        return Resource(id=server_id, name="@everyone", kind=ResourceKind.ROLE, position=0)

    async def get_bot_top_role(self, server_id: int) -> Resource:
        if self._client.user is None:
            raise ResourceAPIError("The client is not logged in.")
        with _api_errors(f"fetching the bot member of server {server_id}"):
            member = await self._client.http.get_member(server_id, self._client.user.id)
        role_ids = {int(role_id) for role_id in member.get("roles", [])}
        owned = [role for role in await self.list_roles(server_id) if role.id in role_ids]
        if not owned:
            raise ResourceNotFoundError(f"The bot has no role on server {server_id}.")
        return max(owned, key=lambda role: (role.position, role.id))
