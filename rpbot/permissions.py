from __future__ import annotations

from dataclasses import dataclass
from typing import List

import discord


@dataclass(frozen=True, slots=True)
class Overwrite:
    """Channel permission overwrite targeting a role id."""

    target_id: int
    allow: discord.Permissions
    deny: discord.Permissions


NO_PERMISSIONS = discord.Permissions.none()

VIEW_CHANNEL = discord.Permissions(view_channel=True)

GENERAL_PERMISSIONS = discord.Permissions(
    add_reactions=True,
    attach_files=True,
    change_nickname=True,
    connect=True,
    create_instant_invite=True,
    embed_links=True,
    mention_everyone=True,
    read_message_history=True,
    view_channel=True,
    send_messages=True,
    send_tts_messages=True,
    speak=True,
    use_external_emojis=True,
    use_voice_activation=True,
)

ADMIN_ROLE_PERMISSIONS = discord.Permissions(administrator=True)

MODERATOR_ROLE_PERMISSIONS = GENERAL_PERMISSIONS | discord.Permissions(
    kick_members=True,
    ban_members=True,
    manage_channels=True,
    stream=True,
    manage_messages=True,
    mute_members=True,
    deafen_members=True,
    move_members=True,
    manage_nicknames=True,
    manage_roles=True,
    manage_events=True,
    manage_threads=True,
    create_public_threads=True,
    send_messages_in_threads=True,
    use_embedded_activities=True,
    moderate_members=True,
    use_soundboard=True,
    create_events=True,
    send_polls=True,
)

SPECTATOR_ROLE_PERMISSIONS = GENERAL_PERMISSIONS

PLAYER_ROLE_PERMISSIONS = GENERAL_PERMISSIONS


def _hidden(target_id: int) -> Overwrite:
    return Overwrite(target_id=target_id, allow=NO_PERMISSIONS, deny=VIEW_CHANNEL)


def _visible(target_id: int) -> Overwrite:
    return Overwrite(target_id=target_id, allow=VIEW_CHANNEL, deny=NO_PERMISSIONS)


def road_category_overwrites(
    everyone_role_id: int,
    player_role_id: int,
    spectator_role_id: int,
    moderator_role_id: int,
) -> List[Overwrite]:
    """Players and @everyone cannot see roads; spectators and moderators can."""
    return [
        _hidden(player_role_id),
        _hidden(everyone_role_id),
        _visible(spectator_role_id),
        _visible(moderator_role_id),
    ]


def admin_category_overwrites(
    everyone_role_id: int,
    spectator_role_id: int,
    player_role_id: int,
    moderator_role_id: int,
) -> List[Overwrite]:
    """Only moderators can see the administration category."""
    return [
        _hidden(everyone_role_id),
        _hidden(spectator_role_id),
        _hidden(player_role_id),
        _visible(moderator_role_id),
    ]


def character_channel_overwrites(player_role_id: int) -> List[Overwrite]:
    return [_hidden(player_role_id)]


PLACE_MEMBER_PERMISSIONS = discord.Permissions(
    view_channel=True,
    send_messages=True,
    read_message_history=True,
)


def place_overwrites(everyone_role_id: int, member_role_id: int) -> List[Overwrite]:
    """Hidden from @everyone, open to the members of one place or road."""
    return [
        Overwrite(target_id=member_role_id, allow=PLACE_MEMBER_PERMISSIONS, deny=NO_PERMISSIONS),
        _hidden(everyone_role_id),
    ]
