from __future__ import annotations

import logging

import discord

from .translation import Translate

logger = logging.getLogger(__name__)

SUCCESS_TITLE = "setup__setup_success_title"
ERROR_TITLE = "setup__setup_error_title"


def build_reply_embed(token: str, succeeded: bool, translate: Translate) -> discord.Embed:
    color = discord.Color.from_rgb(0, 255, 0) if succeeded else discord.Color.from_rgb(255, 0, 0)
    embed = discord.Embed(
        title=translate(SUCCESS_TITLE if succeeded else ERROR_TITLE),
        description=translate(token),
        color=color,
    )
    embed.set_footer(text=token)
    return embed


async def send_reply(
    interaction: discord.Interaction, token: str, succeeded: bool, translate: Translate
) -> bool:
    """Answer a deferred interaction with the localised outcome."""
    try:
        await interaction.followup.send(embed=build_reply_embed(token, succeeded, translate))
    except discord.HTTPException as exc:
        logger.error(f"Failed to reply on server {interaction.guild_id} with {token}: {exc}")
        return False
    return True
