from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

import discord

from .errors import ConfirmationUnavailable
from .translation import Translate

logger = logging.getLogger(__name__)

CONFIRMATION_TIMEOUT = 60.0


class ConfirmationChoice(str, Enum):
    CONTINUE = "continue"
    CANCEL = "cancel"
    TIMEOUT = "timeout"


class ConfirmationGate(ABC):
    """Asks the invoking member whether an existing setup may be reworked."""

    @abstractmethod
    async def ask(self, user_id: int, channel_id: int, timeout: float) -> ConfirmationChoice:
        ...


class OverwriteConfirmationView(discord.ui.View):
    """Cancel/continue buttons answerable only by one member in one channel."""

    def __init__(self, user_id: int, channel_id: int, translate: Translate, *, timeout: float) -> None:
        super().__init__(timeout=timeout)
        self.user_id = user_id
        self.channel_id = channel_id
        self.choice: Optional[ConfirmationChoice] = None
        self._translate = translate

        cancel = discord.ui.Button(
            label=translate("cancel_setup"),
            style=discord.ButtonStyle.primary,
            custom_id=ConfirmationChoice.CANCEL.value,
        )
        cancel.callback = self._on_cancel
        self.add_item(cancel)

        proceed = discord.ui.Button(
            label=translate("continue_setup"),
            style=discord.ButtonStyle.danger,
            custom_id=ConfirmationChoice.CONTINUE.value,
        )
        proceed.callback = self._on_continue
        self.add_item(proceed)

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.user.id == self.user_id and interaction.channel_id == self.channel_id:
            return True
        await interaction.response.send_message(
            self._translate("confirmation__not_for_you"), ephemeral=True
        )
        return False

    async def _answer(self, interaction: discord.Interaction, choice: ConfirmationChoice) -> None:
        self.choice = choice
        await interaction.response.defer()
        self.stop()

    async def _on_cancel(self, interaction: discord.Interaction) -> None:
        await self._answer(interaction, ConfirmationChoice.CANCEL)

    async def _on_continue(self, interaction: discord.Interaction) -> None:
        await self._answer(interaction, ConfirmationChoice.CONTINUE)


class InteractionConfirmationGate(ConfirmationGate):
    """Posts the prompt as a follow-up of a deferred slash command."""

    def __init__(self, interaction: discord.Interaction, translate: Translate) -> None:
        self._interaction = interaction
        self._translate = translate

    async def ask(self, user_id: int, channel_id: int, timeout: float) -> ConfirmationChoice:
        view = OverwriteConfirmationView(user_id, channel_id, self._translate, timeout=timeout)
        embed = discord.Embed(
            title=self._translate("setup__continue_setup_message.title"),
            description=self._translate("setup__continue_setup_message.message"),
            color=discord.Color.from_rgb(0xFF, 0x98, 0x00),
        )
        try:
            message = await self._interaction.followup.send(embed=embed, view=view, wait=True)
        except discord.HTTPException as exc:
            view.stop()
            logger.error(f"Could not post the confirmation prompt in channel {channel_id}: {exc}")
            raise ConfirmationUnavailable(str(exc)) from exc

        timed_out = await view.wait()
        try:
            await message.delete()
        except discord.HTTPException as exc:
            logger.warning(f"Could not delete confirmation prompt {message.id}: {exc}")

        if timed_out or view.choice is None:
            return ConfirmationChoice.TIMEOUT
        return view.choice
