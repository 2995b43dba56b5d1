from __future__ import annotations

import logging
from typing import Optional, Tuple

import discord
from discord import app_commands

from .config import BotConfig
from .confirmation import InteractionConfirmationGate
from .discord_api import DiscordResourceAPI
from .errors import RPBotError, SetupError, StoreError
from .orchestrator import SetupMode, SetupOrchestrator
from .places import (
    PLACE_CREATED_TOKEN,
    PLACE_STORE_FAILED_TOKEN,
    ROAD_CREATED_TOKEN,
    ROAD_STORE_FAILED_TOKEN,
    create_place,
    create_road,
)
from .reply import send_reply
from .store import ConfigStore, UniverseStore
from .translation import Translate
from .universe import (
    CREATED_TOKEN,
    DELETE_FAILED_TOKEN,
    DELETED_TOKEN,
    LINKED_TOKEN,
    create_universe,
    delete_universe,
    link_server,
)
from .webhook import SetupNotification, WebhookNotifier

logger = logging.getLogger(__name__)


class RPBotClient(discord.Client):
    def __init__(
        self,
        config: BotConfig,
        store: ConfigStore,
        universes: UniverseStore,
        translate: Translate,
        webhook: Optional[WebhookNotifier] = None,
        *,
        intents: Optional[discord.Intents] = None,
    ) -> None:
        super().__init__(intents=intents or discord.Intents.default())
        self._config = config
        self._store = store
        self._universes = universes
        self._translate = translate
        self._webhook = webhook
        self.api = DiscordResourceAPI(self)
        self.tree = app_commands.CommandTree(self)
        self._register_commands()

    async def setup_hook(self) -> None:
        await self.tree.sync()
        logger.info("Application commands synced")

    async def on_ready(self) -> None:
        logger.info(f"Authenticated as {self.user}.")

    def _register_commands(self) -> None:
        @self.tree.command(name="setup", description="Create the roles, categories and channels of this server")
        @app_commands.guild_only()
        @app_commands.default_permissions(administrator=True)
        @app_commands.describe(mode="Full creates everything, partial only roles and roads")
        async def setup(interaction: discord.Interaction, mode: SetupMode) -> None:
            await self.handle_setup(interaction, mode)

        universe = app_commands.Group(
            name="universe",
            description="Manage the universe this server belongs to",
            guild_only=True,
            default_permissions=discord.Permissions(administrator=True),
        )

        @universe.command(name="create", description="Create a universe around this server and set it up")
        @app_commands.describe(name="Name of the universe", mode="Setup to run once the universe exists")
        async def create(interaction: discord.Interaction, name: str, mode: SetupMode) -> None:
            await self.handle_create(interaction, name, mode)

        @universe.command(name="link", description="Link this server to a universe you created")
        async def link(interaction: discord.Interaction, universe_id: str) -> None:
            await self.handle_link(interaction, universe_id)

        @universe.command(name="delete", description="Delete a universe and everything it provisioned")
        async def delete(interaction: discord.Interaction, universe_id: str) -> None:
            await self.handle_delete(interaction, universe_id)

        place = app_commands.Group(
            name="place",
            description="Manage the places of this universe",
            guild_only=True,
            default_permissions=discord.Permissions(administrator=True),
        )

        @place.command(name="create", description="Create a place with its own role and category")
        async def create_place_command(interaction: discord.Interaction, name: str) -> None:
            await self.handle_create_place(interaction, name)

        road = app_commands.Group(
            name="road",
            description="Manage the roads between places",
            guild_only=True,
            default_permissions=discord.Permissions(administrator=True),
        )

        @road.command(name="create", description="Join two places with a road")
        @app_commands.describe(distance="Length of the road")
        async def create_road_command(
            interaction: discord.Interaction,
            place_one: discord.CategoryChannel,
            place_two: discord.CategoryChannel,
            distance: app_commands.Range[int, 0],
        ) -> None:
            await self.handle_create_road(interaction, place_one.id, place_two.id, distance)

        self.tree.add_command(universe)
        self.tree.add_command(place)
        self.tree.add_command(road)

    async def _run_setup(self, interaction: discord.Interaction, mode: SetupMode) -> Tuple[str, bool]:
        gate = InteractionConfirmationGate(interaction, self._translate)
        orchestrator = SetupOrchestrator(
            self.api,
            self._store,
            gate,
            self._translate,
            confirmation_timeout=self._config.confirmation_timeout,
        )
        try:
            token = await orchestrator.run(
                interaction.guild_id, interaction.user.id, interaction.channel_id, mode
            )
        except SetupError as exc:
            return exc.token, False
        return token, True

    async def handle_setup(self, interaction: discord.Interaction, mode: SetupMode) -> None:
        await interaction.response.defer(thinking=True)
        token, succeeded = await self._run_setup(interaction, mode)
        await send_reply(interaction, token, succeeded, self._translate)
        await self._notify(interaction.guild_id, mode, token, succeeded)

    async def handle_create(self, interaction: discord.Interaction, name: str, mode: SetupMode) -> None:
        await interaction.response.defer(thinking=True)
        try:
            await create_universe(
                self._store, self._universes, interaction.guild_id, interaction.user.id, name
            )
        except SetupError as exc:
            await send_reply(interaction, exc.token, False, self._translate)
            return
        except StoreError as exc:
            logger.error(f"Creating universe '{name}' on server {interaction.guild_id} failed: {exc}")
            await send_reply(interaction, SetupError.token, False, self._translate)
            return

        token, succeeded = await self._run_setup(interaction, mode)
        await send_reply(interaction, CREATED_TOKEN if succeeded else token, succeeded, self._translate)
        await self._notify(interaction.guild_id, mode, token, succeeded)

    async def handle_link(self, interaction: discord.Interaction, universe_id: str) -> None:
        await interaction.response.defer(thinking=True, ephemeral=True)
        try:
            await link_server(
                self._store, self._universes, universe_id, interaction.guild_id, interaction.user.id
            )
        except SetupError as exc:
            await send_reply(interaction, exc.token, False, self._translate)
            return
        except StoreError as exc:
            logger.error(f"Linking server {interaction.guild_id} to {universe_id} failed: {exc}")
            await send_reply(interaction, SetupError.token, False, self._translate)
            return
        await send_reply(interaction, LINKED_TOKEN, True, self._translate)

    async def handle_delete(self, interaction: discord.Interaction, universe_id: str) -> None:
        await interaction.response.defer(thinking=True, ephemeral=True)
        try:
            failures = await delete_universe(
                self.api,
                self._store,
                self._universes,
                universe_id,
                interaction.guild_id,
                interaction.user.id,
            )
        except SetupError as exc:
            logger.warning(
                f"User {interaction.user.id} may not delete universe {universe_id} "
                f"from server {interaction.guild_id}: {exc.token}"
            )
            await send_reply(interaction, exc.token, False, self._translate)
            return
        except StoreError as exc:
            logger.error(f"Deleting universe {universe_id} failed: {exc}")
            await send_reply(interaction, DELETE_FAILED_TOKEN, False, self._translate)
            return
        if failures:
            logger.error(
                f"Universe {universe_id} deleted with {len(failures)} resource(s) left behind"
            )
        await send_reply(interaction, DELETED_TOKEN, True, self._translate)

    async def handle_create_place(self, interaction: discord.Interaction, name: str) -> None:
        await interaction.response.defer(thinking=True)
        try:
            await create_place(self.api, self._store, self._universes, interaction.guild_id, name)
        except SetupError as exc:
            await send_reply(interaction, exc.token, False, self._translate)
            return
        except StoreError as exc:
            logger.error(f"Place '{name}' on server {interaction.guild_id} failed: {exc}")
            await send_reply(interaction, PLACE_STORE_FAILED_TOKEN, False, self._translate)
            return
        await send_reply(interaction, PLACE_CREATED_TOKEN, True, self._translate)

    async def handle_create_road(
        self, interaction: discord.Interaction, place_one_id: int, place_two_id: int, distance: int
    ) -> None:
        await interaction.response.defer(thinking=True)
        try:
            await create_road(
                self.api,
                self._store,
                self._universes,
                interaction.guild_id,
                place_one_id,
                place_two_id,
                distance,
            )
        except SetupError as exc:
            await send_reply(interaction, exc.token, False, self._translate)
            return
        except StoreError as exc:
            logger.error(f"Road on server {interaction.guild_id} failed: {exc}")
            await send_reply(interaction, ROAD_STORE_FAILED_TOKEN, False, self._translate)
            return
        await send_reply(interaction, ROAD_CREATED_TOKEN, True, self._translate)

    async def _notify(self, server_id: int, mode: SetupMode, token: str, succeeded: bool) -> None:
        if not self._webhook:
            return
        notification = SetupNotification(
            server_id=server_id,
            mode=mode.value,
            token=token,
            succeeded=succeeded,
            message=self._translate(token),
        )
        try:
            await self._webhook.notify(notification)
        except RPBotError as exc:
            logger.warning(f"Setup notification for server {server_id} failed: {exc}")
