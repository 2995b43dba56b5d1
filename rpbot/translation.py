from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

Translate = Callable[[str], str]

DEFAULT_CATALOG: Dict[str, str] = {
    "admin_role_name": "Admin",
    "moderator_role_name": "Moderator",
    "spectator_role_name": "Spectator",
    "player_role_name": "Player",
    "road_channel_name": "Roads",
    "admin_category_name": "Administration",
    "nrp_category_name": "Non-RP",
    "rp_category_name": "RolePlay",
    "log_channel_name": "logs",
    "commands_channel_name": "commands",
    "moderation_channel_name": "moderation",
    "nrp_general_channel_name": "general",
    "rp_character_channel_name": "character-sheets",
    "rp_wiki_channel_name": "wiki",
    "cancel_setup": "Cancel",
    "continue_setup": "Continue",
    "setup__continue_setup_message.title": "Server already configured",
    "setup__continue_setup_message.message": (
        "This server already has part of its configuration. Continuing will recreate "
        "whatever is missing. Do you want to continue?"
    ),
    "confirmation__not_for_you": "Only the member who ran the command can answer this prompt.",
    "setup__setup_success_title": "Setup complete",
    "setup__setup_error_title": "Setup failed",
    "setup__setup_success_message": "The server has been set up.",
    "setup_server__cancelled": "Setup cancelled, nothing was changed.",
    "setup_server__failed": "The setup failed.",
    "setup__server_not_found": "This server is not linked to any universe.",
    "setup__server_state_unavailable": "Could not read the roles and channels of this server.",
    "setup__admin_role_not_created": "The admin role could not be created.",
    "setup__moderator_role_not_created": "The moderator role could not be created.",
    "setup__spectator_role_not_created": "The spectator role could not be created.",
    "setup__player_role_not_created": "The player role could not be created.",
    "setup__reorder_went_wrong": "The roles could not be reordered.",
    "setup__road_category_not_created": "The roads category could not be created.",
    "setup__admin_category_not_created": "The administration category could not be created.",
    "setup__nrp_category_not_created": "The non-RP category could not be created.",
    "setup__rp_category_not_created": "The RP category could not be created.",
    "setup__log_channel_not_created": "The log channel could not be created.",
    "setup__commands_channel_not_created": "The commands channel could not be created.",
    "setup__moderation_channel_not_created": "The moderation channel could not be created.",
    "setup__nrp_general_channel_not_created": "The general channel could not be created.",
    "setup__rp_character_channel_not_created": "The character sheet channel could not be created.",
    "setup__rp_wiki_channel_not_created": "The wiki channel could not be created.",
    "setup__server_update_failed": "The server configuration could not be saved.",
    "setup__partial_setup_required": "Run a partial setup first.",
    "setup__server_already_setup_timeout": "No answer received, the setup was not started.",
    "add_server_to_universe__guild_linked": "This server is now linked to the universe.",
    "add_server_to_universe__already_bind": "This server is already linked to a universe.",
    "exceed_limit_number_of_servers_per_universe": "This universe cannot hold more servers.",
    "universe_delete__passed": "The universe and its servers have been removed.",
    "universe_delete__failed": "The universe could not be deleted.",
    "setup__confirmation_unavailable": "The confirmation prompt could not be posted, the setup was not started.",
    "create_universe__universe_successfully_created": "The universe has been created and this server set up.",
    "create_universe__universe_limit_reached": "You cannot create more universes.",
    "create_universe__already_exist_for_this_server": "This server already belongs to a universe.",
    "check_universe_ownership__universe_not_found": "This universe does not exist or this server is not part of it.",
    "check_universe_ownership__not_owner": "Only the creator of the universe can do this.",
    "create_place__success": "The place has been created.",
    "create_place__server_not_found": "This server is not linked to any universe.",
    "create_place__database_not_found": "The place could not be saved.",
    "create_place__role_not_created": "The role of the place could not be created.",
    "create_place__rollback_complete": "The place could not be created, everything was undone.",
    "create_place__place_one_not_found": "The first place is not a place of this universe.",
    "create_place__place_two_not_found": "The second place is not a place of this universe.",
    "create_road__success": "The road has been created.",
    "create_road__server_not_found": "This server is not linked to any universe.",
    "create_road__database_error": "The places could not be read.",
    "create_road__role_creation_failed": "The role of the road could not be created.",
    "create_road__create_channel_failed_rollback_success": "The road channel could not be created, everything was undone.",
    "create_road__insert_road_failed_rollback_success": "The road could not be saved, everything was undone.",
}


class Translator:
    """Resolves localisation keys, falling back to the key itself."""

    def __init__(self, overrides: Optional[Mapping[str, str]] = None) -> None:
        self._catalog: Dict[str, str] = dict(DEFAULT_CATALOG)
        if overrides:
            self._catalog.update(overrides)

    @classmethod
    def from_file(cls, path: Path) -> "Translator":
        try:
            with Path(path).open("r", encoding="utf-8") as handle:
                overrides = json.load(handle)
        except (OSError, ValueError) as exc:
            raise ConfigurationError(f"Could not load locale file {path}: {exc}") from exc
        if not isinstance(overrides, dict):
            raise ConfigurationError(f"Locale file {path} must contain a JSON object.")
        return cls({str(key): str(value) for key, value in overrides.items()})

    def __call__(self, key: str) -> str:
        try:
            return self._catalog[key]
        except KeyError:
            logger.warning(f"Unknown translation key `{key}`")
            return key
