from __future__ import annotations

from typing import Optional


class RPBotError(Exception):
    """Base exception for the RPBot provisioning engine."""


class ConfigurationError(RPBotError):
    """Raised when the provided configuration is invalid."""


class ResourceAPIError(RPBotError):
    """Raised when an operation against Discord's API fails."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class ResourceNotFoundError(ResourceAPIError):
    """Raised when a referenced role or channel no longer exists."""


class NotificationError(RPBotError):
    """Raised when a setup notification cannot be delivered."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class StoreError(RPBotError):
    """Raised when the configuration store cannot complete a request."""


class DuplicateServerError(StoreError):
    """Raised when a second record is inserted for the same server."""


class ResourceCreationError(RPBotError):
    """Raised by the resolver when a resource could not be created."""

    def __init__(self, resource_name: str) -> None:
        super().__init__(f"Failed to create '{resource_name}'.")
        self.resource_name = resource_name


class SetupError(RPBotError):
    """A setup failure the command layer reports through ``token``."""

    token = "setup_server__failed"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.token)


class ServerNotFound(SetupError):
    token = "setup__server_not_found"


class ServerStateUnavailable(SetupError):
    token = "setup__server_state_unavailable"


class ReorderFailed(SetupError):
    token = "setup__reorder_went_wrong"


class PersistFailed(SetupError):
    token = "setup__server_update_failed"


class PartialSetupRequired(SetupError):
    token = "setup__partial_setup_required"


class ConfirmationTimeout(SetupError):
    token = "setup__server_already_setup_timeout"


class ServerAlreadyLinked(SetupError):
    token = "add_server_to_universe__already_bind"


class ServerLimitReached(SetupError):
    token = "exceed_limit_number_of_servers_per_universe"


class UniverseLimitReached(SetupError):
    token = "create_universe__universe_limit_reached"


class UniverseAlreadyExists(SetupError):
    token = "create_universe__already_exist_for_this_server"


class UniverseNotFound(SetupError):
    token = "check_universe_ownership__universe_not_found"


class UniverseNotOwned(SetupError):
    token = "check_universe_ownership__not_owner"


class ConfirmationUnavailable(SetupError):
    token = "setup__confirmation_unavailable"


class PlaceServerNotFound(SetupError):
    token = "create_place__server_not_found"


class PlaceRoleCreationFailed(SetupError):
    token = "create_place__role_not_created"


class PlaceCreationFailed(SetupError):
    token = "create_place__rollback_complete"


class RoadServerNotFound(SetupError):
    token = "create_road__server_not_found"


class RoadRoleCreationFailed(SetupError):
    token = "create_road__role_creation_failed"


class RoadChannelCreationFailed(SetupError):
    token = "create_road__create_channel_failed_rollback_success"


class RoadRecordFailed(SetupError):
    token = "create_road__insert_road_failed_rollback_success"


class _NamedResourceFailure(SetupError):
    template = "{name}"
    description = "Failed to create {name}."

    def __init__(self, name: str) -> None:
        self.name = name
        self.token = self.template.format(name=name)
        super().__init__(self.description.format(name=name))


class RoleCreationFailed(_NamedResourceFailure):
    template = "setup__{name}_role_not_created"


class CategoryCreationFailed(_NamedResourceFailure):
    template = "setup__{name}_category_not_created"


class ChannelCreationFailed(_NamedResourceFailure):
    template = "setup__{name}_channel_not_created"


class PlaceNotFound(_NamedResourceFailure):
    template = "create_place__place_{name}_not_found"
    description = "Place {name} is not registered in this universe."
