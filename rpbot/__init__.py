"""Role-play Discord server provisioning bot package."""

from .config import BotConfig, WebhookConfig
from .models import Place, ResourceRef, Road, ServerConfig, Universe
from .orchestrator import SetupMode, SetupOrchestrator
from .store import (
    ConfigStore,
    InMemoryConfigStore,
    InMemoryUniverseStore,
    MongoStore,
    UniverseStore,
)
from .cli import collect_bot_configuration

__all__ = [
    "BotConfig",
    "WebhookConfig",
    "ResourceRef",
    "ServerConfig",
    "Universe",
    "Place",
    "Road",
    "SetupMode",
    "SetupOrchestrator",
    "ConfigStore",
    "InMemoryConfigStore",
    "UniverseStore",
    "InMemoryUniverseStore",
    "MongoStore",
    "collect_bot_configuration",
]
