"""
Shared pytest fixtures for the provisioning engine tests.

Provides an in-memory ResourceAPI with failure injection, a counting
config store and a scripted confirmation gate.
"""

from collections import Counter
from typing import Dict, List, Optional, Sequence, Set, Tuple

import discord
import pytest

from rpbot.confirmation import ConfirmationChoice, ConfirmationGate
from rpbot.context import SetupContext
from rpbot.errors import ResourceAPIError, ResourceNotFoundError, StoreError
from rpbot.models import ChannelKind, Resource, ResourceKind, ServerConfig, Universe
from rpbot.permissions import Overwrite
from rpbot.resource_api import Positions, ResourceAPI
from rpbot.store import InMemoryConfigStore, InMemoryUniverseStore

SERVER_ID = 424242
OWNER_GROUP_ID = "universe-1"
RECORD_ID = "record-1"
BOT_ROLE_ID = 900
BOOSTER_ROLE_ID = 901
WELCOME_CHANNEL_ID = 950
CREATOR_ID = 555


# =============================================================================
# FAKE PLATFORM
# =============================================================================

class FakeResourceAPI(ResourceAPI):
    """
    In-memory server with one bot role, one unmanaged role and one
    unmanaged text channel.

    Failures are injected per method name, either on every call or on
    specific 1-based call numbers.
    """

    def __init__(self, server_id: int = SERVER_ID) -> None:
        self.server_id = server_id
        self.roles: Dict[int, Resource] = {
            server_id: Resource(server_id, "@everyone", ResourceKind.ROLE, 0),
            BOT_ROLE_ID: Resource(BOT_ROLE_ID, "RPBot", ResourceKind.ROLE, 1),
            BOOSTER_ROLE_ID: Resource(BOOSTER_ROLE_ID, "Booster", ResourceKind.ROLE, 2),
        }
        self.channels: Dict[int, Resource] = {
            WELCOME_CHANNEL_ID: Resource(WELCOME_CHANNEL_ID, "welcome", ResourceKind.CHANNEL, 0),
        }
        self.calls: Counter = Counter()
        self.failures: Dict[str, Optional[Set[int]]] = {}
        self.created_roles: List[Tuple[str, discord.Permissions]] = []
        self.created_channels: List[Dict[str, object]] = []
        self.deleted_roles: List[int] = []
        self.deleted_channels: List[int] = []
        self.role_reorders: List[List[Tuple[int, int]]] = []
        self.channel_reorders: List[List[Tuple[int, int]]] = []
        self._next_id = 1000

    def fail(self, method: str, *call_numbers: int) -> None:
        """Make ``method`` raise on the given calls, or on every call if none given."""
        self.failures[method] = set(call_numbers) if call_numbers else None

    def add_role(self, name: str) -> Resource:
        role = Resource(self._allocate(), name, ResourceKind.ROLE, len(self.roles))
        self.roles[role.id] = role
        return role

    def _allocate(self) -> int:
        resource_id = self._next_id
        self._next_id += 1
        return resource_id

    def _check(self, method: str) -> None:
        self.calls[method] += 1
        if method not in self.failures:
            return
        numbers = self.failures[method]
        if numbers is None or self.calls[method] in numbers:
            raise ResourceAPIError(f"Injected failure in {method}", status=500)

    async def create_role(self, server_id: int, name: str, permissions: discord.Permissions) -> Resource:
        self._check("create_role")
        role = Resource(self._allocate(), name, ResourceKind.ROLE, 1)
        self.roles[role.id] = role
        self.created_roles.append((name, permissions))
        return role

    async def get_role(self, server_id: int, role_id: int) -> Resource:
        self._check("get_role")
        if role_id not in self.roles:
            raise ResourceNotFoundError(f"Role {role_id} not found", status=404)
        return self.roles[role_id]

    async def delete_role(self, server_id: int, role_id: int) -> None:
        self._check("delete_role")
        if role_id not in self.roles:
            raise ResourceNotFoundError(f"Role {role_id} not found", status=404)
        del self.roles[role_id]
        self.deleted_roles.append(role_id)

    async def create_channel(
        self,
        server_id: int,
        name: str,
        kind: ChannelKind,
        position: int,
        overwrites: Sequence[Overwrite] = (),
        parent_id: Optional[int] = None,
    ) -> Resource:
        self._check("create_channel")
        channel = Resource(self._allocate(), name, kind.resource_kind, position)
        self.channels[channel.id] = channel
        self.created_channels.append(
            {
                "id": channel.id,
                "name": name,
                "kind": kind,
                "overwrites": list(overwrites),
                "parent_id": parent_id,
            }
        )
        return channel

    async def get_channel(self, channel_id: int) -> Resource:
        self._check("get_channel")
        if channel_id not in self.channels:
            raise ResourceNotFoundError(f"Channel {channel_id} not found", status=404)
        return self.channels[channel_id]

    async def delete_channel(self, channel_id: int) -> None:
        self._check("delete_channel")
        if channel_id not in self.channels:
            raise ResourceNotFoundError(f"Channel {channel_id} not found", status=404)
        del self.channels[channel_id]
        self.deleted_channels.append(channel_id)

    async def reorder_roles(self, server_id: int, positions: Positions) -> None:
        self._check("reorder_roles")
        self.role_reorders.append(list(positions))
        for role_id, position in positions:
            self.roles[role_id].position = position

    async def reorder_channels(self, server_id: int, positions: Positions) -> None:
        self._check("reorder_channels")
        self.channel_reorders.append(list(positions))
        for channel_id, position in positions:
            self.channels[channel_id].position = position

    async def list_roles(self, server_id: int) -> List[Resource]:
        self._check("list_roles")
        return list(self.roles.values())

    async def list_channels(self, server_id: int) -> List[Resource]:
        self._check("list_channels")
        return list(self.channels.values())

    async def get_everyone_role(self, server_id: int) -> Resource:
        self._check("get_everyone_role")
        return self.roles[server_id]

    async def get_bot_top_role(self, server_id: int) -> Resource:
        self._check("get_bot_top_role")
        return self.roles[BOT_ROLE_ID]


# =============================================================================
# STORE AND GATE
# =============================================================================

class CountingConfigStore(InMemoryConfigStore):
    """In-memory store counting updates, optionally failing all or some of them."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.updates = 0
        self.fail_updates = False
        self.failing_updates: Set[int] = set()

    async def update(self, config: ServerConfig) -> None:
        self.updates += 1
        if self.fail_updates or self.updates in self.failing_updates:
            raise StoreError("Injected store failure")
        await super().update(config)


class ScriptedGate(ConfirmationGate):
    """Answers every prompt with a fixed choice and records the questions."""

    def __init__(self, choice: ConfirmationChoice = ConfirmationChoice.CONTINUE) -> None:
        self.choice = choice
        self.asked: List[Tuple[int, int, float]] = []

    async def ask(self, user_id: int, channel_id: int, timeout: float) -> ConfirmationChoice:
        self.asked.append((user_id, channel_id, timeout))
        return self.choice


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def api() -> FakeResourceAPI:
    return FakeResourceAPI()


@pytest.fixture
def config() -> ServerConfig:
    """Freshly linked server, every reference empty."""
    return ServerConfig(owner_group_id=OWNER_GROUP_ID, server_id=SERVER_ID, record_id=RECORD_ID)


@pytest.fixture
def store(config: ServerConfig) -> CountingConfigStore:
    return CountingConfigStore({RECORD_ID: config.to_document()})


@pytest.fixture
def universes() -> InMemoryUniverseStore:
    """Universe of the linked server, created by CREATOR_ID."""
    universe = Universe(name="Aerth", creator_id=CREATOR_ID, universe_id=OWNER_GROUP_ID)
    return InMemoryUniverseStore({OWNER_GROUP_ID: universe.to_document()})


@pytest.fixture
def gate() -> ScriptedGate:
    return ScriptedGate()


@pytest.fixture
def ctx(api: FakeResourceAPI, store: CountingConfigStore) -> SetupContext:
    return SetupContext(api=api, store=store)
