from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

import discord

from .models import ChannelKind, Resource
from .permissions import Overwrite

Positions = Sequence[Tuple[int, int]]


class ResourceAPI(ABC):
    """Operations the provisioning engine needs from the platform.

    Every method either returns or raises ``ResourceAPIError``
    (``ResourceNotFoundError`` for missing resources). Nothing is retried.
    """

    @abstractmethod
    async def create_role(
        self, server_id: int, name: str, permissions: discord.Permissions
    ) -> Resource:
        ...

    @abstractmethod
    async def get_role(self, server_id: int, role_id: int) -> Resource:
        ...

    @abstractmethod
    async def delete_role(self, server_id: int, role_id: int) -> None:
        ...

    @abstractmethod
    async def create_channel(
        self,
        server_id: int,
        name: str,
        kind: ChannelKind,
        position: int,
        overwrites: Sequence[Overwrite] = (),
        parent_id: Optional[int] = None,
    ) -> Resource:
        ...

    @abstractmethod
    async def get_channel(self, channel_id: int) -> Resource:
        ...

    @abstractmethod
    async def delete_channel(self, channel_id: int) -> None:
        ...

    @abstractmethod
    async def reorder_roles(self, server_id: int, positions: Positions) -> None:
        ...

    @abstractmethod
    async def reorder_channels(self, server_id: int, positions: Positions) -> None:
        ...

    @abstractmethod
    async def list_roles(self, server_id: int) -> List[Resource]:
        ...

    @abstractmethod
    async def list_channels(self, server_id: int) -> List[Resource]:
        ...

    @abstractmethod
    async def get_everyone_role(self, server_id: int) -> Resource:
        ...

    @abstractmethod
    async def get_bot_top_role(self, server_id: int) -> Resource:
        ...
