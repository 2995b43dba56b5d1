from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union

from .errors import ResourceAPIError, ResourceCreationError
from .models import Resource, ResourceRef, ServerConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Existing:
    """The stored reference still points at a live resource."""

    resource: Resource


@dataclass(frozen=True, slots=True)
class Created:
    """A new resource was created because none was stored or it vanished."""

    resource: Resource


Resolved = Union[Existing, Created]


async def resolve(
    stored: Optional[ResourceRef],
    fetch: Callable[[int], Awaitable[Resource]],
    create: Callable[[], Awaitable[Resource]],
    *,
    name: str,
) -> Resolved:
    """Fetch the resource behind ``stored`` or create a fresh one."""
    if stored is not None:
        try:
            return Existing(await fetch(stored.remote_id))
        except ResourceAPIError as exc:
            logger.info(f"Stored {name} ({stored.remote_id}) is gone, recreating it: {exc}")

    try:
        return Created(await create())
    except ResourceAPIError as exc:
        raise ResourceCreationError(name) from exc


def record(config: ServerConfig, field_name: str, resolved: Resolved) -> Resource:
    """Write the resolved reference onto ``config`` and return the resource."""
    resource = resolved.resource
    if isinstance(resolved, Created):
        setattr(config, field_name, resource.ref)
    return resource
