from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .errors import ResourceNotFoundError
from .models import ResourceKind, ResourceRef, ServerConfig
from .resource_api import ResourceAPI

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RollbackFailure:
    field: str
    ref: ResourceRef
    error: Exception


async def _delete(api: ResourceAPI, server_id: int, ref: ResourceRef) -> None:
    if ref.kind is ResourceKind.ROLE:
        await api.delete_role(server_id, ref.remote_id)
    else:
        await api.delete_channel(ref.remote_id)


async def rollback(
    api: ResourceAPI, config: ServerConfig, snapshot: ServerConfig
) -> List[RollbackFailure]:
    """Undo every reference that differs from ``snapshot``.

    The current resource of each differing field is deleted and the field
    reverts to the snapshot value. Deletes run concurrently and failures are
    only logged and returned.
    """
    pending: List[Tuple[str, ResourceRef]] = []
    for name, current in config.references():
        baseline = getattr(snapshot, name)
        if current == baseline:
            continue
        if current is not None:
            pending.append((name, current))
        setattr(config, name, baseline)

    if not pending:
        return []

    logger.warning(
        f"Rolling back {len(pending)} resource(s) on server {config.server_id} "
        f"(owner_group_id={config.owner_group_id})"
    )
    return await delete_resources(api, config.server_id, pending, config.owner_group_id)


async def delete_resources(
    api: ResourceAPI,
    server_id: int,
    pending: Sequence[Tuple[str, ResourceRef]],
    owner_group_id: str,
) -> List[RollbackFailure]:
    """Delete every labelled resource concurrently, returning the ones left behind."""
    results = await asyncio.gather(
        *(_delete(api, server_id, ref) for _, ref in pending),
        return_exceptions=True,
    )

    failures: List[RollbackFailure] = []
    for (name, ref), result in zip(pending, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            if isinstance(result, ResourceNotFoundError):
                logger.info(f"Server {server_id}: {name} ({ref.remote_id}) was already gone")
                continue
            logger.error(
                f"Rollback could not delete {ref.kind.value} {ref.remote_id}, manual cleanup "
                f"required. owner_group_id={owner_group_id} "
                f"server_id={server_id} field={name}: {result}"
            )
            failures.append(RollbackFailure(field=name, ref=ref, error=result))
    return failures
