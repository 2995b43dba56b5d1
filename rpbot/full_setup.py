from __future__ import annotations

from .complementary_setup import complementary_setup
from .context import SetupContext
from .models import ServerConfig
from .partial_setup import partial_setup
from .snapshot import take_snapshot


async def full_setup(ctx: SetupContext, config: ServerConfig, snapshot: ServerConfig) -> str:
    """Run both phases.

    The complementary phase rolls back against a snapshot taken after the
    partial phase committed, so its failures never undo the roles.
    """
    await partial_setup(ctx, config, snapshot)
    refreshed = await take_snapshot(ctx.api, config)
    return await complementary_setup(ctx, config, refreshed)
