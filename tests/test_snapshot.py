"""Tests for snapshot validation against live server state."""

import pytest

from rpbot.errors import ServerStateUnavailable
from rpbot.models import ResourceKind, ResourceRef
from rpbot.snapshot import take_snapshot

from conftest import BOOSTER_ROLE_ID, WELCOME_CHANNEL_ID


class TestTakeSnapshot:

    @pytest.mark.asyncio
    async def test_vanished_channel_is_nulled(self, api, config):
        """Only the reference to the missing channel becomes None."""
        config.admin_role_id = ResourceRef(BOOSTER_ROLE_ID, ResourceKind.ROLE)
        config.nrp_general_channel_id = ResourceRef(WELCOME_CHANNEL_ID, ResourceKind.CHANNEL)
        config.log_channel_id = ResourceRef(31337, ResourceKind.CHANNEL)

        snapshot = await take_snapshot(api, config)

        assert snapshot.log_channel_id is None
        assert snapshot.admin_role_id == config.admin_role_id
        assert snapshot.nrp_general_channel_id == config.nrp_general_channel_id

    @pytest.mark.asyncio
    async def test_caller_config_is_not_mutated(self, api, config):
        config.log_channel_id = ResourceRef(31337, ResourceKind.CHANNEL)

        await take_snapshot(api, config)

        assert config.log_channel_id == ResourceRef(31337, ResourceKind.CHANNEL)

    @pytest.mark.asyncio
    async def test_role_refs_are_checked_against_roles(self, api, config):
        """A role ref whose id only exists as a channel is still stale."""
        config.player_role_id = ResourceRef(WELCOME_CHANNEL_ID, ResourceKind.ROLE)

        snapshot = await take_snapshot(api, config)

        assert snapshot.player_role_id is None

    @pytest.mark.asyncio
    async def test_listing_failure_raises(self, api, config):
        api.fail("list_channels")

        with pytest.raises(ServerStateUnavailable) as excinfo:
            await take_snapshot(api, config)

        assert excinfo.value.token == "setup__server_state_unavailable"
