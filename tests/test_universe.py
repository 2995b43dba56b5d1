"""Tests for creating, linking and deleting universes."""

import pytest

from rpbot.errors import (
    ServerAlreadyLinked,
    ServerLimitReached,
    StoreError,
    UniverseAlreadyExists,
    UniverseLimitReached,
    UniverseNotFound,
    UniverseNotOwned,
)
from rpbot.models import ChannelKind, Place, ResourceKind, ResourceRef, Road
from rpbot.orchestrator import SetupMode, SetupOrchestrator
from rpbot.store import InMemoryConfigStore, InMemoryUniverseStore
from rpbot.universe import create_universe, delete_universe, link_server

from conftest import CREATOR_ID, OWNER_GROUP_ID, SERVER_ID

FOREIGN_SERVER_ID = 777


class FailingInsertStore(InMemoryConfigStore):
    async def insert(self, config):
        raise StoreError("Injected insert failure")


class TestCreateUniverse:

    @pytest.mark.asyncio
    async def test_universe_and_server_record_are_created(self):
        store = InMemoryConfigStore()
        universes = InMemoryUniverseStore()

        universe, config = await create_universe(store, universes, SERVER_ID, CREATOR_ID, "Aerth")

        assert universe.universe_id is not None
        assert universe.global_time_modifier == 100
        assert universe.creation_timestamp > 0
        assert await universes.get_universe(universe.universe_id) == universe
        assert config.owner_group_id == universe.universe_id
        assert await store.get_by_server_id(SERVER_ID) == config

    @pytest.mark.asyncio
    async def test_creator_limit(self):
        store = InMemoryConfigStore()
        universes = InMemoryUniverseStore()
        await create_universe(store, universes, 1, CREATOR_ID, "One")
        await create_universe(store, universes, 2, CREATOR_ID, "Two")

        with pytest.raises(UniverseLimitReached):
            await create_universe(store, universes, 3, CREATOR_ID, "Three")

        assert await universes.count_universes_by_creator(CREATOR_ID) == 2
        assert await store.get_by_server_id(3) is None

    @pytest.mark.asyncio
    async def test_linked_server_cannot_found_a_second_universe(self, store):
        universes = InMemoryUniverseStore()

        with pytest.raises(UniverseAlreadyExists) as excinfo:
            await create_universe(store, universes, SERVER_ID, CREATOR_ID, "Aerth")

        assert excinfo.value.token == "create_universe__already_exist_for_this_server"
        assert await universes.count_universes_by_creator(CREATOR_ID) == 0

    @pytest.mark.asyncio
    async def test_failed_server_record_removes_the_universe(self):
        universes = InMemoryUniverseStore()

        with pytest.raises(StoreError):
            await create_universe(FailingInsertStore(), universes, SERVER_ID, CREATOR_ID, "Aerth")

        assert await universes.count_universes_by_creator(CREATOR_ID) == 0


class TestLinkServer:

    @pytest.mark.asyncio
    async def test_link_creates_empty_record(self, universes):
        store = InMemoryConfigStore()

        config = await link_server(store, universes, OWNER_GROUP_ID, SERVER_ID, CREATOR_ID)

        assert config.record_id is not None
        assert not config.has_any_reference()
        assert await store.get_by_server_id(SERVER_ID) == config

    @pytest.mark.asyncio
    async def test_universe_must_exist(self):
        store = InMemoryConfigStore()

        with pytest.raises(UniverseNotFound):
            await link_server(store, InMemoryUniverseStore(), "ghost", SERVER_ID, CREATOR_ID)

        assert await store.get_by_server_id(SERVER_ID) is None

    @pytest.mark.asyncio
    async def test_only_the_creator_can_link(self, universes):
        store = InMemoryConfigStore()

        with pytest.raises(UniverseNotOwned):
            await link_server(store, universes, OWNER_GROUP_ID, SERVER_ID, CREATOR_ID + 1)

        assert await store.get_by_server_id(SERVER_ID) is None

    @pytest.mark.asyncio
    async def test_server_can_only_be_linked_once(self, store, universes):
        with pytest.raises(ServerAlreadyLinked) as excinfo:
            await link_server(store, universes, OWNER_GROUP_ID, SERVER_ID, CREATOR_ID)

        assert excinfo.value.token == "add_server_to_universe__already_bind"

    @pytest.mark.asyncio
    async def test_universe_server_limit(self, universes):
        store = InMemoryConfigStore()
        await link_server(store, universes, OWNER_GROUP_ID, 1, CREATOR_ID)
        await link_server(store, universes, OWNER_GROUP_ID, 2, CREATOR_ID)

        with pytest.raises(ServerLimitReached):
            await link_server(store, universes, OWNER_GROUP_ID, 3, CREATOR_ID)

        assert await store.get_by_server_id(3) is None


class TestDeleteUniverse:

    @pytest.mark.asyncio
    async def test_resources_and_records_are_removed(self, api, store, config, universes):
        role = api.add_role("Admin")
        category = await api.create_channel(SERVER_ID, "Roads", ChannelKind.CATEGORY, 0)
        config.admin_role_id = role.ref
        config.road_category_id = category.ref
        await store.update(config)

        failures = await delete_universe(
            api, store, universes, OWNER_GROUP_ID, SERVER_ID, CREATOR_ID
        )

        assert failures == []
        assert api.deleted_roles == [role.id]
        assert api.deleted_channels == [category.id]
        assert await store.get_by_server_id(SERVER_ID) is None
        assert await universes.get_universe(OWNER_GROUP_ID) is None

    @pytest.mark.asyncio
    async def test_places_and_roads_are_removed(self, api, store, universes):
        place_role = api.add_role("Harbour")
        place_category = await api.create_channel(SERVER_ID, "Harbour", ChannelKind.CATEGORY, 0)
        road_role = api.add_role("Harbour-Forest")
        road_channel = await api.create_channel(SERVER_ID, "Harbour-Forest", ChannelKind.TEXT, 0)
        await universes.insert_place(
            Place(OWNER_GROUP_ID, SERVER_ID, place_category.id, place_role.id, "Harbour")
        )
        await universes.insert_road(
            Road(OWNER_GROUP_ID, SERVER_ID, road_role.id, road_channel.id, "p1", "p2", 3)
        )

        await delete_universe(api, store, universes, OWNER_GROUP_ID, SERVER_ID, CREATOR_ID)

        assert sorted(api.deleted_roles) == sorted([place_role.id, road_role.id])
        assert sorted(api.deleted_channels) == sorted([place_category.id, road_channel.id])
        assert await universes.list_places(OWNER_GROUP_ID) == []
        assert await universes.list_roads(OWNER_GROUP_ID) == []

    @pytest.mark.asyncio
    async def test_delete_failures_are_returned(self, api, store, config, universes):
        config.admin_role_id = api.add_role("Admin").ref
        config.log_channel_id = ResourceRef(31337, ResourceKind.CHANNEL)
        await store.update(config)
        api.fail("delete_role")

        failures = await delete_universe(
            api, store, universes, OWNER_GROUP_ID, SERVER_ID, CREATOR_ID
        )

        assert [failure.field for failure in failures] == ["admin_role_id"]
        assert await store.get_by_server_id(SERVER_ID) is None

    @pytest.mark.asyncio
    async def test_foreign_server_cannot_delete_a_provisioned_universe(
        self, api, store, gate, universes
    ):
        """A server outside the universe gets refused before anything is touched."""
        orchestrator = SetupOrchestrator(api, store, gate)
        await orchestrator.run(SERVER_ID, CREATOR_ID, 1, SetupMode.PARTIAL)
        provisioned = await store.get_by_server_id(SERVER_ID)

        with pytest.raises(UniverseNotFound) as excinfo:
            await delete_universe(
                api, store, universes, OWNER_GROUP_ID, FOREIGN_SERVER_ID, CREATOR_ID
            )

        assert excinfo.value.token == "check_universe_ownership__universe_not_found"
        assert api.deleted_roles == []
        assert api.deleted_channels == []
        assert await store.get_by_server_id(SERVER_ID) == provisioned
        assert await universes.get_universe(OWNER_GROUP_ID) is not None

    @pytest.mark.asyncio
    async def test_only_the_creator_can_delete(self, api, store, config, universes):
        config.admin_role_id = api.add_role("Admin").ref
        await store.update(config)

        with pytest.raises(UniverseNotOwned):
            await delete_universe(
                api, store, universes, OWNER_GROUP_ID, SERVER_ID, CREATOR_ID + 1
            )

        assert api.deleted_roles == []
        assert (await store.get_by_server_id(SERVER_ID)).admin_role_id == config.admin_role_id
