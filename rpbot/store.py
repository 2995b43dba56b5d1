from __future__ import annotations

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from pymongo import ASCENDING, AsyncMongoClient
from pymongo.errors import DuplicateKeyError, PyMongoError

from .errors import DuplicateServerError, StoreError
from .models import Place, Road, ServerConfig, Universe

logger = logging.getLogger(__name__)

UNIVERSE_COLLECTION = "universes"
SERVER_COLLECTION = "servers"
PLACE_COLLECTION = "places"
ROAD_COLLECTION = "roads"


def _new_record_id() -> str:
    return uuid.uuid4().hex


class ConfigStore(ABC):
    """Document store holding one ``ServerConfig`` per Discord server."""

    @abstractmethod
    async def get_by_server_id(self, server_id: int) -> Optional[ServerConfig]:
        ...

    @abstractmethod
    async def list_by_owner_group(self, owner_group_id: str) -> List[ServerConfig]:
        ...

    @abstractmethod
    async def insert(self, config: ServerConfig) -> str:
        ...

    @abstractmethod
    async def update(self, config: ServerConfig) -> None:
        ...

    @abstractmethod
    async def delete_by_owner_group(self, owner_group_id: str) -> int:
        ...


class UniverseStore(ABC):
    """Universes and the places and roads built inside them."""

    @abstractmethod
    async def get_universe(self, universe_id: str) -> Optional[Universe]:
        ...

    @abstractmethod
    async def count_universes_by_creator(self, creator_id: int) -> int:
        ...

    @abstractmethod
    async def insert_universe(self, universe: Universe) -> str:
        ...

    @abstractmethod
    async def delete_universe(self, universe_id: str) -> bool:
        ...

    @abstractmethod
    async def get_place_by_category(self, universe_id: str, category_id: int) -> Optional[Place]:
        ...

    @abstractmethod
    async def list_places(self, universe_id: str) -> List[Place]:
        ...

    @abstractmethod
    async def insert_place(self, place: Place) -> str:
        ...

    @abstractmethod
    async def list_roads(self, universe_id: str) -> List[Road]:
        ...

    @abstractmethod
    async def insert_road(self, road: Road) -> str:
        ...

    @abstractmethod
    async def delete_universe_data(self, universe_id: str) -> int:
        """Remove every place and road of the universe, returning how many."""


# =============================================================================
# IN-MEMORY
# =============================================================================

class InMemoryConfigStore(ConfigStore):
    """Store keeping serialised documents in a dict keyed by record id."""

    def __init__(self, documents: Optional[Dict[str, Dict[str, Any]]] = None) -> None:
        self._documents: Dict[str, Dict[str, Any]] = dict(documents or {})
        self._lock = asyncio.Lock()

    async def get_by_server_id(self, server_id: int) -> Optional[ServerConfig]:
        for document in self._documents.values():
            if int(document["server_id"]) == server_id:
                return ServerConfig.from_document(document)
        return None

    async def list_by_owner_group(self, owner_group_id: str) -> List[ServerConfig]:
        return [
            ServerConfig.from_document(document)
            for document in self._documents.values()
            if document["owner_group_id"] == owner_group_id
        ]

    async def insert(self, config: ServerConfig) -> str:
        async with self._lock:
            if any(int(doc["server_id"]) == config.server_id for doc in self._documents.values()):
                raise DuplicateServerError(
                    f"Server {config.server_id} already has a configuration record."
                )
            record_id = _new_record_id()
            config.record_id = record_id
            self._documents[record_id] = config.to_document()
        logger.info(f"Inserted configuration {record_id} for server {config.server_id}")
        return record_id

    async def update(self, config: ServerConfig) -> None:
        async with self._lock:
            if config.record_id is None or config.record_id not in self._documents:
                raise StoreError(f"No configuration record for server {config.server_id}.")
            self._documents[config.record_id] = config.to_document()

    async def delete_by_owner_group(self, owner_group_id: str) -> int:
        async with self._lock:
            kept = {
                record_id: document
                for record_id, document in self._documents.items()
                if document["owner_group_id"] != owner_group_id
            }
            removed = len(self._documents) - len(kept)
            self._documents = kept
        return removed


class InMemoryUniverseStore(UniverseStore):
    def __init__(self, universes: Optional[Dict[str, Dict[str, Any]]] = None) -> None:
        self._universes: Dict[str, Dict[str, Any]] = dict(universes or {})
        self._places: Dict[str, Dict[str, Any]] = {}
        self._roads: Dict[str, Dict[str, Any]] = {}

    async def get_universe(self, universe_id: str) -> Optional[Universe]:
        document = self._universes.get(universe_id)
        return Universe.from_document(document) if document else None

    async def count_universes_by_creator(self, creator_id: int) -> int:
        return sum(
            1 for document in self._universes.values() if document["creator_id"] == str(creator_id)
        )

    async def insert_universe(self, universe: Universe) -> str:
        universe.universe_id = _new_record_id()
        self._universes[universe.universe_id] = universe.to_document()
        return universe.universe_id

    async def delete_universe(self, universe_id: str) -> bool:
        return self._universes.pop(universe_id, None) is not None

    async def get_place_by_category(self, universe_id: str, category_id: int) -> Optional[Place]:
        for place in await self.list_places(universe_id):
            if place.category_id == category_id:
                return place
        return None

    async def list_places(self, universe_id: str) -> List[Place]:
        return [
            Place.from_document(document)
            for document in self._places.values()
            if document["universe_id"] == universe_id
        ]

    async def insert_place(self, place: Place) -> str:
        place.record_id = _new_record_id()
        self._places[place.record_id] = place.to_document()
        return place.record_id

    async def list_roads(self, universe_id: str) -> List[Road]:
        return [
            Road.from_document(document)
            for document in self._roads.values()
            if document["universe_id"] == universe_id
        ]

    async def insert_road(self, road: Road) -> str:
        road.record_id = _new_record_id()
        self._roads[road.record_id] = road.to_document()
        return road.record_id

    async def delete_universe_data(self, universe_id: str) -> int:
        removed = 0
        for collection in (self._places, self._roads):
            for record_id in [key for key, doc in collection.items() if doc["universe_id"] == universe_id]:
                del collection[record_id]
                removed += 1
        return removed


# =============================================================================
# MONGODB
# =============================================================================

@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except PyMongoError as exc:
        raise StoreError(f"MongoDB request failed while {action}: {exc}") from exc


class MongoStore(ConfigStore, UniverseStore):
    """Both stores on top of one MongoDB database, one collection per record type."""

    def __init__(self, database: Any, client: Optional[AsyncMongoClient] = None) -> None:
        self._client = client
        self._universes = database[UNIVERSE_COLLECTION]
        self._servers = database[SERVER_COLLECTION]
        self._places = database[PLACE_COLLECTION]
        self._roads = database[ROAD_COLLECTION]

    @classmethod
    def connect(cls, url: str, database_name: str) -> "MongoStore":
        client: AsyncMongoClient = AsyncMongoClient(url)
        return cls(client[database_name], client)

    async def ensure_indexes(self) -> None:
        with _store_errors("creating indexes"):
            await self._servers.create_index([("server_id", ASCENDING)], unique=True)
            await self._servers.create_index([("owner_group_id", ASCENDING)])
            await self._universes.create_index([("creator_id", ASCENDING)])
            await self._places.create_index(
                [("universe_id", ASCENDING), ("category_id", ASCENDING)], unique=True
            )
            await self._roads.create_index([("universe_id", ASCENDING)])
        logger.info("MongoDB indexes are in place")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()

    async def _find_all(self, collection: Any, query: Dict[str, Any]) -> List[Dict[str, Any]]:
        cursor = collection.find(query)
        return await cursor.to_list(None)

    async def get_by_server_id(self, server_id: int) -> Optional[ServerConfig]:
        with _store_errors(f"loading server {server_id}"):
            document = await self._servers.find_one({"server_id": str(server_id)})
        return ServerConfig.from_document(document) if document else None

    async def list_by_owner_group(self, owner_group_id: str) -> List[ServerConfig]:
        with _store_errors(f"listing servers of universe {owner_group_id}"):
            documents = await self._find_all(self._servers, {"owner_group_id": owner_group_id})
        return [ServerConfig.from_document(document) for document in documents]

    async def insert(self, config: ServerConfig) -> str:
        record_id = _new_record_id()
        document = config.to_document()
        document["_id"] = record_id
        try:
            await self._servers.insert_one(document)
        except DuplicateKeyError as exc:
            raise DuplicateServerError(
                f"Server {config.server_id} already has a configuration record."
            ) from exc
        except PyMongoError as exc:
            raise StoreError(f"MongoDB request failed while inserting server {config.server_id}: {exc}") from exc
        config.record_id = record_id
        logger.info(f"Inserted configuration {record_id} for server {config.server_id}")
        return record_id

    async def update(self, config: ServerConfig) -> None:
        if config.record_id is None:
            raise StoreError(f"No configuration record for server {config.server_id}.")
        with _store_errors(f"updating server {config.server_id}"):
            result = await self._servers.replace_one({"_id": config.record_id}, config.to_document())
        if result.matched_count == 0:
            raise StoreError(f"No configuration record for server {config.server_id}.")

    async def delete_by_owner_group(self, owner_group_id: str) -> int:
        with _store_errors(f"deleting servers of universe {owner_group_id}"):
            result = await self._servers.delete_many({"owner_group_id": owner_group_id})
        return result.deleted_count

    async def get_universe(self, universe_id: str) -> Optional[Universe]:
        with _store_errors(f"loading universe {universe_id}"):
            document = await self._universes.find_one({"_id": universe_id})
        return Universe.from_document(document) if document else None

    async def count_universes_by_creator(self, creator_id: int) -> int:
        with _store_errors(f"counting universes of {creator_id}"):
            return await self._universes.count_documents({"creator_id": str(creator_id)})

    async def insert_universe(self, universe: Universe) -> str:
        record_id = _new_record_id()
        document = universe.to_document()
        document["_id"] = record_id
        with _store_errors(f"inserting universe '{universe.name}'"):
            await self._universes.insert_one(document)
        universe.universe_id = record_id
        logger.info(f"Inserted universe {record_id} for creator {universe.creator_id}")
        return record_id

    async def delete_universe(self, universe_id: str) -> bool:
        with _store_errors(f"deleting universe {universe_id}"):
            result = await self._universes.delete_one({"_id": universe_id})
        return result.deleted_count > 0

    async def get_place_by_category(self, universe_id: str, category_id: int) -> Optional[Place]:
        with _store_errors(f"loading place {category_id}"):
            document = await self._places.find_one(
                {"universe_id": universe_id, "category_id": str(category_id)}
            )
        return Place.from_document(document) if document else None

    async def list_places(self, universe_id: str) -> List[Place]:
        with _store_errors(f"listing places of universe {universe_id}"):
            documents = await self._find_all(self._places, {"universe_id": universe_id})
        return [Place.from_document(document) for document in documents]

    async def insert_place(self, place: Place) -> str:
        record_id = _new_record_id()
        document = place.to_document()
        document["_id"] = record_id
        with _store_errors(f"inserting place '{place.name}'"):
            await self._places.insert_one(document)
        place.record_id = record_id
        return record_id

    async def list_roads(self, universe_id: str) -> List[Road]:
        with _store_errors(f"listing roads of universe {universe_id}"):
            documents = await self._find_all(self._roads, {"universe_id": universe_id})
        return [Road.from_document(document) for document in documents]

    async def insert_road(self, road: Road) -> str:
        record_id = _new_record_id()
        document = road.to_document()
        document["_id"] = record_id
        with _store_errors(f"inserting road {road.place_one_id}-{road.place_two_id}"):
            await self._roads.insert_one(document)
        road.record_id = record_id
        return record_id

    async def delete_universe_data(self, universe_id: str) -> int:
        with _store_errors(f"deleting places and roads of universe {universe_id}"):
            places = await self._places.delete_many({"universe_id": universe_id})
            roads = await self._roads.delete_many({"universe_id": universe_id})
        return places.deleted_count + roads.deleted_count
