from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple


class ResourceKind(str, Enum):
    ROLE = "role"
    CHANNEL = "channel"
    CATEGORY = "category"


class ChannelKind(str, Enum):
    TEXT = "text"
    FORUM = "forum"
    CATEGORY = "category"

    @property
    def resource_kind(self) -> ResourceKind:
        if self is ChannelKind.CATEGORY:
            return ResourceKind.CATEGORY
        return ResourceKind.CHANNEL


@dataclass(frozen=True, slots=True)
class ResourceRef:
    """Pointer to a live resource. Two refs are equal when their ids are."""

    remote_id: int
    kind: ResourceKind = field(compare=False)

    def to_document(self) -> Dict[str, str]:
        return {"id": str(self.remote_id), "kind": self.kind.value}

    @classmethod
    def from_document(cls, document: Optional[Dict[str, Any]]) -> Optional["ResourceRef"]:
        if not document:
            return None
        return cls(remote_id=int(document["id"]), kind=ResourceKind(document["kind"]))


@dataclass(slots=True)
class Resource:
    """A role, channel or category as returned by the resource API."""

    id: int
    name: str
    kind: ResourceKind
    position: int = 0

    @property
    def ref(self) -> ResourceRef:
        return ResourceRef(remote_id=self.id, kind=self.kind)


ROLE_FIELDS: Tuple[str, ...] = (
    "admin_role_id",
    "moderator_role_id",
    "spectator_role_id",
    "player_role_id",
)

CATEGORY_FIELDS: Tuple[str, ...] = (
    "admin_category_id",
    "nrp_category_id",
    "rp_category_id",
    "road_category_id",
)

CHANNEL_FIELDS: Tuple[str, ...] = (
    "log_channel_id",
    "commands_channel_id",
    "moderation_channel_id",
    "nrp_general_channel_id",
    "rp_character_channel_id",
    "rp_wiki_channel_id",
)

REFERENCE_FIELDS: Tuple[str, ...] = ROLE_FIELDS + CATEGORY_FIELDS + CHANNEL_FIELDS


@dataclass(slots=True)
class ServerConfig:
    """Provisioning record of one Discord server linked to a universe."""

    owner_group_id: str
    server_id: int
    record_id: Optional[str] = None
    admin_role_id: Optional[ResourceRef] = None
    moderator_role_id: Optional[ResourceRef] = None
    spectator_role_id: Optional[ResourceRef] = None
    player_role_id: Optional[ResourceRef] = None
    admin_category_id: Optional[ResourceRef] = None
    nrp_category_id: Optional[ResourceRef] = None
    rp_category_id: Optional[ResourceRef] = None
    road_category_id: Optional[ResourceRef] = None
    log_channel_id: Optional[ResourceRef] = None
    commands_channel_id: Optional[ResourceRef] = None
    moderation_channel_id: Optional[ResourceRef] = None
    nrp_general_channel_id: Optional[ResourceRef] = None
    rp_character_channel_id: Optional[ResourceRef] = None
    rp_wiki_channel_id: Optional[ResourceRef] = None

    def references(self) -> Iterator[Tuple[str, Optional[ResourceRef]]]:
        for name in REFERENCE_FIELDS:
            yield name, getattr(self, name)

    def has_any_reference(self) -> bool:
        return any(ref is not None for _, ref in self.references())

    def copy(self) -> "ServerConfig":
        return dataclasses.replace(self)

    def to_document(self) -> Dict[str, Any]:
        document: Dict[str, Any] = {
            "_id": self.record_id,
            "owner_group_id": self.owner_group_id,
            "server_id": str(self.server_id),
        }
        for name, ref in self.references():
            document[name] = ref.to_document() if ref is not None else None
        return document

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "ServerConfig":
        refs = {name: ResourceRef.from_document(document.get(name)) for name in REFERENCE_FIELDS}
        return cls(
            owner_group_id=document["owner_group_id"],
            server_id=int(document["server_id"]),
            record_id=document.get("_id"),
            **refs,
        )


DEFAULT_TIME_MODIFIER = 100


@dataclass(slots=True)
class Universe:
    """A group of linked servers owned by the member who created it."""

    name: str
    creator_id: int
    universe_id: Optional[str] = None
    global_time_modifier: int = DEFAULT_TIME_MODIFIER
    creation_timestamp: int = 0

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": self.universe_id,
            "name": self.name,
            "creator_id": str(self.creator_id),
            "global_time_modifier": str(self.global_time_modifier),
            "creation_timestamp": str(self.creation_timestamp),
        }

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Universe":
        return cls(
            name=document["name"],
            creator_id=int(document["creator_id"]),
            universe_id=document.get("_id"),
            global_time_modifier=int(document.get("global_time_modifier", DEFAULT_TIME_MODIFIER)),
            creation_timestamp=int(document.get("creation_timestamp", 0)),
        )


@dataclass(slots=True)
class Place:
    """A location of a universe: one category guarded by its own role."""

    universe_id: str
    server_id: int
    category_id: int
    role_id: int
    name: str
    record_id: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": self.record_id,
            "universe_id": self.universe_id,
            "server_id": str(self.server_id),
            "category_id": str(self.category_id),
            "role": str(self.role_id),
            "name": self.name,
        }

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Place":
        return cls(
            universe_id=document["universe_id"],
            server_id=int(document["server_id"]),
            category_id=int(document["category_id"]),
            role_id=int(document["role"]),
            name=document["name"],
            record_id=document.get("_id"),
        )


@dataclass(slots=True)
class Road:
    """A channel joining two places, travelled in ``distance`` units."""

    universe_id: str
    server_id: int
    role_id: int
    channel_id: int
    place_one_id: str
    place_two_id: str
    distance: int
    record_id: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": self.record_id,
            "universe_id": self.universe_id,
            "server_id": str(self.server_id),
            "role_id": str(self.role_id),
            "channel_id": str(self.channel_id),
            "place_one_id": self.place_one_id,
            "place_two_id": self.place_two_id,
            "distance": str(self.distance),
        }

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Road":
        return cls(
            universe_id=document["universe_id"],
            server_id=int(document["server_id"]),
            role_id=int(document["role_id"]),
            channel_id=int(document["channel_id"]),
            place_one_id=document["place_one_id"],
            place_two_id=document["place_two_id"],
            distance=int(document["distance"]),
            record_id=document.get("_id"),
        )
