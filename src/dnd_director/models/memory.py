"""Campaign memory models.

Memory entities are a tagged union keyed on ``kind``. Input from the model
is validated once through ``MEMORY_ENTITY_ADAPTER``; everything downstream
works with the concrete classes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from dnd_director.models.enums import (
    BeatPriority,
    FocusArea,
    LocationType,
    MemoryKind,
    QuestStatus,
)


class MemoryEntityBase(BaseModel):
    """Shape shared by every memory entity kind.

    Attributes:
        name: Entity name, unique per campaign and kind for quests and secrets.
        description: What the party knows about it.
        importance: 1 (trivia) to 5 (campaign-defining).
        tags: Free-form search tags.
    """

    name: str = Field(min_length=1, max_length=200)
    description: str = ""
    importance: int = Field(default=3, ge=1, le=5)
    tags: list[str] = Field(default_factory=list)

    def attributes(self) -> dict[str, Any]:
        """Kind-specific fields, for storage alongside the shared shape."""
        shared = set(MemoryEntityBase.model_fields) | {"kind"}
        return self.model_dump(mode="json", exclude=shared)


class NpcMemory(MemoryEntityBase):
    kind: Literal["npc"] = "npc"
    personality: str | None = None
    relationships: list[str] = Field(default_factory=list)


class LocationMemory(MemoryEntityBase):
    kind: Literal["location"] = "location"
    location_type: LocationType | None = None


class QuestMemory(MemoryEntityBase):
    kind: Literal["quest"] = "quest"
    status: QuestStatus = QuestStatus.ACTIVE


class ItemMemory(MemoryEntityBase):
    kind: Literal["item"] = "item"
    item_type: str | None = None
    rarity: str | None = None


class SecretMemory(MemoryEntityBase):
    kind: Literal["secret"] = "secret"
    revealed: bool = False


MemoryEntity = Annotated[
    Union[NpcMemory, LocationMemory, QuestMemory, ItemMemory, SecretMemory],
    Field(discriminator="kind"),
]

MEMORY_ENTITY_ADAPTER: TypeAdapter[MemoryEntity] = TypeAdapter(MemoryEntity)


class MemoryEvent(BaseModel):
    """A notable happening. Log-only; never stored as an entity."""

    kind: Literal["event"] = "event"
    name: str | None = None
    description: str
    importance: int = Field(default=3, ge=1, le=5)
    tags: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=datetime.now)


class StoredMemory(BaseModel):
    """A memory entity or event as read back from the store."""

    record_id: int
    kind: MemoryKind
    name: str
    description: str
    importance: int = 3
    tags: list[str] = Field(default_factory=list)
    attributes: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class StoryBeat(BaseModel):
    """Planned narrative guidance for a future round. Advisory only."""

    round_number: int = Field(ge=1)
    beat_type: FocusArea = FocusArea.MAIN_PLOT
    description: str
    priority: BeatPriority = BeatPriority.MEDIUM
    prerequisites: list[str] = Field(default_factory=list)


def parse_memory_entity(kind: MemoryKind | str, data: dict[str, Any]) -> MemoryEntity:
    """Validate raw entity data for ``kind`` into its concrete model.

    Raises:
        pydantic.ValidationError: If the data does not fit the kind.
    """
    return MEMORY_ENTITY_ADAPTER.validate_python({**data, "kind": str(kind)})


__all__ = [
    "MemoryEntityBase",
    "NpcMemory",
    "LocationMemory",
    "QuestMemory",
    "ItemMemory",
    "SecretMemory",
    "MemoryEntity",
    "MEMORY_ENTITY_ADAPTER",
    "MemoryEvent",
    "StoredMemory",
    "StoryBeat",
    "parse_memory_entity",
]
