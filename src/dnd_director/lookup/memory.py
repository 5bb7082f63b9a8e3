"""Campaign memory: save by kind, keyword search across entities and events."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Iterable

from dnd_director.core.constants import DEFAULT_MEMORY_RESULTS, MAX_MEMORY_RESULTS
from dnd_director.core.logging import get_logger
from dnd_director.lookup.scoring import matches, score_relevance
from dnd_director.models.enums import MemoryKind
from dnd_director.models.memory import (
    MemoryEvent,
    QuestMemory,
    SecretMemory,
    StoredMemory,
    parse_memory_entity,
)
from dnd_director.storage.database import CampaignStore


logger = get_logger(__name__)

_ENTITY_KINDS = frozenset(MemoryKind) - {MemoryKind.EVENT}


@dataclass(frozen=True)
class MemoryMatch:
    memory: StoredMemory
    relevance: int

    def to_dict(self) -> dict[str, Any]:
        memory = self.memory
        return {
            "type": str(memory.kind),
            "name": memory.name,
            "description": memory.description,
            "importance": memory.importance,
            "tags": memory.tags,
            **memory.attributes,
            "relevance": self.relevance,
        }


@dataclass(frozen=True)
class SavedMemory:
    """What a save did: inserted a record, or flipped an existing quest/secret."""

    kind: MemoryKind
    name: str
    record_id: int
    created: bool


class MemoryLookup:
    """Read/write access to a campaign's memory.

    Entities are append-only; saving a quest or secret whose name already
    exists flips its status (when one is given) instead of creating a
    duplicate. Events go to the campaign log.
    """

    def __init__(self, store: CampaignStore) -> None:
        self.store = store

    async def save(
        self,
        campaign_id: str,
        kind: MemoryKind | str,
        data: dict[str, Any],
        *,
        round_number: int | None = None,
    ) -> SavedMemory:
        """Validate ``data`` for ``kind`` and persist it.

        Raises:
            pydantic.ValidationError: If the data does not fit the kind.
        """
        kind = MemoryKind(kind)

        if kind == MemoryKind.EVENT:
            event = MemoryEvent.model_validate(data)
            log_id = await asyncio.to_thread(
                self.store.add_event, campaign_id, event, round_number=round_number
            )
            return SavedMemory(kind=kind, name=event.name or event.description[:60], record_id=log_id, created=True)

        entity = parse_memory_entity(kind, data)

        if isinstance(entity, (QuestMemory, SecretMemory)):
            existing = await asyncio.to_thread(self.store.find_entity, campaign_id, kind, entity.name)
            if existing is not None:
                flip_key = "status" if isinstance(entity, QuestMemory) else "revealed"
                if data.get(flip_key) is None:
                    # Defaults must not overwrite a stored status
                    logger.info(
                        "Memory already recorded, left unchanged",
                        campaign_id=campaign_id,
                        kind=str(kind),
                        name=existing.name,
                    )
                    return SavedMemory(kind=kind, name=existing.name, record_id=existing.record_id, created=False)

                flip = (
                    {"status": str(entity.status)}
                    if isinstance(entity, QuestMemory)
                    else {"revealed": entity.revealed}
                )
                updated = await asyncio.to_thread(self.store.update_entity_attributes, existing.record_id, flip)
                logger.info("Memory status updated", campaign_id=campaign_id, kind=str(kind), name=entity.name, **flip)
                return SavedMemory(kind=kind, name=updated.name, record_id=updated.record_id, created=False)

        stored = await asyncio.to_thread(self.store.add_entity, campaign_id, entity)
        logger.info("Memory saved", campaign_id=campaign_id, kind=str(kind), name=stored.name)
        return SavedMemory(kind=kind, name=stored.name, record_id=stored.record_id, created=True)

    async def search(
        self,
        campaign_id: str,
        query: str,
        *,
        kinds: Iterable[MemoryKind | str] | None = None,
        limit: int = DEFAULT_MEMORY_RESULTS,
    ) -> list[MemoryMatch]:
        """Keyword search across entities and events, merged and ranked.

        Args:
            campaign_id: Campaign to search.
            query: Search text, matched against name, description and tags.
            kinds: Restrict to these kinds; include ``event`` to search the log.
            limit: Maximum results, clamped to 1..10.

        Returns:
            Matches sorted by relevance, then importance, then recency.
        """
        wanted = {MemoryKind(k) for k in kinds} if kinds is not None else set(MemoryKind)
        entity_kinds = wanted & _ENTITY_KINDS
        limit = max(1, min(limit, MAX_MEMORY_RESULTS))

        candidates: list[StoredMemory] = []
        if entity_kinds:
            candidates.extend(
                await asyncio.to_thread(self.store.list_entities, campaign_id, kinds=entity_kinds)
            )
        if MemoryKind.EVENT in wanted:
            candidates.extend(await asyncio.to_thread(self.store.list_events, campaign_id))

        found = [
            MemoryMatch(memory=m, relevance=score_relevance(m.name, m.description, query))
            for m in candidates
            if matches(query, m.name, m.description, *m.tags)
        ]
        found.sort(
            key=lambda match: (match.relevance, match.memory.importance, match.memory.created_at),
            reverse=True,
        )

        logger.debug("Memory search", campaign_id=campaign_id, query=query, hits=len(found))
        return found[:limit]


__all__ = ["MemoryMatch", "SavedMemory", "MemoryLookup"]
