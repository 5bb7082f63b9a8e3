"""Per-campaign broadcast of game events.

Subscribers get their own ``asyncio.Queue``; ``publish`` stamps each event
with a per-campaign sequence number and puts it on every open queue for that
campaign without awaiting, so one publisher's events arrive in the order
they were published.
"""

from __future__ import annotations

import asyncio
import itertools
from collections import defaultdict
from collections.abc import AsyncIterator
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from dnd_director.core.logging import get_logger

logger = get_logger(__name__)


class BroadcastType(StrEnum):
    """Kinds of events pushed to campaign participants."""

    NARRATION = "narration"
    DICE_ROLL = "dice_roll"
    ENCOUNTER_UPDATE = "encounter_update"
    TURN_UPDATE = "turn_update"
    PLAYER_STATUS = "player_status"
    ROUND_ADVANCED = "round_advanced"
    CHAPTER_SUMMARY = "chapter_summary"


class BroadcastEvent(BaseModel):
    """One event as delivered to subscribers."""

    type: BroadcastType
    data: dict[str, Any] = Field(default_factory=dict)
    campaign_id: str
    sequence: int
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


_CLOSED = object()


class Subscription:
    """A participant's view of one campaign's events.

    Iterate with ``async for``; iteration ends after ``close()``.
    """

    def __init__(self, bus: EventBus, campaign_id: str) -> None:
        self.campaign_id = campaign_id
        self._bus = bus
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self.closed = False

    def _deliver(self, event: BroadcastEvent) -> None:
        if not self.closed:
            self._queue.put_nowait(event)

    async def get(self) -> BroadcastEvent:
        """Wait for the next event. Raises ``StopAsyncIteration`` once closed and drained."""
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item

    def pending(self) -> list[BroadcastEvent]:
        """Take every event already queued, without waiting."""
        events = []
        while not self._queue.empty():
            item = self._queue.get_nowait()
            if item is _CLOSED:
                self._queue.put_nowait(_CLOSED)
                break
            events.append(item)
        return events

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._bus._unsubscribe(self)
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> AsyncIterator[BroadcastEvent]:
        return self

    async def __anext__(self) -> BroadcastEvent:
        return await self.get()


class EventBus:
    """Fan-out of campaign events to in-process subscribers."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Subscription]] = defaultdict(list)
        self._sequences: dict[str, itertools.count[int]] = defaultdict(lambda: itertools.count(1))

    def subscribe(self, campaign_id: str) -> Subscription:
        subscription = Subscription(self, campaign_id)
        self._subscribers[campaign_id].append(subscription)
        logger.debug("Subscribed to campaign events", campaign_id=campaign_id)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        subscribers = self._subscribers.get(subscription.campaign_id, [])
        if subscription in subscribers:
            subscribers.remove(subscription)
        if not subscribers:
            self._subscribers.pop(subscription.campaign_id, None)

    def subscriber_count(self, campaign_id: str) -> int:
        return len(self._subscribers.get(campaign_id, []))

    def publish(
        self,
        campaign_id: str,
        event_type: BroadcastType | str,
        data: dict[str, Any] | None = None,
    ) -> BroadcastEvent:
        """Stamp and deliver an event to every open subscription of a campaign.

        Returns:
            The delivered event, including its sequence number.
        """
        event = BroadcastEvent(
            type=BroadcastType(event_type),
            data=data or {},
            campaign_id=campaign_id,
            sequence=next(self._sequences[campaign_id]),
        )
        subscribers = list(self._subscribers.get(campaign_id, []))
        for subscription in subscribers:
            subscription._deliver(event)

        logger.debug(
            "Event published",
            campaign_id=campaign_id,
            event_type=str(event.type),
            sequence=event.sequence,
            subscribers=len(subscribers),
        )
        return event

    def close_campaign(self, campaign_id: str) -> None:
        """Close every subscription of a campaign."""
        for subscription in list(self._subscribers.get(campaign_id, [])):
            subscription.close()


__all__ = ["BroadcastType", "BroadcastEvent", "Subscription", "EventBus"]
