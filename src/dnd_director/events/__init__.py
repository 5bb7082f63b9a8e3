"""Campaign event broadcast."""

from dnd_director.events.bus import BroadcastEvent, BroadcastType, EventBus, Subscription

__all__ = ["BroadcastEvent", "BroadcastType", "EventBus", "Subscription"]
