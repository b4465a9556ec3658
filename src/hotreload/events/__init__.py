"""Lifecycle events emitted by the reload manager."""

from hotreload.events.bus import EventBus
from hotreload.events.types import Event, EventType

__all__ = ["Event", "EventBus", "EventType"]
