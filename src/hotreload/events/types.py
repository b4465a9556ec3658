"""Reload lifecycle event definitions."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Lifecycle events emitted by the reload manager."""

    # Manager events
    MANAGER_STARTED = "manager.started"
    MANAGER_STOPPED = "manager.stopped"

    # Reload cycle events
    RELOAD_STARTED = "reload.started"
    RELOAD_COMPLETED = "reload.completed"
    RELOAD_FAILED = "reload.failed"
    RELOAD_DROPPED = "reload.dropped"

    # Priority group events
    GROUP_COMPLETED = "group.completed"

    # Notifier events
    NOTIFIER_FAILED = "notifier.failed"


class Event(BaseModel):
    """A lifecycle event."""

    id: str = Field(default_factory=lambda: uuid4().hex[:12])
    type: EventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    trigger_id: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)

