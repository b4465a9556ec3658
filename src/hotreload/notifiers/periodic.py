"""Timer-based notifier."""

import asyncio
from datetime import UTC, datetime

from hotreload.reload.interface import Notifier


class PeriodicNotifier(Notifier):
    """Fires every ``interval`` seconds.

    The trigger id is ``trigger_id`` when given, otherwise the ISO timestamp
    of the tick.
    """

    def __init__(self, interval: float, trigger_id: str | None = None):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.interval = interval
        self.trigger_id = trigger_id

    async def notify(self) -> str:
        await asyncio.sleep(self.interval)
        return self.trigger_id or datetime.now(UTC).isoformat()

    def __repr__(self) -> str:
        return f"PeriodicNotifier(interval={self.interval})"
