"""Reload orchestration.

The manager listens to every registered notifier at once and, each time one
of them fires, runs a reload cycle: reloaders are grouped by priority, the
groups run one after another in ascending priority order, and the reloaders
inside a group run concurrently. Only one cycle is ever in flight; triggers
that arrive meanwhile are dropped, not queued.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from hotreload.events import EventBus, EventType
from hotreload.reload.errors import GroupReloadError, NotifierError, ReloadProcessError
from hotreload.reload.interface import (
    Notifier,
    NotifierCallable,
    Reloader,
    ReloaderCallable,
    as_notifier,
    as_reloader,
)

logger = logging.getLogger(__name__)


@dataclass
class ReloaderGroup:
    """Reloaders sharing one priority; no ordering among members."""

    priority: int
    reloaders: list[Reloader] = field(default_factory=list)


@dataclass
class _Signal:
    """What a notifier worker hands to the run loop."""

    notifier: Notifier
    trigger_id: str = ""
    error: Exception | None = None


class Manager:
    """Coordinates notifiers and priority-batched reloaders.

    Register everything with ``on`` and ``add`` first, then drive the manager
    with a single ``run`` call:

        manager = Manager()
        manager.add(0, config_store)
        manager.add(100, http_client)
        manager.on(SignalNotifier())
        await manager.run(stop_event)

    ``run`` returns once ``stop`` is set and raises when a notifier or a
    reload cycle fails.
    """

    def __init__(self, event_bus: EventBus | None = None):
        self.event_bus = event_bus

        self._groups: dict[int, ReloaderGroup] = {}
        self._notifiers: list[Notifier] = []

        self._running = False
        self._in_flight = False
        # Reloaders abandoned by a failed group, kept alive until they finish
        self._background: set[asyncio.Task] = set()

        self._cycles_completed = 0
        self._triggers_dropped = 0

    def on(self, notifier: Notifier | NotifierCallable) -> None:
        """Register a notifier.

        Notifiers only start when ``run`` begins. Each one is restarted as
        soon as it returns, so every notifier can trigger any number of
        reload cycles while the manager runs.
        """
        self._ensure_not_running()
        self._notifiers.append(as_notifier(notifier))

    def add(self, priority: int, reloader: Reloader | ReloaderCallable) -> None:
        """Register a reloader under a priority.

        Lower priorities reload first (e.g. -100, 0, 42, 100...). Reloaders
        with the same priority are batched and reloaded concurrently; the
        next batch starts only when the whole batch succeeded.
        """
        self._ensure_not_running()
        group = self._groups.get(priority)
        if group is None:
            group = self._groups[priority] = ReloaderGroup(priority=priority)
        group.reloaders.append(as_reloader(reloader))

    def _ensure_not_running(self) -> None:
        if self._running:
            raise RuntimeError("Cannot register notifiers or reloaders while the manager is running")

    @property
    def running(self) -> bool:
        """Whether ``run`` is active."""
        return self._running

    @property
    def in_flight(self) -> bool:
        """Whether a reload cycle is executing right now."""
        return self._in_flight

    @property
    def priorities(self) -> list[int]:
        """Registered priorities in execution order."""
        return sorted(self._groups)

    def status(self) -> dict[str, Any]:
        """Snapshot of the manager state for status endpoints."""
        return {
            "running": self._running,
            "in_flight": self._in_flight,
            "notifiers": len(self._notifiers),
            "groups": [
                {"priority": p, "reloaders": len(self._groups[p].reloaders)}
                for p in self.priorities
            ],
            "cycles_completed": self._cycles_completed,
            "triggers_dropped": self._triggers_dropped,
        }

    async def run(self, stop: asyncio.Event | None = None) -> None:
        """Run notifiers and reload cycles until stopped or failed.

        Args:
            stop: Event that ends the run cleanly once set. Without it the run
                only ends on failure or task cancellation.

        Raises:
            NotifierError: A notifier raised.
            ReloadProcessError: A reload cycle failed.
        """
        if self._running:
            raise RuntimeError("Manager is already running")
        self._running = True
        if stop is None:
            stop = asyncio.Event()

        signals: asyncio.Queue[_Signal] = asyncio.Queue(maxsize=max(len(self._notifiers), 1))
        workers = [
            asyncio.create_task(self._notifier_worker(n, signals), name=f"notifier-{i}")
            for i, n in enumerate(self._notifiers)
        ]
        stop_waiter = asyncio.create_task(stop.wait(), name="manager-stop")

        logger.info(
            f"Reload manager started with {len(self._notifiers)} notifiers "
            f"and {len(self._groups)} priority groups"
        )
        await self._emit(EventType.MANAGER_STARTED, self.status())

        try:
            signal: _Signal | None = None
            while True:
                if signal is None:
                    signal = await self._next_signal(signals, stop_waiter)
                    if signal is None:
                        logger.info("Stop requested, shutting down reload manager")
                        return

                if signal.error is not None:
                    logger.error(f"Notifier {signal.notifier!r} failed: {signal.error}")
                    await self._emit(EventType.NOTIFIER_FAILED, {"error": str(signal.error)})
                    raise NotifierError(signal.notifier, signal.error) from signal.error

                if not signal.trigger_id:
                    logger.debug(f"Notifier {signal.notifier!r} returned without a trigger id")
                    signal = None
                    continue

                signal = await self._supervise_cycle(signal.trigger_id, signals, stop_waiter)
                if stop_waiter.done():
                    logger.info("Stop requested, shutting down reload manager")
                    return
        finally:
            stop_waiter.cancel()
            for worker in workers:
                worker.cancel()
            await asyncio.gather(stop_waiter, *workers, return_exceptions=True)
            self._running = False
            logger.info("Reload manager stopped")
            await self._emit(EventType.MANAGER_STOPPED, self.status())

    async def _notifier_worker(self, notifier: Notifier, signals: asyncio.Queue[_Signal]) -> None:
        """Call a notifier forever, forwarding each result to the run loop."""
        while True:
            try:
                trigger_id = await notifier.notify()
            except Exception as e:
                await signals.put(_Signal(notifier=notifier, error=e))
                return
            await signals.put(_Signal(notifier=notifier, trigger_id=trigger_id))

    async def _next_signal(
        self,
        signals: asyncio.Queue[_Signal],
        stop_waiter: asyncio.Task,
    ) -> _Signal | None:
        """Wait for the next notifier signal, or None once stop is set."""
        getter = asyncio.create_task(signals.get())
        try:
            done, _ = await asyncio.wait({getter, stop_waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if not getter.done():
                getter.cancel()
        if stop_waiter in done:
            return None
        return getter.result()

    async def _supervise_cycle(
        self,
        trigger_id: str,
        signals: asyncio.Queue[_Signal],
        stop_waiter: asyncio.Task,
    ) -> _Signal | None:
        """Run one reload cycle while keeping an eye on notifiers and stop.

        Triggers arriving during the cycle hit the in-flight guard and are
        dropped. A notifier failure or stop cancels the cycle.

        Returns:
            A signal read while the cycle was finishing (or a notifier
            failure) for the run loop to handle next, otherwise None.
        """
        cycle = asyncio.create_task(self._reload_cycle(trigger_id), name=f"reload-{trigger_id}")
        try:
            while True:
                getter = asyncio.create_task(signals.get())
                try:
                    done, _ = await asyncio.wait(
                        {cycle, getter, stop_waiter},
                        return_when=asyncio.FIRST_COMPLETED,
                    )
                finally:
                    if not getter.done():
                        getter.cancel()

                if stop_waiter in done:
                    if not cycle.done():
                        cycle.cancel()
                        await asyncio.gather(cycle, return_exceptions=True)
                    # A group that failed before stop landed still fails the run
                    if not cycle.cancelled():
                        self._raise_for_cycle(cycle, trigger_id)
                    return None

                if getter in done:
                    signal = getter.result()
                    if cycle.done():
                        self._raise_for_cycle(cycle, trigger_id)
                        return signal
                    if signal.error is not None:
                        return signal
                    if signal.trigger_id:
                        await self._reload_cycle(signal.trigger_id)
                    continue

                self._raise_for_cycle(cycle, trigger_id)
                return None
        finally:
            if not cycle.done():
                cycle.cancel()
                await asyncio.gather(cycle, return_exceptions=True)

    def _raise_for_cycle(self, cycle: asyncio.Task, trigger_id: str) -> None:
        try:
            cycle.result()
        except GroupReloadError as e:
            raise ReloadProcessError(trigger_id, e) from e

    async def _reload_cycle(self, trigger_id: str) -> bool:
        """Reload every priority group for one trigger.

        Returns:
            False when another cycle was in flight and the trigger was
            dropped, True otherwise.

        Raises:
            GroupReloadError: A reloader failed; later groups were skipped.
        """
        # No await between the check and the set.
        if self._in_flight:
            self._triggers_dropped += 1
            logger.info(f"Reload already in progress, dropping trigger {trigger_id!r}")
            await self._emit(EventType.RELOAD_DROPPED, trigger_id=trigger_id)
            return False
        self._in_flight = True

        try:
            if not self._groups:
                return True

            groups = sorted(self._groups.values(), key=lambda g: g.priority)
            logger.info(f"Reloading {len(groups)} priority groups for trigger {trigger_id!r}")
            await self._emit(
                EventType.RELOAD_STARTED,
                {"priorities": [g.priority for g in groups]},
                trigger_id,
            )

            for group in groups:
                try:
                    await self._reload_group(group, trigger_id)
                except Exception as e:
                    logger.error(f"Priority {group.priority} group failed for trigger {trigger_id!r}: {e}")
                    await self._emit(
                        EventType.RELOAD_FAILED,
                        {"priority": group.priority, "error": str(e)},
                        trigger_id,
                    )
                    raise GroupReloadError(group.priority, trigger_id, e) from e

                logger.debug(f"Priority {group.priority} group reloaded ({len(group.reloaders)} reloaders)")
                await self._emit(
                    EventType.GROUP_COMPLETED,
                    {"priority": group.priority, "reloaders": len(group.reloaders)},
                    trigger_id,
                )

            self._cycles_completed += 1
            logger.info(f"Reload for trigger {trigger_id!r} completed")
            await self._emit(EventType.RELOAD_COMPLETED, trigger_id=trigger_id)
            return True
        finally:
            self._in_flight = False

    async def _reload_group(self, group: ReloaderGroup, trigger_id: str) -> None:
        """Reload all members of a group concurrently.

        Returns as soon as any member fails. Unfinished siblings are cancelled
        but not waited for.
        """
        tasks = [
            asyncio.create_task(r.reload(trigger_id), name=f"reloader-{group.priority}-{i}")
            for i, r in enumerate(group.reloaders)
        ]
        try:
            for next_done in asyncio.as_completed(tasks):
                await next_done
        except BaseException as e:
            self._abandon(tasks, e)
            raise

    def _abandon(self, tasks: list[asyncio.Task], raised: BaseException) -> None:
        for task in tasks:
            if not task.done():
                task.cancel()
                self._background.add(task)
                task.add_done_callback(self._reap)
            elif not task.cancelled():
                exc = task.exception()
                if exc is not None and exc is not raised:
                    logger.warning(f"Reloader {task.get_name()} also failed: {exc}")

    def _reap(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(f"Reloader {task.get_name()} failed after its group was abandoned: {exc}")

    async def _emit(
        self,
        event_type: EventType,
        data: dict[str, Any] | None = None,
        trigger_id: str | None = None,
    ) -> None:
        if self.event_bus is not None:
            await self.event_bus.emit(event_type, data, trigger_id)
