"""Notifier and reloader capabilities.

A notifier waits for something reload-worthy to happen and returns a trigger
id. A reloader refreshes one component when handed that trigger id. Both have
function adapters so simple cases don't need a class of their own.
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

NotifierCallable = Callable[[], str | Awaitable[str]]
ReloaderCallable = Callable[[str], None | Awaitable[None]]


class Notifier(ABC):
    """Source of reload triggers.

    ``notify`` is called over and over for the lifetime of a run. It should
    block until its event source fires and return the trigger id, or raise
    to abort the run. Returning an empty string ends the wait without
    starting a reload. Implementations must let ``asyncio.CancelledError``
    through so the manager can stop them.
    """

    @abstractmethod
    async def notify(self) -> str:
        """Wait for the next trigger and return its id."""
        ...


class Reloader(ABC):
    """A unit of reloadable state.

    Reloaders sharing a priority run concurrently, so ``reload`` must be safe
    to run alongside its siblings. Raise to report a failed reload.
    """

    @abstractmethod
    async def reload(self, trigger_id: str) -> None:
        """Refresh state for the given trigger."""
        ...


class NotifierFunc(Notifier):
    """Notifier backed by a plain or async callable."""

    def __init__(self, fn: NotifierCallable):
        self.fn = fn

    async def notify(self) -> str:
        result = self.fn()
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        return f"NotifierFunc({getattr(self.fn, '__name__', self.fn)!r})"


class ReloaderFunc(Reloader):
    """Reloader backed by a plain or async callable.

    Plain callables run inline on the event loop; wrap blocking work with
    ``asyncio.to_thread`` inside the callable.
    """

    def __init__(self, fn: ReloaderCallable):
        self.fn = fn

    async def reload(self, trigger_id: str) -> None:
        result = self.fn(trigger_id)
        if inspect.isawaitable(result):
            await result

    def __repr__(self) -> str:
        return f"ReloaderFunc({getattr(self.fn, '__name__', self.fn)!r})"


class NotifierFromQueue(Notifier):
    """Notifier that reads one trigger id per call from a queue.

    The queue is read again on every notification round, so its owner must
    keep feeding it (and never replace it) while the manager runs.
    """

    def __init__(self, queue: "asyncio.Queue[str]"):
        self.queue = queue

    async def notify(self) -> str:
        return await self.queue.get()


def as_notifier(obj: Notifier | NotifierCallable) -> Notifier:
    """Return obj as a Notifier, wrapping callables in NotifierFunc."""
    if isinstance(obj, Notifier):
        return obj
    if callable(obj):
        return NotifierFunc(obj)
    raise TypeError(f"Expected a Notifier or callable, got {type(obj).__name__}")


def as_reloader(obj: Reloader | ReloaderCallable) -> Reloader:
    """Return obj as a Reloader, wrapping callables in ReloaderFunc."""
    if isinstance(obj, Reloader):
        return obj
    if callable(obj):
        return ReloaderFunc(obj)
    raise TypeError(f"Expected a Reloader or callable, got {type(obj).__name__}")
