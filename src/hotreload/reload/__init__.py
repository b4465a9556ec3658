"""Reload orchestration core.

- Notifier/Reloader capabilities and their function adapters
- Priority-batched reload cycles with at most one cycle in flight
- Fatal propagation of notifier and reloader failures
"""

from hotreload.reload.errors import (
    GroupReloadError,
    HotReloadError,
    NotifierError,
    ReloadProcessError,
)
from hotreload.reload.interface import (
    Notifier,
    NotifierFromQueue,
    NotifierFunc,
    Reloader,
    ReloaderFunc,
    as_notifier,
    as_reloader,
)
from hotreload.reload.manager import Manager, ReloaderGroup

__all__ = [
    "GroupReloadError",
    "HotReloadError",
    "Manager",
    "Notifier",
    "NotifierError",
    "NotifierFromQueue",
    "NotifierFunc",
    "ReloadProcessError",
    "Reloader",
    "ReloaderFunc",
    "ReloaderGroup",
    "as_notifier",
    "as_reloader",
]
