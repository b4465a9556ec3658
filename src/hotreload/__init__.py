"""hotreload - coordinate hot-reloads of long-running processes."""

__version__ = "0.1.0"

from hotreload.reload import (  # noqa: E402
    GroupReloadError,
    HotReloadError,
    Manager,
    Notifier,
    NotifierError,
    NotifierFromQueue,
    NotifierFunc,
    ReloadProcessError,
    Reloader,
    ReloaderFunc,
)

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
    "__version__",
]
