"""Ready-made trigger sources."""

from hotreload.notifiers.periodic import PeriodicNotifier
from hotreload.notifiers.signals import SignalNotifier
from hotreload.notifiers.watcher import FileChange, FileChangeNotifier, FileChangeWatcher

__all__ = [
    "FileChange",
    "FileChangeNotifier",
    "FileChangeWatcher",
    "PeriodicNotifier",
    "SignalNotifier",
]
