"""File change notifier.

Watches files and directories for:
- New files
- Modified files
- Deleted files

and fires a reload once changes have settled.
"""

import asyncio
import hashlib
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from hotreload.reload.interface import Notifier

logger = logging.getLogger(__name__)

DEFAULT_IGNORE_PATTERNS = [
    "__pycache__",
    "*.pyc",
    "*.swp",
    "*~",
    ".git",
]


@dataclass
class FileChange:
    """Represents a detected file change."""

    path: Path
    change_type: str  # "modified", "created", "deleted"
    detected_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class FileChangeWatcher:
    """Tracks a set of files and directories by content hash.

    Watched files are always tracked; files under watched directories are
    tracked when they match one of the patterns.
    """

    def __init__(
        self,
        paths: list[str | Path],
        patterns: list[str] | None = None,
        ignore_patterns: list[str] | None = None,
    ):
        self.paths = [Path(p) for p in paths]
        self.patterns = patterns or ["*"]
        self.ignore_patterns = ignore_patterns if ignore_patterns is not None else DEFAULT_IGNORE_PATTERNS

        self._file_states: dict[Path, str] = {}  # path -> sha256
        self._initialized = False

    def _should_ignore(self, path: Path) -> bool:
        """Check if path matches an ignore pattern."""
        return any(
            part == pattern or Path(part).match(pattern)
            for part in path.parts
            for pattern in self.ignore_patterns
        )

    def _matches_pattern(self, path: Path) -> bool:
        return any(path.match(pattern) for pattern in self.patterns)

    def _compute_hash(self, path: Path) -> str:
        """Compute SHA256 hash of file content."""
        return hashlib.sha256(path.read_bytes()).hexdigest()

    def _candidates(self) -> list[Path]:
        files: list[Path] = []
        for watched in self.paths:
            if watched.is_file():
                files.append(watched)
            elif watched.is_dir():
                files.extend(
                    p
                    for p in watched.rglob("*")
                    if p.is_file()
                    and self._matches_pattern(p)
                    and not self._should_ignore(p.relative_to(watched))
                )
        return files

    def _scan_files(self) -> dict[Path, str]:
        states: dict[Path, str] = {}
        for path in self._candidates():
            try:
                states[path] = self._compute_hash(path)
            except OSError as e:
                # Vanished between listing and reading
                logger.debug(f"Error scanning {path}: {e}")
        return states

    def initialize(self) -> None:
        """Record the current state of all watched files."""
        self._file_states = self._scan_files()
        self._initialized = True
        logger.info(f"Watching {len(self._file_states)} files under {len(self.paths)} paths")

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def tracked_files(self) -> list[Path]:
        return sorted(self._file_states)

    def detect_changes(self) -> list[FileChange]:
        """Detect changes since the last scan.

        The first call only records state and reports nothing.
        """
        if not self._initialized:
            self.initialize()
            return []

        current = self._scan_files()
        changes: list[FileChange] = []

        for path, file_hash in current.items():
            old_hash = self._file_states.get(path)
            if old_hash is None:
                changes.append(FileChange(path=path, change_type="created"))
            elif old_hash != file_hash:
                changes.append(FileChange(path=path, change_type="modified"))

        for path in self._file_states:
            if path not in current:
                changes.append(FileChange(path=path, change_type="deleted"))

        self._file_states = current
        return changes


class FileChangeNotifier(Notifier):
    """Notifier that fires when watched files change.

    Polls the watcher and returns the trigger id once a batch of changes
    has been quiet for ``debounce`` seconds.
    """

    def __init__(
        self,
        watcher: FileChangeWatcher,
        poll_interval: float = 1.0,
        debounce: float = 0.5,
        trigger_id: str = "file-watch",
    ):
        self.watcher = watcher
        self.poll_interval = poll_interval
        self.debounce = debounce
        self.trigger_id = trigger_id
        self.last_changes: list[FileChange] = []

    async def notify(self) -> str:
        if not self.watcher.initialized:
            self.watcher.initialize()

        pending: list[FileChange] = []
        last_change_at: datetime | None = None

        while True:
            changes = self.watcher.detect_changes()
            if changes:
                pending.extend(changes)
                last_change_at = datetime.now(UTC)

            if (
                pending
                and last_change_at
                and (datetime.now(UTC) - last_change_at).total_seconds() >= self.debounce
            ):
                logger.info(f"Detected {len(pending)} file changes")
                self.last_changes = pending
                return self.trigger_id

            await asyncio.sleep(self.poll_interval)

    def __repr__(self) -> str:
        return f"FileChangeNotifier({[str(p) for p in self.watcher.paths]!r})"
