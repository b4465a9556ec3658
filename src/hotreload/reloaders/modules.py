"""Reloader that re-imports Python modules."""

import importlib
import logging
import sys
from pathlib import Path

from hotreload.reload.interface import Reloader

logger = logging.getLogger(__name__)


class ModuleReloadError(Exception):
    """Raised when a module fails to re-import."""

    def __init__(self, module_name: str, cause: BaseException):
        self.module_name = module_name
        super().__init__(f"Failed to reload module {module_name}: {cause}")


def path_to_module(path: Path, project_root: Path) -> str | None:
    """Convert a file path to a Python module name.

    Args:
        path: Path to a Python file.
        project_root: Root the module path is relative to; a leading
            ``src`` directory is stripped.

    Returns:
        Module name (e.g., "hotreload.reload.manager") or None.
    """
    if path.suffix != ".py":
        return None

    try:
        rel_path = path.relative_to(project_root)
    except ValueError:
        rel_path = path

    parts = rel_path.parts
    if parts and parts[0] == "src":
        parts = parts[1:]
    if not parts:
        return None

    if parts[-1] == "__init__.py":
        parts = parts[:-1]
    else:
        parts = (*parts[:-1], parts[-1].removesuffix(".py"))

    return ".".join(parts) or None


class ModuleReloader(Reloader):
    """Reloads already-imported modules in the given order.

    Modules that were never imported are skipped. The first module that
    fails to import fails the reload.
    """

    def __init__(self, modules: list[str]):
        self.modules = modules
        self.reloaded: list[str] = []

    @classmethod
    def from_paths(cls, paths: list[Path], project_root: Path) -> "ModuleReloader":
        """Build a reloader for the modules backing the given source files."""
        modules = [m for m in (path_to_module(p, project_root) for p in paths) if m]
        return cls(modules)

    async def reload(self, trigger_id: str) -> None:
        reloaded: list[str] = []
        for module_name in self.modules:
            module = sys.modules.get(module_name)
            if module is None:
                logger.debug(f"Module {module_name} not loaded, skipping reload")
                continue
            try:
                importlib.reload(module)
            except Exception as e:
                raise ModuleReloadError(module_name, e) from e
            logger.info(f"Reloaded module: {module_name}")
            reloaded.append(module_name)
        self.reloaded = reloaded

    def __repr__(self) -> str:
        return f"ModuleReloader({self.modules!r})"
