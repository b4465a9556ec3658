"""Ready-made reloadable components."""

from hotreload.reloaders.command import CommandFailedError, CommandReloader
from hotreload.reloaders.modules import ModuleReloader, ModuleReloadError, path_to_module
from hotreload.reloaders.store import ConfigLoadError, ConfigStore, read_config_file

__all__ = [
    "CommandFailedError",
    "CommandReloader",
    "ConfigLoadError",
    "ConfigStore",
    "ModuleReloadError",
    "ModuleReloader",
    "path_to_module",
    "read_config_file",
]
