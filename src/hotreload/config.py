"""Settings for the hotreload command.

Loaded from a TOML file:

    [watch]
    paths = ["config.toml", "templates/"]
    debounce = 0.5

    [signals]
    signals = ["SIGHUP"]

    [http]
    enabled = true
    port = 8080

    [[reloaders]]
    priority = 0
    command = ["nginx", "-s", "reload"]
"""

import logging
import signal
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from hotreload.reloaders.store import ConfigLoadError, read_config_file

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("hotreload.toml")

# Handled by the command itself to stop cleanly
RESERVED_SIGNALS = ("SIGINT", "SIGTERM")


class WatchSettings(BaseModel):
    """File watching; disabled when no paths are given."""

    paths: list[Path] = Field(default_factory=list)
    patterns: list[str] = Field(default_factory=lambda: ["*"])
    ignore_patterns: list[str] | None = None
    poll_interval: float = Field(default=1.0, gt=0)
    debounce: float = Field(default=0.5, ge=0)
    trigger_id: str = "file-watch"


class SignalSettings(BaseModel):
    """OS signals that trigger a reload."""

    enabled: bool = True
    signals: list[str] = Field(default_factory=lambda: ["SIGHUP"])

    @field_validator("signals")
    @classmethod
    def _known_signals(cls, names: list[str]) -> list[str]:
        normalized = []
        for name in names:
            name = name.upper()
            if not name.startswith("SIG"):
                name = f"SIG{name}"
            if not hasattr(signal.Signals, name):
                raise ValueError(f"unknown signal {name}")
            if name in RESERVED_SIGNALS:
                raise ValueError(f"{name} is reserved for shutdown")
            normalized.append(name)
        return normalized

    def as_signals(self) -> tuple[signal.Signals, ...]:
        return tuple(signal.Signals[name] for name in self.signals)


class PeriodicSettings(BaseModel):
    """Timer trigger; disabled unless an interval is set."""

    interval: float | None = Field(default=None, gt=0)
    trigger_id: str | None = None


class HttpSettings(BaseModel):
    """HTTP reload endpoint."""

    enabled: bool = False
    host: str = "127.0.0.1"
    port: int = Field(default=8080, ge=0, le=65535)


class ReloaderSettings(BaseModel):
    """One reloader: either a command to run or modules to re-import."""

    priority: int = 0
    command: list[str] | None = None
    modules: list[str] | None = None
    cwd: Path | None = None
    timeout: float = Field(default=60.0, gt=0)

    @model_validator(mode="after")
    def _one_kind(self) -> "ReloaderSettings":
        if bool(self.command) == bool(self.modules):
            raise ValueError("a reloader needs exactly one of 'command' or 'modules'")
        return self

    @property
    def kind(self) -> str:
        return "command" if self.command else "modules"

    def describe(self) -> str:
        if self.command:
            return " ".join(self.command)
        return ", ".join(self.modules or [])


class Settings(BaseModel):
    """Top-level hotreload settings."""

    watch: WatchSettings = Field(default_factory=WatchSettings)
    signals: SignalSettings = Field(default_factory=SignalSettings)
    periodic: PeriodicSettings = Field(default_factory=PeriodicSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    reloaders: list[ReloaderSettings] = Field(default_factory=list)


def load_settings(path: str | Path = DEFAULT_CONFIG_PATH) -> Settings:
    """Load settings from a TOML (or JSON) file.

    Relative paths inside the file are resolved against the file's directory.

    Raises:
        ConfigLoadError: The file is missing, unparsable or invalid.
    """
    path = Path(path)
    data = read_config_file(path)
    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigLoadError(path, str(e)) from e

    base = path.parent.resolve()
    settings.watch.paths = [p if p.is_absolute() else base / p for p in settings.watch.paths]
    for reloader in settings.reloaders:
        if reloader.cwd is not None and not reloader.cwd.is_absolute():
            reloader.cwd = base / reloader.cwd

    logger.debug(f"Loaded settings from {path}: {len(settings.reloaders)} reloaders")
    return settings
