"""Reloadable configuration store."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Generic, TypeVar

import tomli
from pydantic import BaseModel, ValidationError

from hotreload.reload.interface import Reloader

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class ConfigLoadError(Exception):
    """Raised when a configuration file can't be read or validated."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not load config file {path}: {reason}")


def read_config_file(path: Path) -> dict:
    """Parse a TOML or JSON file into a dict, chosen by file suffix."""
    try:
        content = path.read_bytes()
    except OSError as e:
        raise ConfigLoadError(path, str(e)) from e

    try:
        if path.suffix == ".json":
            data = json.loads(content)
        else:
            data = tomli.loads(content.decode())
    except (tomli.TOMLDecodeError, json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigLoadError(path, str(e)) from e

    if not isinstance(data, dict):
        raise ConfigLoadError(path, "top level must be a table")
    return data


class ConfigStore(Reloader, Generic[ModelT]):
    """Holds the current value of a config file as a pydantic model.

    A reload parses and validates the file before swapping it in, so readers
    keep seeing the previous value when the new file is broken.
    """

    def __init__(self, path: str | Path, model: type[ModelT]):
        self.path = Path(path)
        self.model = model
        self._value: ModelT = self._load()

    def _load(self) -> ModelT:
        data = read_config_file(self.path)
        try:
            return self.model.model_validate(data)
        except ValidationError as e:
            raise ConfigLoadError(self.path, str(e)) from e

    def get(self) -> ModelT:
        """Return the current configuration."""
        return self._value

    async def reload(self, trigger_id: str) -> None:
        self._value = await asyncio.to_thread(self._load)
        logger.info(f"Config {self.path} reloaded (trigger {trigger_id!r})")

    def __repr__(self) -> str:
        return f"ConfigStore({str(self.path)!r}, {self.model.__name__})"
