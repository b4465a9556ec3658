"""Reloader that runs an external command."""

import asyncio
import logging
import os
from pathlib import Path

from hotreload.reload.interface import Reloader

logger = logging.getLogger(__name__)

TRIGGER_ENV_VAR = "HOTRELOAD_TRIGGER_ID"


class CommandFailedError(Exception):
    """Raised when a reload command exits non-zero or times out."""

    def __init__(self, command: list[str], reason: str, output: str = ""):
        self.command = command
        self.reason = reason
        self.output = output
        super().__init__(f"Command {' '.join(command)!r} {reason}")


class CommandReloader(Reloader):
    """Runs a command on every reload.

    The trigger id is exported to the command as ``HOTRELOAD_TRIGGER_ID``.
    A non-zero exit code or a timeout fails the reload.
    """

    def __init__(
        self,
        command: list[str],
        cwd: Path | None = None,
        timeout: float = 60.0,
        env: dict[str, str] | None = None,
    ):
        if not command:
            raise ValueError("command must not be empty")
        self.command = command
        self.cwd = cwd
        self.timeout = timeout
        self.env = env or {}

    async def reload(self, trigger_id: str) -> None:
        env = {**os.environ, **self.env, TRIGGER_ENV_VAR: trigger_id}

        logger.info(f"Running reload command: {' '.join(self.command)}")
        process = await asyncio.create_subprocess_exec(
            *self.command,
            cwd=self.cwd,
            env=env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )

        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except TimeoutError:
            process.kill()
            await process.wait()
            raise CommandFailedError(self.command, f"timed out after {self.timeout} seconds") from None
        except asyncio.CancelledError:
            process.kill()
            await process.wait()
            raise

        output = stdout.decode(errors="replace") if stdout else ""
        if process.returncode != 0:
            raise CommandFailedError(self.command, f"exited with code {process.returncode}", output)

        logger.debug(f"Reload command output: {output.strip()}")

    def __repr__(self) -> str:
        return f"CommandReloader({self.command!r})"
