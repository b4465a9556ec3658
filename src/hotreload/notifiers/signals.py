"""OS signal notifier."""

import asyncio
import logging
import signal

from hotreload.reload.interface import Notifier

logger = logging.getLogger(__name__)


class SignalNotifier(Notifier):
    """Fires when the process receives one of the given signals.

    Handlers are installed on the running loop the first time ``notify`` is
    awaited, so the notifier can be built before the loop exists. The trigger
    id is ``signal-<name>``, e.g. ``signal-sighup``.
    """

    def __init__(self, signals: tuple[signal.Signals, ...] = (signal.SIGHUP,)):
        self.signals = signals
        self._received: asyncio.Queue[signal.Signals] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    def _install(self) -> asyncio.Queue[signal.Signals]:
        self._loop = asyncio.get_running_loop()
        self._received = asyncio.Queue()
        for sig in self.signals:
            self._loop.add_signal_handler(sig, self._received.put_nowait, sig)
        logger.info(f"Listening for signals: {', '.join(s.name for s in self.signals)}")
        return self._received

    async def notify(self) -> str:
        received = self._received or self._install()
        sig = await received.get()
        logger.info(f"Signal received: {sig.name}")
        return f"signal-{sig.name.lower()}"

    def close(self) -> None:
        """Remove the installed signal handlers."""
        if self._loop is None:
            return
        for sig in self.signals:
            self._loop.remove_signal_handler(sig)
        self._loop = None
        self._received = None

    def __repr__(self) -> str:
        return f"SignalNotifier({[s.name for s in self.signals]!r})"
