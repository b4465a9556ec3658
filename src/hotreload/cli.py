"""hotreload CLI entry point."""

import asyncio
import logging
import signal
from dataclasses import dataclass
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from hotreload.config import DEFAULT_CONFIG_PATH, Settings, load_settings
from hotreload.events import Event, EventBus, EventType
from hotreload.notifiers import FileChangeNotifier, FileChangeWatcher, PeriodicNotifier, SignalNotifier
from hotreload.reload import HotReloadError, Manager, NotifierFromQueue
from hotreload.reloaders import CommandReloader, ConfigLoadError, ModuleReloader

console = Console()

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
    )


@dataclass
class Runtime:
    """A manager wired from settings, plus the pieces that need cleanup."""

    manager: Manager
    trigger_queue: asyncio.Queue[str] | None = None
    signal_notifier: SignalNotifier | None = None

    def close(self) -> None:
        if self.signal_notifier:
            self.signal_notifier.close()


def build_runtime(settings: Settings, event_bus: EventBus | None = None) -> Runtime:
    """Create a manager with the notifiers and reloaders the settings ask for."""
    manager = Manager(event_bus=event_bus)
    runtime = Runtime(manager=manager)

    for reloader in settings.reloaders:
        if reloader.command:
            manager.add(
                reloader.priority,
                CommandReloader(reloader.command, cwd=reloader.cwd, timeout=reloader.timeout),
            )
        else:
            manager.add(reloader.priority, ModuleReloader(reloader.modules or []))

    if settings.watch.paths:
        watcher = FileChangeWatcher(
            settings.watch.paths,
            patterns=settings.watch.patterns,
            ignore_patterns=settings.watch.ignore_patterns,
        )
        manager.on(
            FileChangeNotifier(
                watcher,
                poll_interval=settings.watch.poll_interval,
                debounce=settings.watch.debounce,
                trigger_id=settings.watch.trigger_id,
            )
        )

    if settings.signals.enabled and settings.signals.signals:
        runtime.signal_notifier = SignalNotifier(settings.signals.as_signals())
        manager.on(runtime.signal_notifier)

    if settings.periodic.interval:
        manager.on(PeriodicNotifier(settings.periodic.interval, settings.periodic.trigger_id))

    if settings.http.enabled:
        # One pending trigger at most; the endpoint rejects the rest.
        runtime.trigger_queue = asyncio.Queue(maxsize=1)
        manager.on(NotifierFromQueue(runtime.trigger_queue))

    return runtime


def print_event(event: Event) -> None:
    """Echo reload outcomes to the console."""
    trigger = f"[dim]({event.trigger_id})[/dim]"
    if event.type == EventType.RELOAD_COMPLETED:
        console.print(f"[green]✓[/green] Reload completed {trigger}")
    elif event.type == EventType.RELOAD_FAILED:
        console.print(
            f"[red]✗[/red] Reload failed at priority {event.data.get('priority')}: "
            f"{event.data.get('error')} {trigger}"
        )
    elif event.type == EventType.RELOAD_DROPPED:
        console.print(f"[yellow]Reload already running, trigger dropped[/yellow] {trigger}")


def _load_or_exit(config_path: Path) -> Settings:
    try:
        return load_settings(config_path)
    except ConfigLoadError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1) from e


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """hotreload - coordinate hot-reloads without restarting."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)


@cli.command()
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="Settings file",
)
def run(config_path: Path) -> None:
    """Run the reload manager until interrupted."""
    settings = _load_or_exit(config_path)

    async def run_manager() -> None:
        import uvicorn

        from hotreload.api import create_app

        event_bus = EventBus()
        event_bus.add_callback(print_event)
        runtime = build_runtime(settings, event_bus)

        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in STOP_SIGNALS:
            loop.add_signal_handler(sig, stop.set)

        server: uvicorn.Server | None = None
        server_task: asyncio.Task | None = None
        if settings.http.enabled and runtime.trigger_queue is not None:
            app = create_app(runtime.manager, runtime.trigger_queue)
            server = uvicorn.Server(
                uvicorn.Config(app, host=settings.http.host, port=settings.http.port, log_level="warning")
            )
            server_task = asyncio.create_task(server.serve())
            # The server going down takes the manager with it
            server_task.add_done_callback(lambda _: stop.set())
            console.print(
                f"[bold green]Reload endpoint listening on "
                f"http://{settings.http.host}:{settings.http.port}/-/reload[/bold green]"
            )

        console.print("[bold green]Starting reload manager...[/bold green]")
        try:
            await runtime.manager.run(stop)
        finally:
            if server is not None and server_task is not None:
                server.should_exit = True
                await asyncio.gather(server_task, return_exceptions=True)
            for sig in STOP_SIGNALS:
                loop.remove_signal_handler(sig)
            runtime.close()

    try:
        asyncio.run(run_manager())
    except HotReloadError as e:
        console.print(f"[red]Reload manager failed: {e}[/red]")
        raise SystemExit(1) from e

    console.print("[yellow]Reload manager stopped[/yellow]")


@cli.command()
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="Settings file",
)
def check(config_path: Path) -> None:
    """Validate a settings file and show the reload plan."""
    settings = _load_or_exit(config_path)

    console.print(f"[green]✓[/green] Settings are valid: {config_path}\n")

    if settings.reloaders:
        table = Table(title="Reloaders")
        table.add_column("Priority", style="cyan", justify="right")
        table.add_column("Kind")
        table.add_column("Target", style="green")
        for reloader in sorted(settings.reloaders, key=lambda r: r.priority):
            table.add_row(str(reloader.priority), reloader.kind, reloader.describe())
        console.print(table)
    else:
        console.print("[yellow]No reloaders configured[/yellow]")

    console.print("\nNotifiers:")
    if settings.watch.paths:
        paths = ", ".join(str(p) for p in settings.watch.paths)
        console.print(f"  - files: {paths}")
    if settings.signals.enabled and settings.signals.signals:
        console.print(f"  - signals: {', '.join(settings.signals.signals)}")
    if settings.periodic.interval:
        console.print(f"  - every {settings.periodic.interval}s")
    if settings.http.enabled:
        console.print(f"  - http: {settings.http.host}:{settings.http.port}")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
