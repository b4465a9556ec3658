"""Tests for the ready-made reloaders."""

import json
import sys
import threading
from pathlib import Path

import pytest
from pydantic import BaseModel

from hotreload.reloaders import (
    CommandFailedError,
    CommandReloader,
    ConfigLoadError,
    ConfigStore,
    ModuleReloader,
    ModuleReloadError,
    path_to_module,
)
from hotreload.reloaders import store as store_module


class PrinterConfig(BaseModel):
    message: str
    repeat: int = 1


class AppConfig(BaseModel):
    printer: PrinterConfig


class TestCommandReloader:
    """Tests for CommandReloader."""

    async def test_exports_trigger_id(self, tmp_path: Path):
        """The command sees the trigger id in its environment."""
        out = tmp_path / "trigger.txt"
        script = f"import os; open({str(out)!r}, 'w').write(os.environ['HOTRELOAD_TRIGGER_ID'])"
        reloader = CommandReloader([sys.executable, "-c", script])

        await reloader.reload("signal-sighup")

        assert out.read_text() == "signal-sighup"

    async def test_nonzero_exit_fails(self):
        reloader = CommandReloader([sys.executable, "-c", "print('bad config'); raise SystemExit(3)"])

        with pytest.raises(CommandFailedError) as exc_info:
            await reloader.reload("http")

        assert "exited with code 3" in str(exc_info.value)
        assert "bad config" in exc_info.value.output

    async def test_timeout_fails(self):
        reloader = CommandReloader([sys.executable, "-c", "import time; time.sleep(10)"], timeout=0.2)

        with pytest.raises(CommandFailedError, match="timed out"):
            await reloader.reload("http")

    async def test_runs_in_cwd(self, tmp_path: Path):
        reloader = CommandReloader(
            [sys.executable, "-c", "open('marker', 'w').write('ok')"],
            cwd=tmp_path,
        )
        await reloader.reload("http")
        assert (tmp_path / "marker").read_text() == "ok"

    def test_rejects_empty_command(self):
        with pytest.raises(ValueError):
            CommandReloader([])


class TestModuleReloader:
    """Tests for ModuleReloader."""

    @pytest.fixture
    def module_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
        monkeypatch.syspath_prepend(str(tmp_path))
        yield tmp_path
        for name in ("hr_settings", "hr_broken"):
            sys.modules.pop(name, None)

    async def test_reloads_loaded_module(self, module_dir: Path):
        module_file = module_dir / "hr_settings.py"
        module_file.write_text("VALUE = 1\n")
        import hr_settings

        assert hr_settings.VALUE == 1
        # Different size so the stale bytecode check can't reuse the old code
        module_file.write_text("VALUE = 22\n")

        reloader = ModuleReloader(["hr_settings", "hr_not_imported"])
        await reloader.reload("file-watch")

        assert hr_settings.VALUE == 22
        assert reloader.reloaded == ["hr_settings"]

    async def test_import_error_fails_reload(self, module_dir: Path):
        module_file = module_dir / "hr_broken.py"
        module_file.write_text("OK = True\n")
        import hr_broken  # noqa: F401

        module_file.write_text("this is not python\n")

        with pytest.raises(ModuleReloadError, match="hr_broken"):
            await ModuleReloader(["hr_broken"]).reload("file-watch")

    def test_from_paths(self, tmp_path: Path):
        reloader = ModuleReloader.from_paths(
            [tmp_path / "src/app/settings.py", tmp_path / "README.md"],
            tmp_path,
        )
        assert reloader.modules == ["app.settings"]


class TestPathToModule:
    """Tests for path_to_module."""

    def test_strips_src_prefix(self, tmp_path: Path):
        assert path_to_module(tmp_path / "src/app/config.py", tmp_path) == "app.config"

    def test_package_init(self, tmp_path: Path):
        assert path_to_module(tmp_path / "app/__init__.py", tmp_path) == "app"

    def test_non_python_file(self, tmp_path: Path):
        assert path_to_module(tmp_path / "app/config.toml", tmp_path) is None


class TestConfigStore:
    """Tests for ConfigStore."""

    async def test_loads_and_reloads_toml(self, tmp_path: Path):
        path = tmp_path / "app.toml"
        path.write_text('[printer]\nmessage = "hello"\n')

        store = ConfigStore(path, AppConfig)
        assert store.get().printer.message == "hello"

        path.write_text('[printer]\nmessage = "bye"\nrepeat = 2\n')
        await store.reload("file-watch")

        assert store.get().printer.message == "bye"
        assert store.get().printer.repeat == 2

    async def test_loads_json(self, tmp_path: Path):
        path = tmp_path / "app.json"
        path.write_text(json.dumps({"printer": {"message": "hi"}}))

        store = ConfigStore(path, AppConfig)
        assert store.get().printer.message == "hi"

    async def test_invalid_file_keeps_previous_value(self, tmp_path: Path):
        path = tmp_path / "app.toml"
        path.write_text('[printer]\nmessage = "hello"\n')
        store = ConfigStore(path, AppConfig)

        path.write_text("[printer]\nrepeat = 3\n")
        with pytest.raises(ConfigLoadError):
            await store.reload("file-watch")
        assert store.get().printer.message == "hello"

        path.write_text("not = [valid")
        with pytest.raises(ConfigLoadError):
            await store.reload("file-watch")
        assert store.get().printer.message == "hello"

    def test_missing_file_fails_on_construction(self, tmp_path: Path):
        with pytest.raises(ConfigLoadError, match="missing.toml"):
            ConfigStore(tmp_path / "missing.toml", AppConfig)

    async def test_reload_reads_off_the_event_loop(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        """File parsing runs in a worker thread so same-priority siblings keep running."""
        path = tmp_path / "app.toml"
        path.write_text('[printer]\nmessage = "hello"\n')
        store = ConfigStore(path, AppConfig)

        reader_threads: list[int] = []
        original = store_module.read_config_file

        def recording_read(config_path: Path) -> dict:
            reader_threads.append(threading.get_ident())
            return original(config_path)

        monkeypatch.setattr(store_module, "read_config_file", recording_read)
        await store.reload("file-watch")

        assert reader_threads and reader_threads[0] != threading.get_ident()
