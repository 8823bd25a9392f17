"""
test_state.py — Unit tests for core/state.py.

Every test works inside pytest's tmp_path; the real per-user state
directory is never touched.
"""
from __future__ import annotations

import os
from pathlib import Path

import pytest

from core.state import HOME_ENV_VAR, STATE_FILENAME, StateStore, default_state_dir


# ── load / save ────────────────────────────────────────────────────────────
class TestStateStore:
    def test_missing_file_reads_inactive(self, tmp_path: Path) -> None:
        assert StateStore(tmp_path).load() == {"active": False}

    def test_save_then_load(self, tmp_path: Path) -> None:
        store = StateStore(tmp_path)
        state = {"active": True, "time": "22:00", "days": ["monday", "wednesday"], "reminders": ["21:00"]}
        store.save(state)
        assert store.load() == state

    def test_save_overwrites_whole_document(self, tmp_path: Path) -> None:
        store = StateStore(tmp_path)
        store.save({"active": True, "time": "22:00", "days": ["monday"], "reminders": []})
        store.save({"active": False})
        assert store.load() == {"active": False}

    def test_save_creates_directory(self, tmp_path: Path) -> None:
        store = StateStore(tmp_path / "nested" / "dir")
        store.save({"active": False})
        assert (tmp_path / "nested" / "dir" / STATE_FILENAME).exists()

    def test_file_is_pretty_json(self, tmp_path: Path) -> None:
        store = StateStore(tmp_path)
        store.save({"active": False})
        assert store.path.read_text(encoding="utf-8") == '{\n  "active": false\n}'

    def test_interrupted_save_keeps_previous_record(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        store = StateStore(tmp_path)
        state = {"active": True, "time": "22:00", "days": ["monday"], "reminders": []}
        store.save(state)

        def crash(src, dst) -> None:
            raise OSError("power lost")

        monkeypatch.setattr(os, "replace", crash)
        with pytest.raises(OSError):
            store.save({"active": False})
        monkeypatch.undo()

        assert store.load() == state
        assert [p.name for p in tmp_path.iterdir()] == [STATE_FILENAME]

    def test_unserialisable_state_leaves_file_alone(self, tmp_path: Path) -> None:
        store = StateStore(tmp_path)
        store.save({"active": False})
        with pytest.raises(TypeError):
            store.save({"active": True, "time": object()})
        assert store.load() == {"active": False}
        assert [p.name for p in tmp_path.iterdir()] == [STATE_FILENAME]

    @pytest.mark.parametrize("content", ["{not json", "[1, 2]", '{"time": "22:00"}', '{"active": "yes"}'])
    def test_corrupt_file_reads_inactive(self, tmp_path: Path, content: str) -> None:
        (tmp_path / STATE_FILENAME).write_text(content, encoding="utf-8")
        assert StateStore(tmp_path).load() == {"active": False}


# ── default_state_dir ──────────────────────────────────────────────────────
class TestDefaultStateDir:
    @pytest.fixture(autouse=True)
    def no_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(HOME_ENV_VAR, raising=False)

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv(HOME_ENV_VAR, str(tmp_path))
        assert default_state_dir("linux") == tmp_path

    def test_windows_uses_localappdata(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("LOCALAPPDATA", str(tmp_path))
        assert default_state_dir("win32") == tmp_path / "TimedShutdown"

    def test_macos_application_support(self) -> None:
        home = Path(os.path.expanduser("~"))
        assert default_state_dir("darwin") == home / "Library" / "Application Support" / "TimedShutdown"

    def test_linux_xdg_config_home(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert default_state_dir("linux") == tmp_path / "timed-shutdown"

    def test_linux_default_config_dir(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        home = Path(os.path.expanduser("~"))
        assert default_state_dir("linux") == home / ".config" / "timed-shutdown"
