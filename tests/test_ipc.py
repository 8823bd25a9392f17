"""
test_ipc.py — Unit tests for core/ipc.py (UI request handlers + restore).
"""
from __future__ import annotations

from pathlib import Path

import core.ipc as ipc_mod
from core.state import StateStore

VALID = {"time": "22:00", "days": ["monday"], "reminders": ["21:30"]}


# ── Request handlers ───────────────────────────────────────────────────────
class TestHandlers:
    def test_activate_success(self, scheduler) -> None:
        reply = ipc_mod.handle_activate(scheduler, VALID)
        assert reply == {"success": True, "message": "Shutdown scheduled successfully!"}
        assert ipc_mod.handle_get_state(scheduler)["active"] is True

    def test_activate_failure_message(self, scheduler) -> None:
        reply = ipc_mod.handle_activate(scheduler, {"time": "22:00", "days": []})
        assert reply == {
            "success": False,
            "message": "Failed to activate: Time and at least one day must be selected",
        }

    def test_activate_invalid_time(self, scheduler) -> None:
        reply = ipc_mod.handle_activate(scheduler, {"time": "nope", "days": ["monday"]})
        assert reply["message"] == "Failed to activate: Invalid time format"

    def test_update_when_inactive(self, scheduler) -> None:
        reply = ipc_mod.handle_update(scheduler, VALID)
        assert reply == {
            "success": False,
            "message": "Failed to update: Cannot update: shutdown is not active",
        }

    def test_update_success(self, scheduler) -> None:
        ipc_mod.handle_activate(scheduler, VALID)
        reply = ipc_mod.handle_update(scheduler, {"time": "23:00", "days": ["friday"]})
        assert reply == {"success": True, "message": "Shutdown schedule updated successfully!"}
        assert ipc_mod.handle_get_state(scheduler)["time"] == "23:00"

    def test_deactivate(self, scheduler) -> None:
        ipc_mod.handle_activate(scheduler, VALID)
        reply = ipc_mod.handle_deactivate(scheduler)
        assert reply == {"success": True, "message": "Shutdown deactivated successfully!"}
        assert ipc_mod.handle_get_state(scheduler) == {"active": False}


# ── Startup restore ────────────────────────────────────────────────────────
class TestRestoreSavedSchedule:
    def test_nothing_saved(self, scheduler, created_triggers) -> None:
        assert ipc_mod.restore_saved_schedule(scheduler) == {"active": False}
        assert created_triggers == []

    def test_rearms_active_schedule(self, make_scheduler, created_triggers) -> None:
        make_scheduler().activate(VALID)
        created_triggers.clear()

        fresh = make_scheduler()
        state = ipc_mod.restore_saved_schedule(fresh)

        assert state == {"active": True, "time": "22:00", "days": ["monday"], "reminders": ["21:30"]}
        assert [t.name for t in created_triggers] == ["shutdown", "reminder-21:30"]
        assert fresh.live_trigger_count == 2

    def test_old_file_without_reminders(self, make_scheduler, tmp_path: Path) -> None:
        StateStore(tmp_path).save({"active": True, "time": "22:00", "days": ["monday"]})
        state = ipc_mod.restore_saved_schedule(make_scheduler())
        assert state["reminders"] == []

    def test_invalid_saved_schedule_is_reset(self, make_scheduler, tmp_path: Path, created_triggers) -> None:
        StateStore(tmp_path).save({"active": True, "time": "bogus", "days": ["monday"]})
        fresh = make_scheduler()

        assert ipc_mod.restore_saved_schedule(fresh) == {"active": False}
        assert created_triggers == []
        assert StateStore(tmp_path).load() == {"active": False}
