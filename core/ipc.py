"""
ipc.py — Request handlers between the UI (window / tray) and the scheduler.

Each handler turns a scheduler call into the ``{"success", "message"}``
reply the UI shows to the user; scheduler errors never escape from here.

Startup protocol
----------------
  1. Host builds a ShutdownScheduler for its state directory.
  2. restore_saved_schedule() re-arms a schedule that was active when the
     process last exited.  If the saved schedule no longer validates the
     state is reset to ``{"active": false}``.
  3. On quit the host calls handle_deactivate().
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from core.errors import SchedulerError
from core.scheduler import ShutdownScheduler

log = logging.getLogger(__name__)

Reply = Dict[str, Any]


def _reply(success: bool, message: str) -> Reply:
    return {"success": success, "message": message}


def handle_get_state(scheduler: ShutdownScheduler) -> Dict[str, Any]:
    return scheduler.get_state()


def handle_activate(scheduler: ShutdownScheduler, config: Mapping[str, Any]) -> Reply:
    try:
        scheduler.activate(config)
    except (SchedulerError, OSError) as exc:
        log.warning("Activation rejected: %s", exc)
        return _reply(False, f"Failed to activate: {exc}")
    return _reply(True, "Shutdown scheduled successfully!")


def handle_update(scheduler: ShutdownScheduler, config: Mapping[str, Any]) -> Reply:
    try:
        scheduler.update(config)
    except (SchedulerError, OSError) as exc:
        log.warning("Update rejected: %s", exc)
        return _reply(False, f"Failed to update: {exc}")
    return _reply(True, "Shutdown schedule updated successfully!")


def handle_deactivate(scheduler: ShutdownScheduler) -> Reply:
    scheduler.deactivate()
    return _reply(True, "Shutdown deactivated successfully!")


def restore_saved_schedule(scheduler: ShutdownScheduler) -> Dict[str, Any]:
    """Re-arm the persisted schedule, if any. Returns the resulting state."""
    state = scheduler.get_state()
    if not state.get("active"):
        return state

    config = {
        "time": state.get("time"),
        "days": state.get("days"),
        "reminders": state.get("reminders") or [],
    }
    try:
        scheduler.activate(config)
    except (SchedulerError, OSError) as exc:
        log.error("Failed to reactivate saved schedule: %s", exc)
        scheduler.deactivate()
    else:
        log.info("Restored saved schedule %s on %s", config["time"], config["days"])
    return scheduler.get_state()
