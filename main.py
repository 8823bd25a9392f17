"""
main.py — Entry point for timed-shutdown.

Flow
----
1. Configure logging (level from TIMED_SHUTDOWN_LOG_LEVEL, default INFO).
2. Build the ShutdownScheduler for the per-user state directory.
3. Re-arm the schedule saved by the previous run (ipc.restore_saved_schedule).
4. Start the tray icon; it follows every state change via a listener.
5. Run the schedule window's Tk loop.  With ``--hidden`` (auto-start) the
   window starts withdrawn and can be opened from the tray.
6. On "Quit": deactivate the schedule, remove the tray icon, leave the loop.
"""
from __future__ import annotations

import logging
import os
import sys
from typing import List, Optional

from core import ipc
from core.scheduler import ShutdownScheduler
from core.state import default_state_dir
from gui.schedule_window import ScheduleWindow
from gui.tray import ScheduleTray

log = logging.getLogger("timed_shutdown")

LOG_LEVEL_ENV_VAR = "TIMED_SHUTDOWN_LOG_LEVEL"


def configure_logging() -> None:
    level = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> None:
    argv = sys.argv[1:] if argv is None else argv
    hidden = "--hidden" in argv

    configure_logging()
    state_dir = default_state_dir()
    log.info("Using state directory %s", state_dir)

    scheduler = ShutdownScheduler(state_dir)
    state = ipc.restore_saved_schedule(scheduler)

    window = ScheduleWindow(scheduler)
    tray: Optional[ScheduleTray] = None

    def quit_app() -> None:
        ipc.handle_deactivate(scheduler)
        if tray is not None:
            tray.stop()
        window.quit()

    tray = ScheduleTray(
        on_show=lambda: window.call_soon(window.show),
        on_quit=lambda: window.call_soon(quit_app),
        next_shutdown=lambda: scheduler.next_shutdown_at,
    )
    scheduler.add_listener(tray.on_state_changed)
    scheduler.add_listener(lambda new_state: window.call_soon(lambda: window.refresh(new_state)))
    tray.start(active=bool(state.get("active")))

    window.refresh(state)
    window.run(visible=not hidden)


if __name__ == "__main__":
    main()
