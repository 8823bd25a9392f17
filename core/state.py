"""
state.py — Persistence of the current schedule as a single JSON document.

Layout
------
  <state dir>/shutdown-state.json   ← {"active": bool, "time"?, "days"?, "reminders"?}

The document *is* the whole state: every save replaces it atomically.  A
missing or unreadable file is not an error — it reads back as
``{"active": false}``.
"""
from __future__ import annotations

import contextlib
import json
import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

log = logging.getLogger(__name__)

STATE_FILENAME = "shutdown-state.json"

# Environment variable that overrides the per-user default location
HOME_ENV_VAR = "TIMED_SHUTDOWN_HOME"


def inactive_state() -> Dict[str, Any]:
    return {"active": False}


# ── Default location ───────────────────────────────────────────────────────
def default_state_dir(platform: Optional[str] = None) -> Path:
    """Return the per-user directory the host keeps its state file in."""
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()

    platform = platform or sys.platform
    home = Path(os.path.expanduser("~"))
    if platform == "win32":
        return Path(os.environ.get("LOCALAPPDATA", str(home))) / "TimedShutdown"
    if platform == "darwin":
        return home / "Library" / "Application Support" / "TimedShutdown"
    config_home = os.environ.get("XDG_CONFIG_HOME") or str(home / ".config")
    return Path(config_home) / "timed-shutdown"


# ── Store ──────────────────────────────────────────────────────────────────
class StateStore:
    """Reads and writes ``shutdown-state.json`` inside *state_dir*.

    Single writer: only the scheduler that owns this store calls :meth:`save`.
    """

    def __init__(self, state_dir: Union[str, Path]) -> None:
        self._path = Path(state_dir) / STATE_FILENAME

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Dict[str, Any]:
        """Return the persisted record, or ``{"active": False}`` if there is none."""
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return inactive_state()
        except OSError as exc:
            log.warning("Could not read %s: %s", self._path, exc)
            return inactive_state()

        try:
            data = json.loads(text)
        except ValueError as exc:
            log.warning("Ignoring corrupt state file %s: %s", self._path, exc)
            return inactive_state()

        if not isinstance(data, dict) or not isinstance(data.get("active"), bool):
            log.warning("Ignoring malformed state file %s", self._path)
            return inactive_state()
        return data

    def save(self, state: Dict[str, Any]) -> None:
        """Replace the record with *state* (parent directories are created).

        The document is written to a temporary file beside the target and
        renamed over it, so a crash mid-write leaves the previous record.
        """
        text = json.dumps(state, indent=2)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{STATE_FILENAME}.", suffix=".tmp", dir=self._path.parent,
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(text)
            os.replace(tmp_name, self._path)
        except Exception:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise
        log.debug("Saved state to %s: %s", self._path, state)
