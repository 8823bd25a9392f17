"""
shutdown.py — Platform shutdown / cancel commands.

One executor class per OS, picked once with :func:`executor_for_platform`.
Commands are always passed as argument lists (no shell), each bounded by
:data:`COMMAND_TIMEOUT_S` so a hung command cannot block the caller.

Tests inject a fake ``runner`` instead of ever touching the real OS.
"""
from __future__ import annotations

import logging
import subprocess
import sys
from typing import Callable, List, Optional, Sequence

from core.errors import ShutdownFailedError

log = logging.getLogger(__name__)

COMMAND_TIMEOUT_S = 5.0

# runner(argv, timeout) -> CompletedProcess; raises OSError / TimeoutExpired
Runner = Callable[[Sequence[str], float], "subprocess.CompletedProcess[str]"]


def run_command(argv: Sequence[str], timeout: float) -> "subprocess.CompletedProcess[str]":
    return subprocess.run(
        list(argv),
        capture_output=True,
        text=True,
        timeout=timeout,
        check=False,
    )


def try_command(runner: Runner, argv: Sequence[str], timeout: float = COMMAND_TIMEOUT_S) -> bool:
    """Run *argv*; return True on exit status 0, False on any failure."""
    log.debug("Running %s", argv)
    try:
        result = runner(argv, timeout)
    except subprocess.TimeoutExpired:
        log.warning("%s timed out after %.0fs", argv[0], timeout)
        return False
    except OSError as exc:
        log.warning("Could not run %s: %s", argv[0], exc)
        return False
    if result.returncode != 0:
        log.warning(
            "%s exited with %s: %s",
            " ".join(argv), result.returncode, (result.stderr or "").strip(),
        )
        return False
    return True


# ── Executors ──────────────────────────────────────────────────────────────
class ShutdownExecutor:
    """Base executor. Subclasses list the command lines to try, in order."""

    platform = "posix"
    shutdown_attempts: List[List[str]] = [
        ["shutdown", "-h", "now"],
        ["sudo", "-n", "shutdown", "-h", "now"],
    ]
    cancel_command: List[str] = ["shutdown", "-c"]

    def __init__(self, runner: Optional[Runner] = None) -> None:
        self._runner = runner or run_command

    def execute_shutdown(self) -> None:
        """Power the machine off now.

        Raises:
            ShutdownFailedError: every attempt failed (e.g. elevation not
                                 pre-authorised).
        """
        for argv in self.shutdown_attempts:
            if try_command(self._runner, argv):
                log.info("Shutdown command accepted: %s", " ".join(argv))
                return
        log.error("Shutdown failed on %s", self.platform)
        raise ShutdownFailedError()

    def cancel_os_shutdown(self) -> None:
        """Best-effort cancel of a queued OS shutdown. Never raises."""
        try:
            try_command(self._runner, self.cancel_command)
        except Exception:
            # Nothing pending is the common case
            log.debug("cancel_os_shutdown failed", exc_info=True)


class WindowsShutdownExecutor(ShutdownExecutor):
    platform = "win32"
    shutdown_attempts = [["shutdown", "/s", "/t", "0"]]
    cancel_command = ["shutdown", "/a"]


class MacShutdownExecutor(ShutdownExecutor):
    platform = "darwin"
    # macOS needs root for shutdown: always elevate, never prompt
    shutdown_attempts = [["sudo", "-n", "shutdown", "-h", "now"]]
    cancel_command = ["sudo", "-n", "killall", "shutdown"]


class LinuxShutdownExecutor(ShutdownExecutor):
    platform = "linux"


def executor_for_platform(platform: Optional[str] = None, runner: Optional[Runner] = None) -> ShutdownExecutor:
    """Return the executor for *platform* (default: the running OS)."""
    platform = platform or sys.platform
    if platform == "win32":
        return WindowsShutdownExecutor(runner)
    if platform == "darwin":
        return MacShutdownExecutor(runner)
    if platform.startswith("linux"):
        return LinuxShutdownExecutor(runner)
    return ShutdownExecutor(runner)
