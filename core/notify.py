"""
notify.py — Reminder messages and native desktop notifications.

:func:`compute_reminder_message` is pure (it takes ``now``) so the wording
can be tested without a clock.  The senders never raise: a notification
that cannot be shown must not break the schedule.
"""
from __future__ import annotations

import logging
import sys
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from core.shutdown import COMMAND_TIMEOUT_S, Runner, run_command, try_command
from core.trigger import DAY_NAMES, parse_days, parse_time, weekday_index

log = logging.getLogger(__name__)

APP_NAME = "Timed Shutdown"
REMINDER_TITLE = "Shutdown Reminder"


# ── Message computation ────────────────────────────────────────────────────
def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}{'s' if n != 1 else ''}"


def next_shutdown_at(
    shutdown_time: str, schedule_days: Optional[Iterable[str]], now: datetime,
) -> datetime:
    """The shutdown instant a reminder issued at *now* refers to.

    Today's slot if it is still ahead.  Otherwise the first scheduled weekday
    counting from today, where today itself means a week from today; simply
    tomorrow when the days are unknown.
    """
    hour, minute = parse_time(shutdown_time)
    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate > now:
        return candidate
    scheduled = parse_days(schedule_days) if schedule_days else set()
    if not scheduled:
        return candidate + timedelta(days=1)
    today = weekday_index(now)
    offset = next(i for i in range(7) if (today + i) % 7 in scheduled)
    if offset == 0:
        offset = 7
    return candidate + timedelta(days=offset)


def format_remaining(gap: timedelta) -> str:
    """``"2 days 3 hours"`` / ``"1 hour 15 minutes"``; minutes only under a day."""
    total_minutes = max(int(gap.total_seconds() // 60), 0)
    days, rest = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(rest, 60)
    parts: List[str] = []
    if days:
        parts.append(_plural(days, "day"))
    if hours:
        parts.append(_plural(hours, "hour"))
    if minutes and not days:
        parts.append(_plural(minutes, "minute"))
    return " ".join(parts)


def compute_reminder_message(
    shutdown_time: str, schedule_days: Optional[Iterable[str]], now: datetime,
) -> str:
    """Human-readable "System will shut down …" text for a reminder at *now*.

    Example::

        >>> compute_reminder_message("22:00", ["monday"], datetime(2024, 1, 1, 21, 45))
        'System will shut down today at 22:00 (in 15 minutes)'
    """
    target = next_shutdown_at(shutdown_time, schedule_days, now)
    hour, minute = parse_time(shutdown_time)
    at = f"{hour:02d}:{minute:02d}"

    day_gap = (target.date() - now.date()).days
    if day_gap == 0:
        when = "today"
    elif day_gap == 1:
        when = "tomorrow"
    else:
        when = f"on {DAY_NAMES[weekday_index(target)].capitalize()}"

    message = f"System will shut down {when} at {at}"
    remaining = format_remaining(target - now)
    if remaining:
        message += f" (in {remaining})"
    return message


# ── Escaping ───────────────────────────────────────────────────────────────
def escape_powershell(text: str) -> str:
    """Escape for a single-quoted PowerShell string literal."""
    return text.replace("'", "''")


def escape_applescript(text: str) -> str:
    """Escape for a double-quoted AppleScript string literal."""
    return text.replace("\\", "\\\\").replace('"', '\\"')


# ── Senders ────────────────────────────────────────────────────────────────
class NotificationSender:
    """Linux / generic freedesktop sender (``notify-send``)."""

    platform = "linux"

    def __init__(self, runner: Optional[Runner] = None) -> None:
        self._runner = runner or run_command

    def dispatch(self, title: str, message: str) -> bool:
        """Show a notification. Returns whether it was shown; never raises."""
        try:
            shown = self._send(title, message)
        except Exception:
            log.warning("Notification %r could not be shown", title, exc_info=True)
            return False
        if not shown:
            log.warning("Notification %r could not be shown", title)
        return shown

    def _send(self, title: str, message: str) -> bool:
        return try_command(
            self._runner,
            ["notify-send", "--app-name", APP_NAME, title, message],
            COMMAND_TIMEOUT_S,
        )


_TOAST_SCRIPT = (
    "[Windows.UI.Notifications.ToastNotificationManager, Windows.UI.Notifications, "
    "ContentType = WindowsRuntime] | Out-Null; "
    "$template = [Windows.UI.Notifications.ToastNotificationManager]::GetTemplateContent("
    "[Windows.UI.Notifications.ToastTemplateType]::ToastText02); "
    "$text = $template.GetElementsByTagName('text'); "
    "$text.Item(0).AppendChild($template.CreateTextNode('{title}')) | Out-Null; "
    "$text.Item(1).AppendChild($template.CreateTextNode('{message}')) | Out-Null; "
    "$toast = [Windows.UI.Notifications.ToastNotification]::new($template); "
    "[Windows.UI.Notifications.ToastNotificationManager]::CreateToastNotifier('{app}').Show($toast)"
)


class WindowsNotificationSender(NotificationSender):
    """PowerShell toast, falling back to ``msg *`` on older systems."""

    platform = "win32"

    def _send(self, title: str, message: str) -> bool:
        script = _TOAST_SCRIPT.format(
            title=escape_powershell(title),
            message=escape_powershell(message),
            app=escape_powershell(APP_NAME),
        )
        argv = ["powershell", "-NoProfile", "-NonInteractive", "-Command", script]
        if try_command(self._runner, argv, COMMAND_TIMEOUT_S):
            return True
        return try_command(self._runner, ["msg", "*", f"{title}: {message}"], COMMAND_TIMEOUT_S)


class MacNotificationSender(NotificationSender):
    platform = "darwin"

    def _send(self, title: str, message: str) -> bool:
        script = 'display notification "{}" with title "{}"'.format(
            escape_applescript(message), escape_applescript(title),
        )
        return try_command(self._runner, ["osascript", "-e", script], COMMAND_TIMEOUT_S)


def sender_for_platform(platform: Optional[str] = None, runner: Optional[Runner] = None) -> NotificationSender:
    platform = platform or sys.platform
    if platform == "win32":
        return WindowsNotificationSender(runner)
    if platform == "darwin":
        return MacNotificationSender(runner)
    return NotificationSender(runner)
