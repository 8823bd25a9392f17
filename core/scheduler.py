"""
scheduler.py — The weekly shutdown scheduler (state machine + trigger owner).

States
------
  Inactive (initial)  ──activate──▶  Active
  Active              ──update────▶  Active   (full rebuild)
  any                 ──deactivate─▶ Inactive (idempotent, never raises)

Every activation stops the previous triggers first, so at most one schedule
is ever live.  The scheduler is the only writer of the state file and every
write is followed by a listener notification with the new state.
"""
from __future__ import annotations

import functools
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from core.errors import (
    InvalidTimeFormat, NoValidDaysError, NotActiveError, ShutdownFailedError, ValidationError,
)
from core.notify import REMINDER_TITLE, NotificationSender, compute_reminder_message, sender_for_platform
from core.shutdown import ShutdownExecutor, executor_for_platform
from core.state import StateStore, inactive_state
from core.trigger import WeeklyTrigger, parse_days, parse_time

log = logging.getLogger(__name__)

StateListener = Callable[[Dict[str, Any]], None]
TriggerFactory = Callable[..., WeeklyTrigger]


class _Plan:
    """A validated config, ready to be turned into triggers."""

    def __init__(self, time: str, days: List[str], reminders: List[str]) -> None:
        self.time = time
        self.days = days
        self.reminders = reminders
        self.hour, self.minute = parse_time(time)
        self.weekdays = parse_days(days)
        if not self.weekdays:
            raise NoValidDaysError()
        self.reminder_times: List[Tuple[str, int, int]] = []
        for text in reminders:
            try:
                h, m = parse_time(text)
            except InvalidTimeFormat:
                log.debug("Skipping invalid reminder time %r", text)
                continue
            self.reminder_times.append((text, h, m))

    def to_state(self) -> Dict[str, Any]:
        return {
            "active": True,
            "time": self.time,
            "days": list(self.days),
            "reminders": list(self.reminders),
        }


class ShutdownScheduler:
    """Owns the shutdown schedule of one host process.

    Usage::

        s = ShutdownScheduler(state_dir)
        s.activate({"time": "22:00", "days": ["monday", "friday"], "reminders": ["21:45"]})
        s.get_state()    # {"active": True, "time": "22:00", ...}
        # … on quit …
        s.deactivate()

    Args:
        state_dir:       Directory holding ``shutdown-state.json``.
        executor:        Shutdown executor (default: for the running OS).
        notifier:        Notification sender (default: for the running OS).
        trigger_factory: Called like :class:`WeeklyTrigger`; tests pass fakes.
        clock:           Returns "now" for reminder wording.
    """

    def __init__(
        self,
        state_dir: Union[str, Path],
        executor: Optional[ShutdownExecutor] = None,
        notifier: Optional[NotificationSender] = None,
        trigger_factory: TriggerFactory = WeeklyTrigger,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = StateStore(state_dir)
        self._executor = executor or executor_for_platform()
        self._notifier = notifier or sender_for_platform()
        self._trigger_factory = trigger_factory
        self._clock = clock

        self._lock = threading.RLock()
        self._triggers: List[WeeklyTrigger] = []
        self._plan: Optional[_Plan] = None
        self._state: Dict[str, Any] = inactive_state()
        self._listeners: List[StateListener] = []

    # ── Public API ─────────────────────────────────────────────────────────
    def activate(self, config: Mapping[str, Any]) -> bool:
        """Arm the schedule described by *config*, replacing any previous one.

        Raises:
            ValidationError:   time or days missing / empty.
            InvalidTimeFormat: time is not ``HH:MM``.
            NoValidDaysError:  none of the days is a weekday name.

        Nothing is stopped or written when validation fails.  If the state
        file cannot be written the previous schedule stays armed and the
        OSError propagates.
        """
        with self._lock:
            plan = self._validate(config)
            previous = self._plan
            self._teardown()
            self._triggers = self._arm(plan)

            try:
                self._save(plan.to_state())
            except OSError:
                # The file still holds the previous record: put its triggers back
                self._stop_triggers()
                if previous is not None:
                    self._triggers = self._arm(previous)
                log.error("Could not persist new schedule; previous schedule kept")
                raise
            self._plan = plan
            log.info(
                "Shutdown scheduled at %s on %s (%d reminder(s))",
                plan.time, ", ".join(plan.days), len(plan.reminder_times),
            )
            return True

    def update(self, config: Mapping[str, Any]) -> bool:
        """Replace the active schedule. Raises NotActiveError when inactive."""
        with self._lock:
            if not self._state.get("active"):
                raise NotActiveError()
            return self.activate(config)

    def deactivate(self) -> None:
        """Stop every trigger and persist ``{"active": False}``. Never raises.

        The previous time / days / reminders are not kept in the state file.
        """
        with self._lock:
            self._teardown()
            self._plan = None
            try:
                self._save(inactive_state())
            except OSError:
                log.exception("Could not persist inactive state")
                self._state = inactive_state()
            log.info("Shutdown schedule deactivated")

    def get_state(self) -> Dict[str, Any]:
        """Return a copy of the persisted state (``{"active": False}`` if none)."""
        with self._lock:
            self._state = self._store.load()
            return dict(self._state)

    def add_listener(self, listener: StateListener) -> None:
        """Call *listener* with the new state after every write."""
        self._listeners.append(listener)

    # ── State inspection ───────────────────────────────────────────────────
    @property
    def is_active(self) -> bool:
        return bool(self._state.get("active"))

    @property
    def live_trigger_count(self) -> int:
        return len(self._triggers)

    @property
    def next_shutdown_at(self) -> Optional[datetime]:
        """When the shutdown trigger fires next, if one is live."""
        with self._lock:
            for trigger in self._triggers:
                if trigger.name == "shutdown":
                    return trigger.next_fire_at
        return None

    # ── Trigger actions (run on trigger threads, never take self._lock) ────
    def _fire_shutdown(self) -> None:
        log.info("Scheduled shutdown time reached")
        try:
            self._executor.execute_shutdown()
        except ShutdownFailedError as exc:
            log.error("%s", exc)
            self._notifier.dispatch("Shutdown failed", str(exc))

    def _fire_reminder(self, shutdown_time: str, days: Tuple[str, ...]) -> None:
        message = compute_reminder_message(shutdown_time, days, self._clock())
        log.info("Reminder: %s", message)
        self._notifier.dispatch(REMINDER_TITLE, message)

    # ── Internal ───────────────────────────────────────────────────────────
    @staticmethod
    def _validate(config: Mapping[str, Any]) -> _Plan:
        time = config.get("time")
        days = config.get("days")
        if not time or not days:
            raise ValidationError()
        if isinstance(days, str):
            days = [days]
        reminders = config.get("reminders") or []
        if isinstance(reminders, str):
            reminders = [reminders]
        return _Plan(time, list(days), list(reminders))

    def _arm(self, plan: _Plan) -> List[WeeklyTrigger]:
        triggers = [
            self._trigger_factory(
                plan.hour, plan.minute, plan.weekdays,
                action=self._fire_shutdown, name="shutdown",
            )
        ]
        for text, hour, minute in plan.reminder_times:
            triggers.append(
                self._trigger_factory(
                    hour, minute, plan.weekdays,
                    action=functools.partial(self._fire_reminder, plan.time, tuple(plan.days)),
                    name=f"reminder-{text}",
                )
            )
        return triggers

    def _teardown(self) -> None:
        self._stop_triggers()
        self._executor.cancel_os_shutdown()

    def _stop_triggers(self) -> None:
        for trigger in self._triggers:
            trigger.stop()
        self._triggers = []

    def _save(self, state: Dict[str, Any]) -> None:
        self._store.save(state)
        self._state = dict(state)
        for listener in list(self._listeners):
            try:
                listener(dict(state))
            except Exception:
                log.exception("State listener %r failed", listener)
