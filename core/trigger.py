"""
trigger.py — Weekly recurring time-of-day triggers.

A :class:`WeeklyTrigger` fires an action at ``HH:MM`` local time on every
weekday in its mask, week after week, until stopped.  Like the one-shot
timer it grew out of, it waits on a ``threading.Event`` so cancellation is
instant with no busy-loop; the wait is sliced so a suspended machine or a
clock change is noticed within :data:`POLL_INTERVAL_S`.  A slot slept
through is skipped rather than fired late on resume.

Weekday indices follow the schedule file: 0=Sunday … 6=Saturday.
"""
from __future__ import annotations

import logging
import re
import threading
from datetime import datetime, timedelta, tzinfo
from typing import Callable, FrozenSet, Iterable, Optional, Set, Tuple

from core.errors import InvalidTimeFormat

log = logging.getLogger(__name__)

DAY_NAMES = (
    "sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday",
)

# Longest single wait before the clock is re-read
POLL_INTERVAL_S = 30.0

# A slot reached later than one poll plus this many seconds was missed
# (machine suspended or clock moved forward) and is skipped, not replayed
MISSED_GRACE_S = 5.0

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{1,2})\s*$")


# ── Parsing ────────────────────────────────────────────────────────────────
def parse_time(text: object) -> Tuple[int, int]:
    """Parse 24-hour ``HH:MM`` into ``(hour, minute)``.

    Raises:
        InvalidTimeFormat: not a string, not ``HH:MM``, or out of range.
    """
    if not isinstance(text, str):
        raise InvalidTimeFormat()
    m = _TIME_RE.match(text)
    if m is None:
        raise InvalidTimeFormat()
    hour, minute = int(m.group(1)), int(m.group(2))
    validate_time(hour, minute)
    return hour, minute


def validate_time(hour: int, minute: int) -> None:
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise InvalidTimeFormat()


def parse_days(names: Iterable[object]) -> Set[int]:
    """Map weekday names (any case) to indices; unknown names are dropped."""
    result: Set[int] = set()
    for name in names:
        if not isinstance(name, str):
            continue
        try:
            result.add(DAY_NAMES.index(name.strip().lower()))
        except ValueError:
            log.debug("Ignoring unknown day name %r", name)
    return result


def weekday_index(moment: datetime) -> int:
    """Sunday-based weekday index of *moment* (``datetime.weekday`` is Monday-based)."""
    return (moment.weekday() + 1) % 7


# ── Occurrence arithmetic ──────────────────────────────────────────────────
def next_occurrence(
    hour: int, minute: int, weekdays: Iterable[int], after: datetime,
) -> datetime:
    """First instant strictly after *after* at ``hour:minute`` on a masked weekday.

    The result carries *after*'s tzinfo (naive in, naive out).
    """
    mask = frozenset(weekdays)
    if not mask:
        raise ValueError("weekday mask must not be empty")
    base = after.replace(hour=hour, minute=minute, second=0, microsecond=0)
    # Eight days covers "today, but already passed" plus a full week
    for offset in range(8):
        candidate = base + timedelta(days=offset)
        if candidate > after and weekday_index(candidate) in mask:
            return candidate
    raise AssertionError("unreachable: a non-empty weekday mask always matches")


def local_timezone() -> tzinfo:
    """The host's current local timezone."""
    return datetime.now().astimezone().tzinfo


# ── Trigger ────────────────────────────────────────────────────────────────
class WeeklyTrigger:
    """Calls *action* at ``hour:minute`` on every weekday in *weekdays*.

    Usage::

        t = WeeklyTrigger(22, 0, {1, 3, 5}, action=do_shutdown, name="shutdown")
        # … later …
        t.stop()

    Once :meth:`stop` has returned the action will not run again, even if a
    fire was in progress when it was called (stop waits for it to finish).
    Calling :meth:`stop` from inside *action* is allowed.

    Args:
        clock: Returns the current time.  Defaults to "now" in the local
               timezone resolved when the trigger is created.
        start: Start the background thread immediately.
    """

    def __init__(
        self,
        hour: int,
        minute: int,
        weekdays: Iterable[int],
        action: Callable[[], None],
        name: str = "weekly-trigger",
        clock: Optional[Callable[[], datetime]] = None,
        poll_interval: float = POLL_INTERVAL_S,
        start: bool = True,
    ) -> None:
        validate_time(hour, minute)
        mask: FrozenSet[int] = frozenset(weekdays)
        if not mask or not mask <= frozenset(range(7)):
            raise ValueError(f"invalid weekday mask: {sorted(mask)}")

        self.hour = hour
        self.minute = minute
        self.weekdays = mask
        self.name = name
        self._action = action
        self._poll_interval = poll_interval

        if clock is None:
            tz = local_timezone()
            clock = lambda: datetime.now(tz)  # noqa: E731
        self._clock = clock

        self._cancel_event = threading.Event()
        # Held for the whole duration of a fire; stop() takes it too
        self._fire_lock = threading.RLock()
        self._thread: Optional[threading.Thread] = None
        self._next_fire_at: Optional[datetime] = None
        self.fire_count = 0

        if start:
            self.start()

    # ── Public API ─────────────────────────────────────────────────────────
    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("Trigger already started")
        self._thread = threading.Thread(target=self._run, daemon=True, name=self.name)
        self._thread.start()

    def stop(self) -> None:
        """Cancel the trigger. Safe to call repeatedly and from the action itself."""
        self._cancel_event.set()
        with self._fire_lock:
            self._next_fire_at = None

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    # ── State inspection ───────────────────────────────────────────────────
    @property
    def is_active(self) -> bool:
        return not self._cancel_event.is_set()

    @property
    def next_fire_at(self) -> Optional[datetime]:
        return self._next_fire_at

    def __repr__(self) -> str:
        return (
            f"<WeeklyTrigger {self.name} {self.hour:02d}:{self.minute:02d} "
            f"days={sorted(self.weekdays)} active={self.is_active}>"
        )

    # ── Internal ───────────────────────────────────────────────────────────
    def _run(self) -> None:
        after = self._clock()
        while not self._cancel_event.is_set():
            fire_at = next_occurrence(self.hour, self.minute, self.weekdays, after)
            with self._fire_lock:
                if self._cancel_event.is_set():
                    return
                self._next_fire_at = fire_at
            if not self._wait_until(fire_at):
                return

            now = self._clock()
            late_s = (now - fire_at).total_seconds()
            if late_s > self._poll_interval + MISSED_GRACE_S:
                # Suspended or clock jumped past the slot: skip it, no catch-up
                log.warning(
                    "Trigger %s missed %s by %.0f s; skipping to the next occurrence",
                    self.name, fire_at, late_s,
                )
                after = now
                continue

            with self._fire_lock:
                if self._cancel_event.is_set():
                    return
                log.info("Trigger %s firing (scheduled %s)", self.name, fire_at)
                self.fire_count += 1
                try:
                    self._action()
                except Exception:
                    log.exception("Trigger %s action failed", self.name)
            after = max(fire_at, self._clock())

    def _wait_until(self, fire_at: datetime) -> bool:
        """Block until *fire_at*. Returns False if cancelled first."""
        while True:
            delay_s = (fire_at - self._clock()).total_seconds()
            if delay_s <= 0:
                return True
            if self._cancel_event.wait(timeout=min(delay_s, self._poll_interval)):
                return False
