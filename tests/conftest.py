"""
conftest.py — Shared fakes for the scheduler tests.

No test ever runs a real shutdown, notification or week-long timer: the
scheduler gets a mocked executor / notifier and a trigger factory that only
records what it was asked to create.
"""
from __future__ import annotations

from pathlib import Path
from typing import Callable, List
from unittest.mock import MagicMock

import pytest

from core.notify import NotificationSender
from core.scheduler import ShutdownScheduler
from core.shutdown import ShutdownExecutor


class FakeTrigger:
    """Stands in for WeeklyTrigger; ``fire()`` runs the action by hand."""

    def __init__(self, hour, minute, weekdays, action, name="weekly-trigger", **kwargs) -> None:
        self.hour = hour
        self.minute = minute
        self.weekdays = frozenset(weekdays)
        self.action = action
        self.name = name
        self.stopped = False
        self.next_fire_at = None

    def stop(self) -> None:
        self.stopped = True

    def fire(self) -> None:
        self.action()


@pytest.fixture
def created_triggers() -> List[FakeTrigger]:
    return []


@pytest.fixture
def trigger_factory(created_triggers: List[FakeTrigger]) -> Callable[..., FakeTrigger]:
    def factory(*args, **kwargs) -> FakeTrigger:
        trigger = FakeTrigger(*args, **kwargs)
        created_triggers.append(trigger)
        return trigger
    return factory


@pytest.fixture
def executor() -> MagicMock:
    return MagicMock(spec=ShutdownExecutor)


@pytest.fixture
def notifier() -> MagicMock:
    return MagicMock(spec=NotificationSender)


@pytest.fixture
def make_scheduler(
    tmp_path: Path, executor: MagicMock, notifier: MagicMock, trigger_factory,
) -> Callable[..., ShutdownScheduler]:
    """Build schedulers sharing one state directory (simulates restarts)."""
    made: List[ShutdownScheduler] = []

    def make(**overrides) -> ShutdownScheduler:
        kwargs = dict(
            state_dir=tmp_path,
            executor=executor,
            notifier=notifier,
            trigger_factory=trigger_factory,
        )
        kwargs.update(overrides)
        s = ShutdownScheduler(**kwargs)
        made.append(s)
        return s

    yield make
    for s in made:
        s.deactivate()


@pytest.fixture
def scheduler(make_scheduler) -> ShutdownScheduler:
    return make_scheduler()
