"""Shared fixtures for stash-watch tests."""
from __future__ import annotations

import threading
import time
from typing import Callable

import pytest

from stash_watch.watchdog.events import Classification
from stash_watch.watchdog.registry import WatchRegistry


class FakeObserver:
    """Stands in for a watchdog observer; records schedule calls."""

    def __init__(self) -> None:
        self.scheduled: list[str] = []
        self.unscheduled: list[tuple[str, bool]] = []
        self.fail_paths: set[str] = set()
        self.started = False
        self.stopped = False

    def schedule(self, handler, path, recursive=False):
        if path in self.fail_paths:
            raise OSError(28, "inotify watch limit reached")
        self.scheduled.append(path)
        return (path, recursive)

    def unschedule(self, watch):
        self.unscheduled.append(watch)

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def join(self, timeout=None) -> None:
        pass


class RecordingAction:
    """Thread-safe callable counting invocations and their times."""

    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[float] = []
        self.error = error
        self._lock = threading.Lock()

    def __call__(self) -> bool:
        with self._lock:
            self.calls.append(time.monotonic())
        if self.error is not None:
            raise self.error
        return True

    @property
    def count(self) -> int:
        with self._lock:
            return len(self.calls)


class StaticClassifier:
    """Classifier returning a fixed outcome for every event."""

    def __init__(self, outcome: Classification = Classification.CONTENT_CHANGED) -> None:
        self.outcome = outcome
        self.seen = []

    def classify(self, event):
        self.seen.append(event)
        return self.outcome


def wait_until(predicate: Callable[[], bool], *, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture()
def observer() -> FakeObserver:
    return FakeObserver()


@pytest.fixture()
def registry(observer: FakeObserver) -> WatchRegistry:
    return WatchRegistry(observer, handler=object())


@pytest.fixture()
def action() -> RecordingAction:
    return RecordingAction()
