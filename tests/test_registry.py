"""Tests for :mod:`stash_watch.watchdog.registry`."""
from __future__ import annotations

import threading
from pathlib import Path

import pytest

from stash_watch.utils.errors import WatchRegistrationError
from stash_watch.watchdog.registry import WatchRegistry


def test_ensure_watched_is_idempotent(registry, observer):
    assert registry.ensure_watched("/data") is True
    assert registry.ensure_watched("/data") is False
    assert registry.ensure_watched(Path("/data")) is False

    assert observer.scheduled == ["/data"]
    assert len(registry) == 1
    assert registry.is_watched("/data")


def test_top_directory_is_scheduled_recursively(registry, observer):
    registry.ensure_watched("/data")

    assert registry.is_scheduled("/data")
    registry.forget("/data")
    assert observer.unscheduled == [("/data", True)]


def test_descendants_are_recorded_without_new_watches(registry, observer):
    registry.ensure_watched("/data")

    for index in range(300):
        assert registry.ensure_watched(f"/data/d{index}/inner") is True

    assert observer.scheduled == ["/data"]
    assert len(registry) == 301
    assert registry.is_watched("/data/d12/inner")
    assert not registry.is_scheduled("/data/d12/inner")


def test_ancestor_absorbs_scheduled_descendant(registry, observer):
    registry.ensure_watched("/data/sub")

    assert registry.ensure_watched("/data") is True

    assert observer.scheduled == ["/data/sub", "/data"]
    assert observer.unscheduled == [("/data/sub", True)]
    assert registry.is_watched("/data/sub")
    assert not registry.is_scheduled("/data/sub")


def test_registration_failure_raises_and_leaves_no_state(registry, observer):
    observer.fail_paths.add("/data/full")

    with pytest.raises(WatchRegistrationError) as excinfo:
        registry.ensure_watched("/data/full")

    assert excinfo.value.path == Path("/data/full")
    assert isinstance(excinfo.value.cause, OSError)
    assert not registry.is_watched("/data/full")

    observer.fail_paths.clear()
    assert registry.ensure_watched("/data/full") is True


def test_forget_allows_rewatching(registry, observer):
    registry.ensure_watched("/data/sub")

    assert registry.forget("/data/sub") is True
    assert registry.forget("/data/sub") is False
    assert registry.ensure_watched("/data/sub") is True

    assert observer.scheduled == ["/data/sub", "/data/sub"]


def test_forget_drops_the_whole_subtree(registry, observer):
    registry.ensure_watched("/data")
    registry.ensure_watched("/data/old")
    registry.ensure_watched("/data/old/season1")
    registry.ensure_watched("/data/older")

    assert registry.forget("/data/old") is True

    assert sorted(registry.watched()) == [Path("/data"), Path("/data/older")]
    # the root's watch still covers everything that is left
    assert observer.unscheduled == []


def test_forget_unknown_path_is_noop(registry, observer):
    assert registry.forget("/data/never.mp4") is False
    assert observer.unscheduled == []


def test_missing_handler_is_a_registration_error(observer):
    registry = WatchRegistry(observer)

    with pytest.raises(WatchRegistrationError):
        registry.ensure_watched("/data")


def test_concurrent_registration_schedules_once(registry, observer):
    barrier = threading.Barrier(8)
    results: list[bool] = []
    lock = threading.Lock()

    def register():
        barrier.wait()
        added = registry.ensure_watched("/data/shared")
        with lock:
            results.append(added)

    threads = [threading.Thread(target=register) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results.count(True) == 1
    assert observer.scheduled == ["/data/shared"]
