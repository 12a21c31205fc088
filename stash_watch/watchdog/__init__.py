#stash_watch/watchdog/__init__.py

"""
stash-watch Watchdog Module
File system monitoring and debouncing
"""
from .monitor import FileMonitor, RootWatcher
from .events import RawEvent, Operation, Classification
from .debounce import DebounceCoordinator
from .handlers import EventClassifier, WatchEventHandler
from .registry import WatchRegistry
from .roots import WatchRoots
from .watcher import SubtreeEnumerator, enumerate_subtree

__all__ = [
    'FileMonitor',
    'RootWatcher',
    'RawEvent',
    'Operation',
    'Classification',
    'DebounceCoordinator',
    'EventClassifier',
    'WatchEventHandler',
    'WatchRegistry',
    'WatchRoots',
    'SubtreeEnumerator',
    'enumerate_subtree',
]
