# stash_watch/watchdog/handlers.py

"""
Event classification and the watchdog handler feeding the debouncer
"""
import logging
import os
import stat
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler

from ..utils.errors import WatchRegistrationError
from ..utils.logger import VERBOSE
from .events import Classification, Operation, RawEvent, from_watchdog
from .registry import WatchRegistry
from .watcher import enumerate_subtree

logger = logging.getLogger(__name__)


class EventClassifier:
    """
    Decides what a raw event means for the watched tree
    """

    def __init__(self, registry: WatchRegistry, strict: bool = False):
        """
        Initialize classifier

        Args:
            registry: Registry new directories are enrolled with
            strict: Raise WatchRegistrationError when a new directory cannot
                be watched instead of logging and dropping the event
        """
        self.registry = registry
        self.strict = strict

    def classify(self, event: RawEvent) -> Classification:
        if event.operation is Operation.CREATE:
            return self._classify_created(event)

        if event.operation is Operation.RENAME:
            # The destination arrives as its own create event
            if self.registry.forget(Path(os.path.abspath(event.path))):
                logger.log(VERBOSE, f"Directory moved away, no longer watching: {event.path}")
            return Classification.DROPPED

        if event.operation is Operation.REMOVE:
            # A vanished directory takes its watch with it
            self.registry.forget(Path(os.path.abspath(event.path)))

        return Classification.CONTENT_CHANGED

    def _classify_created(self, event: RawEvent) -> Classification:
        logger.log(VERBOSE, f"Created path item: {event.path}")

        path = Path(os.path.abspath(event.path))
        try:
            mode = path.stat().st_mode
        except OSError as e:
            logger.error(f"Could not stat {path}: {e}")
            return Classification.DROPPED

        if not stat.S_ISDIR(mode):
            return Classification.CONTENT_CHANGED

        try:
            self.registry.ensure_watched(path)
            # Children created before the watch was in place would be missed
            enumerate_subtree(path, self.registry, strict=self.strict)
        except WatchRegistrationError as e:
            if self.strict:
                raise
            logger.error(f"New directory will not be watched, {e}")
            return Classification.DROPPED
        except OSError as e:
            logger.error(f"Could not list new directory {path}: {e}")

        logger.info(f"New directory detected, now watching directory: {path}")
        return Classification.NEW_DIRECTORY


class WatchEventHandler(FileSystemEventHandler):
    """
    Watchdog handler that converts events and hands them to a debouncer
    """

    def __init__(self, coordinator: Any = None,
                 on_fatal: Optional[Callable[[BaseException], None]] = None):
        """
        Initialize event handler

        Args:
            coordinator: DebounceCoordinator receiving raw events
            on_fatal: Called when an event causes a fatal error
        """
        super().__init__()
        self.coordinator = coordinator
        self.on_fatal = on_fatal

        # Statistics
        self.stats = {
            'events_received': 0,
            'errors': 0,
            'last_event': None,
        }

    def on_any_event(self, event: FileSystemEvent):
        """Handle any file system event"""
        self.stats['events_received'] += 1
        self.stats['last_event'] = datetime.now()

        for raw_event in from_watchdog(event):
            try:
                self.coordinator.submit(raw_event)
            except WatchRegistrationError as e:
                self.stats['errors'] += 1
                logger.critical(f"Fatal watch error: {e}")
                if self.on_fatal:
                    self.on_fatal(e)
            except Exception as e:
                self.stats['errors'] += 1
                logger.error(f"Error handling event {raw_event}: {e}")

    def get_stats(self) -> Dict[str, Any]:
        """Get handler statistics"""
        return self.stats.copy()
