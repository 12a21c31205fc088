# stash_watch/watchdog/debounce.py

"""
Per-path debouncing of file system events
"""
import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict

from ..utils.errors import WatchRegistrationError
from .events import Classification, RawEvent

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_TIME = 0.1  # seconds

# Shared key when all paths settle through a single window
ALL_PATHS = "*"


@dataclass
class PendingPath:
    """A path waiting for its quiet window to close"""
    path: Path
    deadline: float
    event_count: int = 1
    timer: threading.Timer = field(default=None, repr=False)

    def update(self, path: Path, deadline: float):
        self.path = path
        self.deadline = deadline
        self.event_count += 1

    def remaining(self) -> float:
        return self.deadline - time.monotonic()


class DebounceCoordinator:
    """
    Coalesces bursts of events per path and fires one action per burst.

    Each path with recent activity owns a deadline and a single timer
    thread. Further events only push the deadline back; when the timer
    wakes early it re-arms for the time left, so a long burst costs one
    thread per elapsed window rather than one per event. The action runs
    once the path has been quiet for the full window, and paths never wait
    on each other.
    """

    def __init__(self, classifier: Any, action: Callable[[], Any],
                 debounce_time: float = DEFAULT_DEBOUNCE_TIME,
                 coalesce_paths: bool = False):
        """
        Initialize coordinator

        Args:
            classifier: EventClassifier interpreting incoming events
            action: Called once per settled burst, with no arguments
            debounce_time: Quiet window in seconds
            coalesce_paths: Share one window across every path
        """
        self.classifier = classifier
        self.action = action
        self.debounce_time = debounce_time
        self.coalesce_paths = coalesce_paths

        self._pending: Dict[str, PendingPath] = {}
        self._lock = threading.Lock()
        self._stopped = False

        # Statistics
        self.stats = {
            'events_received': 0,
            'events_ignored': 0,
            'events_debounced': 0,
            'actions_fired': 0,
            'action_errors': 0,
        }

    def _key(self, path) -> str:
        if self.coalesce_paths:
            return ALL_PATHS
        return str(path)

    def submit(self, event: RawEvent) -> bool:
        """
        Feed one raw event

        Returns:
            True if the event armed or extended a quiet window
        """
        self.stats['events_received'] += 1

        if not event.actionable:
            self.stats['events_ignored'] += 1
            return False

        logger.debug(f"EVENT {event}")

        try:
            outcome = self.classifier.classify(event)
        except WatchRegistrationError:
            raise
        except Exception as e:
            logger.error(f"Error classifying event {event}: {e}")
            return False

        if outcome is not Classification.CONTENT_CHANGED:
            return False

        key = self._key(event.path)
        deadline = time.monotonic() + self.debounce_time

        with self._lock:
            if self._stopped:
                return False
            pending = self._pending.get(key)
            if pending is not None:
                pending.update(event.path, deadline)
                self.stats['events_debounced'] += 1
                return True
            pending = PendingPath(event.path, deadline)
            self._pending[key] = pending
            self._arm(key, pending, self.debounce_time)

        return True

    def _arm(self, key: str, pending: PendingPath, delay: float):
        # Caller holds the lock
        timer = threading.Timer(delay, self._settle, args=(key, pending))
        timer.daemon = True
        pending.timer = timer
        timer.start()

    def _settle(self, key: str, pending: PendingPath):
        """Timer callback: re-arm if the window moved, otherwise fire"""
        with self._lock:
            if self._stopped or self._pending.get(key) is not pending:
                return
            remaining = pending.remaining()
            if remaining > 0:
                self._arm(key, pending, remaining)
                return
            # A later event for the path starts a fresh window
            del self._pending[key]

        outcome = 'actions_fired'
        try:
            logger.info(f"Files changed, sending update: {pending.path}")
            self.action()
        except Exception as e:
            outcome = 'action_errors'
            logger.error(f"Error sending update for {pending.path}: {e}")
        finally:
            with self._lock:
                self.stats[outcome] += 1

    def pending_count(self) -> int:
        """Number of paths waiting for their window to close"""
        with self._lock:
            return len(self._pending)

    def is_pending(self, path) -> bool:
        with self._lock:
            return self._key(path) in self._pending

    def stop(self):
        """Cancel every pending timer; their actions will not run"""
        with self._lock:
            self._stopped = True
            pending = list(self._pending.values())
            self._pending.clear()

        for entry in pending:
            if entry.timer is not None:
                entry.timer.cancel()

        if pending:
            logger.debug(f"Cancelled {len(pending)} pending debounce timers")

    def get_stats(self) -> Dict[str, Any]:
        """Get debouncer statistics"""
        return {
            **self.stats,
            'pending': self.pending_count(),
            'debounce_time': self.debounce_time,
            'coalesce_paths': self.coalesce_paths,
        }
