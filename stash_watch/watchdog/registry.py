# stash_watch/watchdog/registry.py

"""
Registry of directories covered by a watchdog observer
"""
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Union

from watchdog.events import FileSystemEventHandler

from ..utils.errors import WatchRegistrationError

logger = logging.getLogger(__name__)

# Ledger markers: being scheduled, or delivered through an ancestor's watch
_RESERVED = object()
_COVERED = object()


def _is_below(path: Path, ancestor: Path) -> bool:
    return path == ancestor or ancestor in path.parents


class WatchRegistry:
    """
    Owns the set of directories watched by one observer.

    A directory with no watched ancestor is scheduled once, recursively, so
    the observer keeps a single emitter for the whole tree. Directories below
    it are only recorded: their events already arrive through that watch.
    """

    def __init__(self, observer: Any, handler: FileSystemEventHandler = None):
        """
        Initialize registry

        Args:
            observer: watchdog observer (anything with schedule/unschedule)
            handler: Event handler attached to every scheduled directory
        """
        self.observer = observer
        self.handler = handler
        self._watches: Dict[Path, Any] = {}
        self._lock = threading.Lock()

    def _covered(self, path: Path) -> bool:
        return any(parent in self._watches for parent in path.parents)

    def ensure_watched(self, path: Union[str, Path]) -> bool:
        """
        Make sure events for a directory are delivered.

        Returns:
            True if the directory was newly registered, False if it was
            already being watched

        Raises:
            WatchRegistrationError: the observer refused the directory
        """
        if self.handler is None:
            raise WatchRegistrationError(path, RuntimeError("no event handler bound"))

        path = Path(path)
        with self._lock:
            if path in self._watches:
                return False
            if self._covered(path):
                self._watches[path] = _COVERED
                return True
            self._watches[path] = _RESERVED

        # The observer takes its own lock and may be dispatching into us on
        # another thread, so never schedule while holding ours.
        try:
            watch = self.observer.schedule(self.handler, str(path), recursive=True)
        except Exception as e:
            with self._lock:
                for other in [p for p in self._watches if _is_below(p, path)]:
                    del self._watches[other]
            raise WatchRegistrationError(path, e) from e

        # Watches already scheduled below this one are now redundant
        redundant = []
        forgotten = False
        with self._lock:
            if self._watches.get(path) is not _RESERVED:
                # forgotten while the observer was busy scheduling it
                forgotten = True
                redundant.append(watch)
            else:
                self._watches[path] = watch
                for other, value in list(self._watches.items()):
                    if other == path or not _is_below(other, path):
                        continue
                    if value is not _COVERED and value is not _RESERVED:
                        redundant.append(value)
                        self._watches[other] = _COVERED

        self._release(redundant)
        if forgotten:
            return False
        logger.debug(f"Registered watch for {path}")
        return True

    def forget(self, path: Union[str, Path]) -> bool:
        """
        Drop a directory, and everything recorded below it, that no longer
        exists at this path.

        Returns:
            True if the directory was being watched
        """
        path = Path(path)
        with self._lock:
            if path not in self._watches:
                return False
            gone = [p for p in self._watches if _is_below(p, path)]
            released = [self._watches.pop(p) for p in gone]

        self._release([w for w in released if w is not _COVERED and w is not _RESERVED])
        logger.debug(f"Forgot {len(gone)} watched directories under {path}")
        return True

    def _release(self, watches: List[Any]):
        for watch in watches:
            try:
                self.observer.unschedule(watch)
            except KeyError:
                pass
            except Exception as e:
                logger.error(f"Error releasing watch {watch}: {e}")

    def is_watched(self, path: Union[str, Path]) -> bool:
        with self._lock:
            return Path(path) in self._watches

    def is_scheduled(self, path: Union[str, Path]) -> bool:
        """True if the directory owns an observer watch of its own"""
        with self._lock:
            value = self._watches.get(Path(path))
        return value is not None and value is not _COVERED

    def watched(self) -> List[Path]:
        """Snapshot of watched directories"""
        with self._lock:
            return list(self._watches)

    def __len__(self) -> int:
        with self._lock:
            return len(self._watches)
