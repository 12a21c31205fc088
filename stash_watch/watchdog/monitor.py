# stash_watch/watchdog/monitor.py

"""
Main file system monitor for stash-watch
"""
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from watchdog.observers import Observer

from ..utils.errors import WatchRegistrationError
from .debounce import DebounceCoordinator
from .handlers import EventClassifier, WatchEventHandler
from .registry import WatchRegistry
from .watcher import SubtreeEnumerator

logger = logging.getLogger(__name__)


class RootWatcher:
    """
    Everything needed to watch one root: its own observer thread, watch
    registry, classifier and debounce table.
    """

    def __init__(self, root: Path, action: Callable[[], Any],
                 debounce_time: float = 0.1,
                 coalesce_paths: bool = False,
                 strict: bool = False,
                 observer_factory: Callable[[], Any] = Observer,
                 on_fatal: Optional[Callable[[BaseException], None]] = None):
        self.root = Path(root)
        self.observer = observer_factory()
        self.handler = WatchEventHandler(on_fatal=on_fatal)
        self.registry = WatchRegistry(self.observer, self.handler)
        self.classifier = EventClassifier(self.registry, strict=strict)
        self.coordinator = DebounceCoordinator(
            self.classifier,
            action,
            debounce_time=debounce_time,
            coalesce_paths=coalesce_paths,
        )
        self.handler.coordinator = self.coordinator
        self.enumerator = SubtreeEnumerator(
            self.root,
            self.registry,
            strict=strict,
            on_fatal=on_fatal,
        )
        self.is_running = False

    def start(self):
        """
        Start delivering events for the root, then enroll its subtree in
        the background

        Raises:
            WatchRegistrationError: the root itself could not be watched
        """
        self.observer.start()
        self.is_running = True
        self.registry.ensure_watched(self.root)
        logger.info(f"Initial watcher started at: {self.root}")
        self.enumerator.start()

    def stop(self):
        if not self.is_running:
            return
        self.is_running = False

        self.observer.stop()
        self.coordinator.stop()
        try:
            self.observer.join(timeout=10)
        except RuntimeError as e:
            logger.error(f"Error stopping observer for {self.root}: {e}")

    def get_stats(self) -> Dict[str, Any]:
        return {
            'root': str(self.root),
            'watched_directories': len(self.registry),
            'handler': self.handler.get_stats(),
            'debounce': self.coordinator.get_stats(),
        }


class FileMonitor:
    """
    Watches every configured root and fires the scan action when a path
    settles
    """

    def __init__(self, config: Any, action: Callable[[], Any],
                 observer_factory: Callable[[], Any] = Observer,
                 on_fatal: Optional[Callable[[BaseException], None]] = None):
        """
        Initialize file monitor

        Args:
            config: Config instance (its watch section is used)
            action: Scan trigger invoked after each settled burst
            observer_factory: Builds the watchdog observer for each root
            on_fatal: Called from watcher threads on unrecoverable errors
        """
        self.config = config
        self.action = action
        self.observer_factory = observer_factory
        self.on_fatal = on_fatal

        watch_config = config.watch
        self.watch_dirs: List[Path] = [Path(root) for root in watch_config.roots]
        self.debounce_time = watch_config.debounce_time
        self.coalesce_paths = watch_config.coalesce_paths
        self.strict = watch_config.fail_on_register_error

        self.watchers: List[RootWatcher] = []
        self.is_running = False

        logger.debug(f"FileMonitor initialized with {len(self.watch_dirs)} directories to watch")

    def start(self):
        """
        Start monitoring every root

        Raises:
            WatchRegistrationError: a root could not be watched
        """
        if self.is_running:
            logger.warning("FileMonitor is already running")
            return

        self.is_running = True
        for watch_dir in self.watch_dirs:
            watcher = RootWatcher(
                watch_dir,
                self.action,
                debounce_time=self.debounce_time,
                coalesce_paths=self.coalesce_paths,
                strict=self.strict,
                observer_factory=self.observer_factory,
                on_fatal=self.on_fatal,
            )
            self.watchers.append(watcher)
            try:
                watcher.start()
            except WatchRegistrationError:
                self.stop()
                raise

    def stop(self):
        """Stop monitoring; pending debounced actions are dropped"""
        if not self.is_running:
            return

        for watcher in self.watchers:
            try:
                watcher.stop()
            except Exception as e:
                logger.error(f"Error stopping watcher for {watcher.root}: {e}")

        self.watchers.clear()
        self.is_running = False
        logger.debug("FileMonitor stopped")

    def wait_for_enumeration(self, timeout: Optional[float] = None) -> bool:
        """Block until every root's initial enumeration has finished"""
        return all(watcher.enumerator.wait(timeout) for watcher in self.watchers)

    def get_stats(self) -> Dict[str, Any]:
        return {
            'is_running': self.is_running,
            'roots': [watcher.get_stats() for watcher in self.watchers],
        }
