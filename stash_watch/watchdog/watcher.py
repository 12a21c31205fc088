# stash_watch/watchdog/watcher.py

"""
Recursive directory enrollment
"""
import logging
import os
import threading
from pathlib import Path
from typing import Callable, Optional, Union

from ..utils.errors import WatchRegistrationError
from ..utils.logger import VERBOSE
from .registry import WatchRegistry

logger = logging.getLogger(__name__)


def enumerate_subtree(root: Union[str, Path], registry: WatchRegistry,
                      strict: bool = True) -> int:
    """
    Register every existing directory below root

    Args:
        root: Directory whose descendants should be watched (the root itself
            is expected to be registered already)
        registry: Registry to enroll directories with
        strict: Raise on registration failure instead of skipping the subtree

    Returns:
        Number of directories newly registered

    Raises:
        OSError: root itself could not be listed
        WatchRegistrationError: a directory could not be watched (strict only)
    """
    return _walk(Path(root), registry, strict, is_root=True)


def _walk(directory: Path, registry: WatchRegistry, strict: bool,
          is_root: bool = False) -> int:
    try:
        with os.scandir(directory) as entries:
            subdirs = [
                Path(entry.path)
                for entry in entries
                if entry.is_dir(follow_symlinks=False)
            ]
    except OSError as e:
        if is_root:
            raise
        # Directory vanished or is unreadable; its subtree is abandoned.
        logger.error(f"Could not list directory {directory}: {e}")
        return 0

    registered = 0
    for subdir in subdirs:
        try:
            added = registry.ensure_watched(subdir)
        except WatchRegistrationError as e:
            if strict:
                raise
            logger.error(f"Skipping subtree, {e}")
            continue
        if added:
            registered += 1
            logger.log(VERBOSE, f"Now watching {subdir}")
        registered += _walk(subdir, registry, strict)

    return registered


class SubtreeEnumerator:
    """
    Runs enumerate_subtree on a background thread so enrollment overlaps
    with live event delivery.
    """

    def __init__(self, root: Path, registry: WatchRegistry, strict: bool = True,
                 on_fatal: Optional[Callable[[BaseException], None]] = None):
        """
        Initialize enumerator

        Args:
            root: Root directory to enumerate
            registry: Registry to enroll directories with
            strict: Treat any registration failure as fatal
            on_fatal: Called with the exception if enumeration fails
        """
        self.root = root
        self.registry = registry
        self.strict = strict
        self.on_fatal = on_fatal
        self.registered = 0
        self.error: Optional[BaseException] = None
        self._thread: Optional[threading.Thread] = None
        self._done = threading.Event()

    def start(self):
        self._thread = threading.Thread(
            target=self._run,
            name=f"enumerate:{self.root}",
            daemon=True,
        )
        self._thread.start()

    def _run(self):
        try:
            self.registered = enumerate_subtree(self.root, self.registry, self.strict)
            logger.debug(f"Enumerated {self.registered} directories under {self.root}")
        except (OSError, WatchRegistrationError) as e:
            self.error = e
            logger.error(f"Failed to enumerate {self.root}: {e}")
            if self.on_fatal:
                self.on_fatal(e)
        finally:
            self._done.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until enumeration finishes; True if it did"""
        return self._done.wait(timeout)
