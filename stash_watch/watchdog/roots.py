# stash_watch/watchdog/roots.py

"""
Operator-supplied watch roots
"""
import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, List, Union

from ..utils.errors import ConfigError

logger = logging.getLogger(__name__)


def is_within(path: str, root: str) -> bool:
    """True if path equals root or lies below it (separator-aware)"""
    if path == root:
        return True
    prefix = root if root.endswith(os.sep) else root + os.sep
    return path.startswith(prefix)


class WatchRoots:
    """
    Ordered set of absolute, normalized root directories.

    No root is ever nested inside another: a descendant of an accepted root
    is ignored, and an ancestor replaces the roots it covers.
    """

    def __init__(self, paths: Iterable[Union[str, Path]] = ()):
        self._roots: List[str] = []
        for path in paths:
            self.add(path)

    def add(self, value: Union[str, Path]) -> bool:
        """
        Validate and add a root directory

        Returns:
            True if the root is now tracked, False if an existing root
            already covers it

        Raises:
            ConfigError: path is missing or not a directory
        """
        raw = os.path.expanduser(str(value))
        if not os.path.exists(raw):
            raise ConfigError(f"watcher path does not exist: {value}")
        if not os.path.isdir(raw):
            raise ConfigError(f"watcher path must be a directory: {value}")

        candidate = os.path.normpath(os.path.abspath(raw))

        for root in self._roots:
            if is_within(candidate, root):
                logger.debug(f"Ignoring {candidate}: already covered by {root}")
                return False

        covered = [root for root in self._roots if is_within(root, candidate)]
        for root in covered:
            logger.debug(f"Dropping {root}: covered by new root {candidate}")
            self._roots.remove(root)

        self._roots.append(candidate)
        return True

    def __iter__(self) -> Iterator[Path]:
        return (Path(root) for root in self._roots)

    def __len__(self) -> int:
        return len(self._roots)

    def __contains__(self, path) -> bool:
        return os.path.normpath(os.path.abspath(str(path))) in self._roots

    def __repr__(self) -> str:
        return f"WatchRoots({self._roots!r})"
