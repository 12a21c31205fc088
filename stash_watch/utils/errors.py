# stash_watch/utils/errors.py

"""
Exception types for stash-watch
"""


class StashWatchError(Exception):
    """Base class for all stash-watch errors"""


class ConfigError(StashWatchError):
    """Invalid or missing configuration; aborts startup"""


class WatchRegistrationError(StashWatchError):
    """A directory could not be subscribed to the event source"""

    def __init__(self, path, cause: Exception = None):
        self.path = path
        self.cause = cause
        message = f"could not watch directory {path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class NotifyError(StashWatchError):
    """The scan-trigger request failed"""
