# stash_watch/utils/__init__.py

"""
stash-watch Utilities
"""
from .errors import ConfigError, NotifyError, StashWatchError, WatchRegistrationError
from .logger import VERBOSE, setup_logging

__all__ = [
    'ConfigError', 'NotifyError', 'StashWatchError', 'WatchRegistrationError',
    'VERBOSE', 'setup_logging',
]
