"""
stash-watch
Watches media directories and asks Stash to rescan when they change
"""

__version__ = "1.0.0"
