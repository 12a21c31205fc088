"""
stash-watch core services: Stash API client and scan schedule
"""
from .stash_client import ScanOptions, StashClient, StashConfig
from .scheduler import ScheduledTrigger

__all__ = ['ScanOptions', 'StashClient', 'StashConfig', 'ScheduledTrigger']
