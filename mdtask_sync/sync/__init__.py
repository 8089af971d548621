"""Sync module for reconciling the task file with the remote service."""

from .engine import SyncAction, SyncEngine, SyncReport
from .metadata import SyncMetadata
from .runner import SyncRunner

__all__ = ['SyncAction', 'SyncEngine', 'SyncReport', 'SyncMetadata', 'SyncRunner']
