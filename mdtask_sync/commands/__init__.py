"""
Command implementations for mdtask-sync.
"""

from .sync import SyncCommand
from .tasks import AddCommand, ListCommand, VerifyCommand

__all__ = [
    'SyncCommand',
    'AddCommand',
    'ListCommand',
    'VerifyCommand',
]
