"""
Core module for mdtask-sync - contains domain models, configuration, and exceptions.
"""

from .models import (
    Task,
    RemoteTask,
    RemoteDue,
    RemoteProject,
    RemoteLabel,
    SidebandMetadata,
    SyncMapping,
    SyncConfig
)

from .exceptions import (
    MdTaskSyncError,
    ConfigurationError,
    StoreError,
    MetadataError,
    SyncError,
    RemoteError,
    AuthenticationError,
    RateLimitError,
    RemoteNotFoundError,
    RemoteAPIError,
    RemoteConnectionError
)

__all__ = [
    # Models
    'Task',
    'RemoteTask',
    'RemoteDue',
    'RemoteProject',
    'RemoteLabel',
    'SidebandMetadata',
    'SyncMapping',
    'SyncConfig',
    # Exceptions
    'MdTaskSyncError',
    'ConfigurationError',
    'StoreError',
    'MetadataError',
    'SyncError',
    'RemoteError',
    'AuthenticationError',
    'RateLimitError',
    'RemoteNotFoundError',
    'RemoteAPIError',
    'RemoteConnectionError'
]
