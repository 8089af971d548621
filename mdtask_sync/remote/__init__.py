"""Remote task service access."""

from .auth import EnvTokenProvider, StaticTokenProvider, token_provider_for
from .client import RemoteClient

__all__ = [
    "RemoteClient",
    "EnvTokenProvider",
    "StaticTokenProvider",
    "token_provider_for",
]
