"""
Credential providers for the remote client.

The client only needs a zero-argument callable returning the current
bearer token. Where the token is stored is up to the caller.
"""

import os
from typing import Optional

from ..core.exceptions import AuthenticationError
from ..core.models import DEFAULT_TOKEN_ENV, SyncConfig


class StaticTokenProvider:
    """Returns a fixed token."""

    def __init__(self, token: str):
        self._token = token

    def __call__(self) -> str:
        if not self._token:
            raise AuthenticationError("No API token configured")
        return self._token


class EnvTokenProvider:
    """Reads the token from an environment variable on every call."""

    def __init__(self, env_var: str = DEFAULT_TOKEN_ENV):
        self.env_var = env_var

    def __call__(self) -> str:
        token = os.environ.get(self.env_var, "").strip()
        if not token:
            raise AuthenticationError(
                f"No API token found; set the {self.env_var} environment variable"
            )
        return token


def token_provider_for(config: SyncConfig, token: Optional[str] = None):
    """Pick a provider: explicit token, then config file, then environment."""
    if token:
        return StaticTokenProvider(token)
    if config.api_token:
        return StaticTokenProvider(config.api_token)
    return EnvTokenProvider(config.token_env)
