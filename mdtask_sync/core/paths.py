"""
Centralized path management for mdtask-sync.

Resolves the default sync directory and the files kept inside it. The
values here are only defaults: the engine itself never consults this
module and receives every path through ``SyncConfig``.
"""

import os
from pathlib import Path
from typing import Optional
import logging


class PathManager:
    """Manages mdtask-sync default file locations."""

    # Environment override for the sync directory
    HOME_ENV_VAR = "MDTASK_SYNC_HOME"
    DEFAULT_DIR = Path("~/.local/share/mdtask-sync")

    # File names
    CONFIG_FILE = "config.json"
    TASKS_FILE = "tasks.md"
    METADATA_FILE = ".sync_metadata.json"

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    @property
    def sync_dir(self) -> Path:
        """Directory holding the task file, metadata and config."""
        override = os.environ.get(self.HOME_ENV_VAR)
        if override:
            return Path(override).expanduser()
        return self.DEFAULT_DIR.expanduser()

    def ensure_directories(self) -> None:
        """Create the sync directory if it is missing."""
        path = self.sync_dir
        if not path.exists():
            self.logger.debug(f"Creating sync directory: {path}")
        path.mkdir(parents=True, exist_ok=True)

    @property
    def config_path(self) -> Path:
        return self.sync_dir / self.CONFIG_FILE

    @property
    def tasks_path(self) -> Path:
        return self.sync_dir / self.TASKS_FILE

    @property
    def metadata_path(self) -> Path:
        return self.sync_dir / self.METADATA_FILE


_path_manager = None


def get_path_manager() -> PathManager:
    """Get or create the global PathManager instance."""
    global _path_manager
    if _path_manager is None:
        _path_manager = PathManager()
    return _path_manager
