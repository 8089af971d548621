"""Serialized execution of sync passes, in the foreground or a background thread."""

from typing import Callable, Dict, Optional
import logging
import threading

from ..core.exceptions import MdTaskSyncError
from ..core.models import SyncConfig
from ..remote.auth import token_provider_for
from ..remote.client import RemoteClient
from ..utils.io import file_lock
from .engine import SyncEngine, SyncReport


# One lock per metadata file within this process
_store_locks: Dict[str, threading.Lock] = {}
_store_locks_guard = threading.Lock()

PASS_LOCK_SUFFIX = ".pass"


def _lock_for(path: str) -> threading.Lock:
    with _store_locks_guard:
        lock = _store_locks.get(path)
        if lock is None:
            lock = threading.Lock()
            _store_locks[path] = lock
        return lock


def default_client_factory(config: SyncConfig) -> RemoteClient:
    """Build a RemoteClient from configuration."""
    return RemoteClient(
        token_provider_for(config),
        base_url=config.api_base_url,
        timeout=config.request_timeout,
    )


class SyncRunner:
    """Runs sync passes one at a time for a store.

    Passes against the same metadata file are serialized with an
    in-process lock and a cooperative file lock, so a background pass and
    a foreground command never interleave.
    """

    def __init__(self, config: SyncConfig,
                 client_factory: Optional[Callable[[SyncConfig], object]] = None,
                 logger: Optional[logging.Logger] = None):
        self.config = config
        self.client_factory = client_factory or default_client_factory
        self.logger = logger or logging.getLogger(__name__)

    def run(self, dry_run: bool = False) -> SyncReport:
        """Run one pass, waiting for any pass already running on this store."""
        lock = _lock_for(self.config.metadata_path)
        with lock:
            with file_lock(self.config.metadata_path + PASS_LOCK_SUFFIX, timeout=None):
                engine = SyncEngine(self.config, self.client_factory(self.config), logger=self.logger)
                return engine.sync(dry_run=dry_run)

    def run_in_background(self) -> threading.Thread:
        """Start a pass in a daemon thread; errors are logged only."""
        thread = threading.Thread(target=self._background_pass, name="mdtask-sync-pass", daemon=True)
        thread.start()
        return thread

    def _background_pass(self) -> None:
        try:
            report = self.run()
        except MdTaskSyncError as exc:
            self.logger.error(f"Background sync failed: {exc}")
            return
        except Exception as exc:  # noqa: BLE001
            self.logger.exception(f"Unexpected error in background sync: {exc}")
            return
        self.logger.info(f"Background sync finished: {report.summary()}")
