"""Durable mapping between local task ids and remote task ids."""

from datetime import datetime, timezone
from typing import Dict, List, Optional
import json
import logging

from ..core.exceptions import MetadataError
from ..core.models import SyncMapping, iso_to_datetime
from ..utils.io import atomic_write_json, read_text


logger = logging.getLogger(__name__)


class SyncMetadata:
    """Mapping store persisted as JSON.

    Keyed by local task id. The engine keeps remote ids unique by calling
    ``remove_remote_id`` before ``set_mapping``.
    """

    def __init__(self, task_mappings: Optional[Dict[str, SyncMapping]] = None,
                 last_sync: Optional[datetime] = None):
        self.task_mappings: Dict[str, SyncMapping] = dict(task_mappings or {})
        self.last_sync = last_sync or datetime.now(timezone.utc)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    @classmethod
    def load(cls, path: str) -> "SyncMetadata":
        """Load the store; a missing file gives an empty one.

        Raises:
            MetadataError: if the file exists but cannot be read or decoded
        """
        try:
            content = read_text(path)
        except (OSError, TimeoutError) as exc:
            raise MetadataError(f"Cannot read sync metadata {path}: {exc}") from exc

        if content is None:
            logger.debug(f"No sync metadata at {path}, starting empty")
            return cls()

        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise MetadataError(f"Corrupt sync metadata {path}: {exc}") from exc

        if not isinstance(data, dict):
            raise MetadataError(f"Corrupt sync metadata {path}: expected an object")

        raw_mappings = data.get("task_mappings", {})
        if not isinstance(raw_mappings, dict):
            raise MetadataError(f"Corrupt sync metadata {path}: task_mappings is not an object")

        mappings: Dict[str, SyncMapping] = {}
        for local_id, entry in raw_mappings.items():
            try:
                mappings[local_id] = SyncMapping.from_dict(entry)
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                raise MetadataError(f"Corrupt mapping for task {local_id} in {path}: {exc}") from exc

        last_sync = None
        if data.get("last_sync") is not None:
            last_sync = iso_to_datetime(data["last_sync"])
            if last_sync is None:
                raise MetadataError(f"Corrupt sync metadata {path}: invalid last_sync")

        return cls(mappings, last_sync)

    def save(self, path: str) -> None:
        """Atomically overwrite the metadata file."""
        try:
            atomic_write_json(path, self.to_dict())
        except (OSError, TimeoutError) as exc:
            raise MetadataError(f"Cannot write sync metadata {path}: {exc}") from exc

    def to_dict(self) -> Dict:
        return {
            "last_sync": self.last_sync.isoformat(),
            "task_mappings": {
                local_id: mapping.to_dict()
                for local_id, mapping in self.task_mappings.items()
            },
        }

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def get_entry(self, local_id: str) -> Optional[SyncMapping]:
        return self.task_mappings.get(local_id)

    def get_remote_id(self, local_id: str) -> Optional[str]:
        entry = self.task_mappings.get(local_id)
        return entry.remote_id if entry else None

    def get_local_id(self, remote_id: str) -> Optional[str]:
        for local_id, entry in self.task_mappings.items():
            if entry.remote_id == remote_id:
                return local_id
        return None

    def get_hash(self, local_id: str) -> Optional[str]:
        entry = self.task_mappings.get(local_id)
        return entry.last_sync_hash if entry else None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def set_mapping(self, local_id: str, remote_id: str,
                    last_sync_hash: Optional[str] = None) -> SyncMapping:
        mapping = SyncMapping(remote_id=remote_id, last_sync_hash=last_sync_hash)
        self.task_mappings[local_id] = mapping
        return mapping

    def remove_mapping(self, local_id: str) -> Optional[SyncMapping]:
        return self.task_mappings.pop(local_id, None)

    def remove_remote_id(self, remote_id: str) -> List[str]:
        """Drop every entry pointing at ``remote_id``; returns their local ids."""
        stale = [
            local_id for local_id, entry in self.task_mappings.items()
            if entry.remote_id == remote_id
        ]
        for local_id in stale:
            del self.task_mappings[local_id]
        return stale

    def duplicate_remote_ids(self) -> Dict[str, List[str]]:
        """Remote ids referenced by more than one entry, with their local ids."""
        by_remote: Dict[str, List[str]] = {}
        for local_id, entry in self.task_mappings.items():
            by_remote.setdefault(entry.remote_id, []).append(local_id)
        return {
            remote_id: local_ids
            for remote_id, local_ids in by_remote.items()
            if len(local_ids) > 1
        }

    def touch_last_sync(self) -> None:
        self.last_sync = datetime.now(timezone.utc)

    def __len__(self) -> int:
        return len(self.task_mappings)
