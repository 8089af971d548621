"""
Domain models for mdtask-sync.

This module contains the core data structures shared by the local task
codec, the remote client and the reconciliation engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional
import json
import os

from .exceptions import ConfigurationError
from .paths import get_path_manager


DEFAULT_API_BASE_URL = "https://api.todoist.com/rest/v2"
DEFAULT_TOKEN_ENV = "TODOIST_API_TOKEN"

# Local importance scale: 1 is the most important
MIN_IMPORTANCE = 1
MAX_IMPORTANCE = 5


def _normalize_path(path: str) -> str:
    """Expand user and convert to absolute path."""
    return os.path.abspath(os.path.expanduser(path))


def _iso_to_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d").date()
    except (ValueError, TypeError):
        return None


def iso_to_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Task:
    """A task held in the local plain-text store."""

    id: str
    description: str
    deadline: Optional[date] = None
    tags: List[str] = field(default_factory=list)
    reminder: Optional[date] = None
    importance: Optional[int] = None
    notes: Optional[str] = None
    completed: bool = False

    @property
    def project_tag(self) -> Optional[str]:
        """The first tag, which doubles as the remote project."""
        return self.tags[0] if self.tags else None

    @property
    def label_tags(self) -> List[str]:
        return list(self.tags[1:])


@dataclass
class RemoteDue:
    """Structured due date as reported by the remote service."""

    date: str
    date_time: Optional[str] = None
    timezone: Optional[str] = None
    string: Optional[str] = None
    is_recurring: bool = False

    @property
    def as_date(self) -> Optional[date]:
        return _iso_to_date(self.date)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional[RemoteDue]:
        if not data or not data.get("date"):
            return None
        return cls(
            date=data["date"],
            date_time=data.get("datetime"),
            timezone=data.get("timezone"),
            string=data.get("string"),
            is_recurring=bool(data.get("is_recurring", False)),
        )


@dataclass
class RemoteTask:
    """A task as stored by the remote task service.

    Completion is carried for reading only; it is never sent as a field
    and is changed through the close/reopen endpoints instead.
    """

    content: str
    id: Optional[str] = None
    description: Optional[str] = None
    due: Optional[RemoteDue] = None
    due_date: Optional[str] = None
    labels: Optional[List[str]] = None
    priority: Optional[int] = None
    is_completed: bool = False
    project_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> RemoteTask:
        task_id = data.get("id")
        labels = data.get("labels")
        priority = data.get("priority")
        return cls(
            id=str(task_id) if task_id is not None else None,
            content=data.get("content", ""),
            description=data.get("description") or None,
            due=RemoteDue.from_dict(data.get("due")),
            labels=list(labels) if labels else None,
            priority=int(priority) if priority is not None else None,
            is_completed=bool(data.get("is_completed", data.get("checked", False))),
            project_id=str(data["project_id"]) if data.get("project_id") else None,
        )

    def to_payload(self) -> Dict[str, Any]:
        """Serialize the writable fields for a create/update request."""
        payload: Dict[str, Any] = {"content": self.content}
        if self.description is not None:
            payload["description"] = self.description
        if self.due_date is not None:
            payload["due_date"] = self.due_date
        if self.labels is not None:
            payload["labels"] = list(self.labels)
        if self.priority is not None:
            payload["priority"] = self.priority
        if self.project_id is not None:
            payload["project_id"] = self.project_id
        return payload


@dataclass
class RemoteProject:
    """A project on the remote service."""

    id: str
    name: str
    color: Optional[str] = None
    is_inbox_project: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> RemoteProject:
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            color=data.get("color"),
            is_inbox_project=bool(data.get("is_inbox_project", data.get("inbox_project", False))),
        )


@dataclass
class RemoteLabel:
    """A personal label on the remote service."""

    id: str
    name: str
    color: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> RemoteLabel:
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            color=data.get("color"),
        )


@dataclass
class SidebandMetadata:
    """Local fields the remote schema cannot hold natively."""

    id: str
    deadline: Optional[date] = None
    reminder: Optional[date] = None
    importance: Optional[int] = None
    notes: Optional[str] = None


@dataclass
class SyncMapping:
    """Association between one local task and one remote task."""

    remote_id: str
    last_modified: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    last_sync_hash: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "remote_id": self.remote_id,
            "last_modified": self.last_modified.isoformat(),
            "last_sync_hash": self.last_sync_hash,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SyncMapping:
        last_modified = iso_to_datetime(data.get("last_modified"))
        if last_modified is None:
            raise ValueError(f"invalid last_modified: {data.get('last_modified')!r}")
        return cls(
            remote_id=str(data["remote_id"]),
            last_modified=last_modified,
            last_sync_hash=data.get("last_sync_hash"),
        )


@dataclass
class SyncConfig:
    """Configuration for sync operations.

    Every path the engine touches lives here so nothing depends on the
    process working directory.
    """

    sync_dir: Optional[str] = None
    tasks_path: Optional[str] = None
    metadata_path: Optional[str] = None
    api_base_url: str = DEFAULT_API_BASE_URL
    request_timeout: float = 30.0
    token_env: str = DEFAULT_TOKEN_ENV
    api_token: Optional[str] = None
    completed_window_days: int = 30
    sync_on_change: bool = False

    def __post_init__(self) -> None:
        manager = get_path_manager()

        if self.sync_dir is None:
            self.sync_dir = str(manager.sync_dir)
        self.sync_dir = _normalize_path(self.sync_dir)

        if self.tasks_path is None:
            self.tasks_path = os.path.join(self.sync_dir, manager.TASKS_FILE)
        else:
            self.tasks_path = _normalize_path(self.tasks_path)

        if self.metadata_path is None:
            self.metadata_path = os.path.join(self.sync_dir, manager.METADATA_FILE)
        else:
            self.metadata_path = _normalize_path(self.metadata_path)

        if self.completed_window_days < 0:
            raise ConfigurationError("completed_window_days must not be negative")

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------
    @classmethod
    def load_from_file(cls, config_path: str) -> SyncConfig:
        config_path = _normalize_path(config_path)
        if not os.path.exists(config_path):
            return cls()

        try:
            with open(config_path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Invalid config file {config_path}: {exc}") from exc
        except OSError as exc:
            raise ConfigurationError(f"Cannot read config file {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigurationError(f"Invalid config file {config_path}: expected an object")

        paths = data.get("paths", {})
        remote = data.get("remote", {})
        sync_settings = data.get("sync", {})

        return cls(
            sync_dir=paths.get("sync_dir"),
            tasks_path=paths.get("tasks"),
            metadata_path=paths.get("metadata"),
            api_base_url=remote.get("api_base_url", DEFAULT_API_BASE_URL),
            request_timeout=float(remote.get("request_timeout", 30.0)),
            token_env=remote.get("token_env", DEFAULT_TOKEN_ENV),
            api_token=remote.get("api_token"),
            completed_window_days=int(sync_settings.get("completed_window_days", 30)),
            sync_on_change=bool(sync_settings.get("sync_on_change", False)),
        )

    def save_to_file(self, config_path: str) -> None:
        config_path = _normalize_path(config_path)
        os.makedirs(os.path.dirname(config_path), exist_ok=True)

        data = {
            "paths": {
                "sync_dir": self.sync_dir,
                "tasks": self.tasks_path,
                "metadata": self.metadata_path,
            },
            "remote": {
                "api_base_url": self.api_base_url,
                "request_timeout": self.request_timeout,
                "token_env": self.token_env,
                "api_token": self.api_token,
            },
            "sync": {
                "completed_window_days": self.completed_window_days,
                "sync_on_change": self.sync_on_change,
            },
        }

        # The file may hold the API token
        fd = os.open(config_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        os.fchmod(fd, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2, ensure_ascii=False)
