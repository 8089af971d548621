"""Reconciliation engine driving one sync pass between the task file and the remote service."""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional
import logging

from ..core.exceptions import (
    AuthenticationError,
    MdTaskSyncError,
    MetadataError,
    RateLimitError,
    RemoteError,
    RemoteNotFoundError,
    StoreError,
    SyncError,
)
from ..core.models import RemoteProject, RemoteTask, SyncConfig, Task
from ..local.parser import format_task_line, is_valid_task_id, parse_task_line
from ..local.store import TaskStore
from ..utils.sideband import decode_sideband
from .converter import project_tags, remote_to_task, task_to_remote
from .fingerprint import task_fingerprint
from .metadata import SyncMetadata


CREATE_REMOTE = "create_remote"
UPDATE_REMOTE = "update_remote"
DELETE_REMOTE = "delete_remote"
CREATE_LOCAL = "create_local"
UPDATE_LOCAL = "update_local"
DELETE_LOCAL = "delete_local"

_REPORT_COUNTERS = {
    CREATE_REMOTE: "created_remote",
    UPDATE_REMOTE: "updated_remote",
    DELETE_REMOTE: "deleted_remote",
    CREATE_LOCAL: "created_local",
    UPDATE_LOCAL: "updated_local",
    DELETE_LOCAL: "deleted_local",
}

# Errors that end the pass instead of skipping one action
_FATAL_ERRORS = (AuthenticationError, RateLimitError, StoreError, MetadataError)


@dataclass
class SyncAction:
    """One planned mutation of either side."""

    kind: str
    local_id: Optional[str] = None
    remote_id: Optional[str] = None
    task: Optional[Task] = None
    remote_task: Optional[RemoteTask] = None

    def describe(self) -> str:
        if self.task is not None:
            label = self.task.description
        elif self.remote_task is not None:
            label = self.remote_task.content
        else:
            label = self.local_id or self.remote_id or ""
        return f"{self.kind} {label!r}"


@dataclass
class SyncReport:
    """Outcome of a sync pass."""

    dry_run: bool = False
    created_remote: int = 0
    updated_remote: int = 0
    deleted_remote: int = 0
    created_local: int = 0
    updated_local: int = 0
    deleted_local: int = 0
    skipped: int = 0
    failures: List[str] = field(default_factory=list)
    retry_after: Optional[int] = None
    actions: List[SyncAction] = field(default_factory=list)

    @property
    def pushed(self) -> int:
        return self.created_remote + self.updated_remote + self.deleted_remote

    @property
    def pulled(self) -> int:
        return self.created_local + self.updated_local + self.deleted_local

    def record(self, action: SyncAction) -> None:
        counter = _REPORT_COUNTERS[action.kind]
        setattr(self, counter, getattr(self, counter) + 1)

    def summary(self) -> str:
        return f"↑{self.pushed} ↓{self.pulled} ✗{self.skipped}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dry_run": self.dry_run,
            "created_remote": self.created_remote,
            "updated_remote": self.updated_remote,
            "deleted_remote": self.deleted_remote,
            "created_local": self.created_local,
            "updated_local": self.updated_local,
            "deleted_local": self.deleted_local,
            "skipped": self.skipped,
            "failures": list(self.failures),
            "retry_after": self.retry_after,
            "planned": [action.describe() for action in self.actions],
        }


class SyncEngine:
    """Reconciles the local task file with the remote task service.

    One instance drives passes for one store; the project cache and the
    in-memory task list belong to the instance.
    """

    def __init__(self, config: SyncConfig, client, logger: Optional[logging.Logger] = None,
                 today: Optional[date] = None):
        self.config = config
        self.client = client
        self.logger = logger or logging.getLogger(__name__)
        self.today = today
        self.store = TaskStore(config.tasks_path, logger=self.logger, today=today)

        self.metadata: Optional[SyncMetadata] = None
        self.tasks: List[Task] = []
        self._tasks_dirty = False
        self._projects_by_tag: Dict[str, RemoteProject] = {}
        self._projects_by_id: Dict[str, RemoteProject] = {}

    # ------------------------------------------------------------------
    # Pass
    # ------------------------------------------------------------------
    def sync(self, dry_run: bool = False) -> SyncReport:
        """
        Run one fetch, load, diff, apply, persist pass.

        Args:
            dry_run: Plan and report without changing either side

        Returns:
            SyncReport with per-direction counts

        Raises:
            AuthenticationError, RateLimitError: the pass stopped early;
                progress so far is persisted and ``exc.report`` holds it
            StoreError, MetadataError: local persistence failed
        """
        report = SyncReport(dry_run=dry_run)
        self.logger.info(f"Starting sync pass (dry_run={dry_run})")

        # Fetch
        remote_tasks = self.client.list_tasks()
        self._set_projects(self.client.list_projects())
        self.logger.info(f"Fetched {len(remote_tasks)} remote tasks, {len(self._projects_by_id)} projects")

        # Load
        self.metadata = SyncMetadata.load(self.config.metadata_path)
        self.tasks = self.store.load()
        self._tasks_dirty = False
        if self.store.needs_rewrite and not dry_run:
            # Identities must be on disk before anything is mapped to them
            self.store.save(self.tasks)

        # Diff
        actions = self.plan(self.tasks, remote_tasks)
        report.actions = actions
        self.logger.info(f"Planned {len(actions)} actions")

        if dry_run:
            for action in actions:
                report.record(action)
            return report

        # Apply
        try:
            for action in actions:
                self._apply(action, report)
        except (AuthenticationError, RateLimitError) as exc:
            if isinstance(exc, RateLimitError):
                report.retry_after = exc.retry_after
            report.failures.append(str(exc))
            self.logger.error(f"Sync pass stopped: {exc}")
            self._commit()
            exc.report = report
            raise

        # Persist
        self.metadata.touch_last_sync()
        self._commit()
        self.logger.info(f"Sync pass finished: {report.summary()}")
        return report

    # ------------------------------------------------------------------
    # Diff
    # ------------------------------------------------------------------
    def plan(self, local_tasks: List[Task], remote_tasks: List[RemoteTask]) -> List[SyncAction]:
        """Compute the ordered actions bringing both sides together."""
        if self.metadata is None:
            self.metadata = SyncMetadata.load(self.config.metadata_path)
        self._repair_duplicates()

        local_by_id = {task.id: task for task in local_tasks}
        remote_by_id = {remote.id: remote for remote in remote_tasks if remote.id}
        self._prune_orphans(local_by_id, remote_by_id)

        mapped_remote_ids = {
            entry.remote_id for entry in self.metadata.task_mappings.values()
        }

        # Unmapped remote tasks naming an unmapped local task (metadata lost)
        claimed: Dict[str, RemoteTask] = {}
        for remote in remote_tasks:
            if remote.id in mapped_remote_ids:
                continue
            _, meta = decode_sideband(remote.description)
            if (meta and meta.id in local_by_id and meta.id not in claimed
                    and self.metadata.get_entry(meta.id) is None):
                claimed[meta.id] = remote

        actions: List[SyncAction] = []

        # Local side first: a pair changed on both sides resolves to local
        for task in local_tasks:
            entry = self.metadata.get_entry(task.id)
            if entry is None:
                if task.id in claimed:
                    continue
                if task.completed and not self._within_completed_window(task):
                    continue
                actions.append(SyncAction(CREATE_REMOTE, local_id=task.id, task=task))
            elif entry.remote_id in remote_by_id:
                if task_fingerprint(task) != entry.last_sync_hash:
                    actions.append(SyncAction(
                        UPDATE_REMOTE,
                        local_id=task.id,
                        remote_id=entry.remote_id,
                        task=task,
                        remote_task=remote_by_id[entry.remote_id],
                    ))
            else:
                # Closed tasks are not listed, so absence means closed or deleted
                if task_fingerprint(task) != entry.last_sync_hash:
                    actions.append(SyncAction(
                        UPDATE_REMOTE, local_id=task.id, remote_id=entry.remote_id, task=task
                    ))
                    continue
                if task.completed:
                    continue
                actions.append(SyncAction(
                    DELETE_LOCAL, local_id=task.id, remote_id=entry.remote_id, task=task
                ))

        reserved_ids = set(local_by_id) | set(self.metadata.task_mappings)
        for remote in remote_tasks:
            if remote.id in mapped_remote_ids:
                local_id = self.metadata.get_local_id(remote.id)
                if local_id not in local_by_id:
                    actions.append(SyncAction(
                        DELETE_REMOTE, local_id=local_id, remote_id=remote.id, remote_task=remote
                    ))
                continue

            _, meta = decode_sideband(remote.description)
            if meta and claimed.get(meta.id) is remote:
                actions.append(SyncAction(
                    UPDATE_LOCAL, local_id=meta.id, remote_id=remote.id, remote_task=remote
                ))
                continue

            local_id = None
            if meta and meta.id not in reserved_ids and is_valid_task_id(meta.id):
                local_id = meta.id
                reserved_ids.add(local_id)
            actions.append(SyncAction(
                CREATE_LOCAL, local_id=local_id, remote_id=remote.id, remote_task=remote
            ))

        return actions

    def _within_completed_window(self, task: Task) -> bool:
        if task.deadline is None:
            return False
        today = self.today or date.today()
        return task.deadline >= today - timedelta(days=self.config.completed_window_days)

    def _repair_duplicates(self) -> None:
        """Keep only the newest entry for a remote id claimed more than once."""
        for remote_id, local_ids in self.metadata.duplicate_remote_ids().items():
            keep = max(local_ids, key=lambda lid: self.metadata.task_mappings[lid].last_modified)
            for local_id in local_ids:
                if local_id != keep:
                    self.metadata.remove_mapping(local_id)
            self.logger.warning(
                f"Remote task {remote_id} was mapped {len(local_ids)} times; kept {keep}"
            )

    def _prune_orphans(self, local_by_id: Dict[str, Task], remote_by_id: Dict[str, RemoteTask]) -> None:
        """Drop entries whose local and remote task are both gone."""
        for local_id, entry in list(self.metadata.task_mappings.items()):
            if local_id not in local_by_id and entry.remote_id not in remote_by_id:
                self.logger.debug(f"Dropping mapping {local_id} -> {entry.remote_id}: both sides gone")
                self.metadata.remove_mapping(local_id)

    # ------------------------------------------------------------------
    # Apply
    # ------------------------------------------------------------------
    def _apply(self, action: SyncAction, report: SyncReport) -> None:
        handler = getattr(self, f"_apply_{action.kind}")
        self.logger.debug(f"Applying {action.describe()}")
        try:
            applied = handler(action)
        except _FATAL_ERRORS:
            raise
        except MdTaskSyncError as exc:
            report.skipped += 1
            report.failures.append(f"{action.describe()}: {exc}")
            self.logger.warning(f"Skipped {action.describe()}: {exc}")
            return

        if applied:
            report.record(action)
        else:
            report.skipped += 1

    def _apply_create_remote(self, action: SyncAction) -> bool:
        task = action.task
        if task.project_tag:
            self._ensure_project(task.project_tag)

        remote = task_to_remote(task, self._projects_by_tag)
        created = self.client.create_task(remote.to_payload())

        self.metadata.remove_remote_id(created.id)
        self.metadata.set_mapping(task.id, created.id)
        self._commit()

        if task.completed:
            self.client.close_task(created.id)

        self.metadata.set_mapping(task.id, created.id, task_fingerprint(task))
        self._commit()
        self.logger.info(f"Created remote task {created.id} for {task.id}")
        return True

    def _apply_update_remote(self, action: SyncAction) -> bool:
        task = action.task
        existing = action.remote_task
        if existing is None:
            # Absent from the open listing: closed, or deleted remotely
            try:
                self.client.reopen_task(action.remote_id)
            except RemoteNotFoundError:
                self.logger.info(f"Remote task {action.remote_id} was deleted; dropping {task.id}")
                action.kind = DELETE_LOCAL
                return self._apply_delete_local(action)
            closed = False
        else:
            closed = existing.is_completed

        payload = task_to_remote(task, self._projects_by_tag, existing=existing).to_payload()
        # Projects are only assigned on create
        payload.pop("project_id", None)
        if task.deadline is None:
            payload["due_string"] = "no date"

        self.client.update_task(action.remote_id, payload)
        if task.completed and not closed:
            self.client.close_task(action.remote_id)
        elif not task.completed and closed:
            self.client.reopen_task(action.remote_id)

        self.metadata.set_mapping(task.id, action.remote_id, task_fingerprint(task))
        self._commit()
        self.logger.info(f"Updated remote task {action.remote_id} from {task.id}")
        return True

    def _apply_delete_remote(self, action: SyncAction) -> bool:
        try:
            self.client.delete_task(action.remote_id)
        except RemoteNotFoundError:
            self.logger.warning(f"Remote task {action.remote_id} already gone")
            self.metadata.remove_mapping(action.local_id)
            self._commit()
            return False

        self.metadata.remove_mapping(action.local_id)
        self._commit()
        self.logger.info(f"Deleted remote task {action.remote_id}")
        return True

    def _apply_create_local(self, action: SyncAction) -> bool:
        task = self._normalize(
            remote_to_task(action.remote_task, self._projects_by_id, task_id=action.local_id)
        )
        self.tasks.append(task)
        self._tasks_dirty = True

        self.metadata.remove_remote_id(action.remote_id)
        self.metadata.set_mapping(task.id, action.remote_id, task_fingerprint(task))
        self._commit()
        self.logger.info(f"Created local task {task.id} from remote {action.remote_id}")
        return True

    def _apply_update_local(self, action: SyncAction) -> bool:
        index = self._task_index(action.local_id)
        if index is None:
            raise SyncError(f"Local task {action.local_id} disappeared")

        task = self._normalize(
            remote_to_task(action.remote_task, self._projects_by_id, task_id=action.local_id)
        )
        self.tasks[index] = task
        self._tasks_dirty = True

        self.metadata.remove_remote_id(action.remote_id)
        self.metadata.set_mapping(task.id, action.remote_id, task_fingerprint(task))
        self._commit()
        self.logger.info(f"Updated local task {task.id} from remote {action.remote_id}")
        return True

    def _apply_delete_local(self, action: SyncAction) -> bool:
        index = self._task_index(action.local_id)
        if index is not None:
            del self.tasks[index]
            self._tasks_dirty = True

        self.metadata.remove_mapping(action.local_id)
        self._commit()
        self.logger.info(f"Deleted local task {action.local_id}: remote task is gone")
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _commit(self) -> None:
        """Write the task file if it changed, then the metadata."""
        if self._tasks_dirty:
            self.store.save(self.tasks)
            self._tasks_dirty = False
        self.metadata.save(self.config.metadata_path)

    def _normalize(self, task: Task) -> Task:
        """Return the task exactly as it will read back from the file."""
        normalized = parse_task_line(format_task_line(task), today=self.today)
        normalized.id = task.id
        return normalized

    def _task_index(self, local_id: str) -> Optional[int]:
        for index, task in enumerate(self.tasks):
            if task.id == local_id:
                return index
        return None

    def _set_projects(self, projects: List[RemoteProject]) -> None:
        self._projects_by_id = {project.id: project for project in projects}
        self._projects_by_tag = project_tags(projects)

    def _ensure_project(self, tag: str) -> Optional[RemoteProject]:
        """Return the project for ``tag``, creating it remotely if needed."""
        project = self._projects_by_tag.get(tag)
        if project is not None:
            return project

        try:
            project = self.client.create_project(tag)
        except (AuthenticationError, RateLimitError):
            raise
        except RemoteError as exc:
            self.logger.warning(f"Failed to create project '{tag}': {exc}")
            return None

        self._projects_by_tag[tag] = project
        self._projects_by_id[project.id] = project
        self.logger.info(f"Created remote project '{tag}'")
        return project
