"""
Field translation between local tasks and remote tasks.

The first local tag is the remote project; the remaining tags are remote
labels. Local importance runs 1 (highest) to 5, remote priority runs the
other way (4 is highest).
"""

import re
from typing import Dict, Iterable, Optional

from ..core.models import RemoteProject, RemoteTask, SidebandMetadata, Task
from ..local.parser import generate_task_id
from ..utils.date import format_date
from ..utils.sideband import decode_sideband, encode_sideband

IMPORTANCE_TO_PRIORITY = {1: 4, 2: 3, 3: 2}
PRIORITY_TO_IMPORTANCE = {4: 1, 3: 2, 2: 3}
DEFAULT_PRIORITY = 1

_TAG_INVALID_RE = re.compile(r'[^\w\-/]+')


def importance_to_priority(importance: Optional[int]) -> int:
    return IMPORTANCE_TO_PRIORITY.get(importance, DEFAULT_PRIORITY)


def priority_to_importance(priority: Optional[int]) -> Optional[int]:
    return PRIORITY_TO_IMPORTANCE.get(priority)


def name_to_tag(name: str) -> str:
    """Turn a project or label name into a valid local tag."""
    return _TAG_INVALID_RE.sub("-", name.strip()).strip("-")


def project_tags(projects: Iterable[RemoteProject]) -> Dict[str, RemoteProject]:
    """Index projects by their tag form, skipping the inbox."""
    index: Dict[str, RemoteProject] = {}
    for project in projects:
        if project.is_inbox_project:
            continue
        tag = name_to_tag(project.name)
        if tag and tag not in index:
            index[tag] = project
    return index


def task_to_remote(task: Task, projects: Dict[str, RemoteProject],
                   existing: Optional[RemoteTask] = None) -> RemoteTask:
    """
    Build the remote form of a local task.

    Args:
        task: Local task
        projects: Remote projects keyed by tag form (see ``project_tags``)
        existing: Current remote task, whose user-typed description is kept

    Returns:
        RemoteTask without id or completion; completion goes through
        close/reopen
    """
    meta = SidebandMetadata(
        id=task.id,
        deadline=task.deadline,
        reminder=task.reminder,
        importance=task.importance,
        notes=task.notes,
    )
    project = projects.get(task.project_tag) if task.project_tag else None

    return RemoteTask(
        content=task.description,
        description=encode_sideband(existing.description if existing else None, meta),
        due_date=format_date(task.deadline),
        labels=task.label_tags,
        priority=importance_to_priority(task.importance),
        project_id=project.id if project else None,
    )


def remote_to_task(remote: RemoteTask, projects: Dict[str, RemoteProject],
                   task_id: Optional[str] = None) -> Task:
    """
    Build a local task from a remote one.

    Fields carried in the sideband block win over the native remote ones,
    except the deadline, which follows the remote due date when set.

    Args:
        remote: Remote task
        projects: Remote projects keyed by id
        task_id: Identity to give the task; defaults to a fresh one
    """
    _, meta = decode_sideband(remote.description)

    tags = []
    project = projects.get(remote.project_id) if remote.project_id else None
    if project and not project.is_inbox_project:
        project_tag = name_to_tag(project.name)
        if project_tag:
            tags.append(project_tag)
    for label in remote.labels or []:
        label_tag = name_to_tag(label)
        if label_tag:
            tags.append(label_tag)

    deadline = remote.due.as_date if remote.due else None
    if deadline is None and meta:
        deadline = meta.deadline

    importance = meta.importance if meta and meta.importance is not None else None
    if importance is None:
        importance = priority_to_importance(remote.priority)

    return Task(
        id=task_id or generate_task_id(),
        description=" ".join(remote.content.split()),
        deadline=deadline,
        tags=tags,
        reminder=meta.reminder if meta else None,
        importance=importance,
        notes=meta.notes if meta else None,
        completed=remote.is_completed,
    )
