"""Content fingerprint of a local task."""

import hashlib
import json

from ..core.models import Task
from ..utils.date import format_date


def task_fingerprint(task: Task) -> str:
    """SHA-256 over every synced field of ``task``.

    The identity is not part of the content; two tasks with the same
    fields hash alike. Tag order counts since the first tag is the project.
    """
    canonical = [
        task.description,
        format_date(task.deadline),
        list(task.tags),
        format_date(task.reminder),
        bool(task.completed),
        task.notes,
        task.importance,
    ]
    encoded = json.dumps(canonical, ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()
