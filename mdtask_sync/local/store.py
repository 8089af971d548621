"""Task file operations for the local plain-text store."""

from datetime import date
from typing import Iterable, List, Optional
import logging

from ..core.exceptions import StoreError
from ..core.models import Task
from ..utils.io import atomic_write, read_text
from .parser import format_task_line, generate_task_id, parse_task, parse_task_line


HEADER = "# tasks\n\n"


class TaskStore:
    """Reads and writes the task file (one ``- [ ]`` line per task)."""

    def __init__(self, path: str, logger: Optional[logging.Logger] = None,
                 today: Optional[date] = None):
        self.path = path
        self.logger = logger or logging.getLogger(__name__)
        self.today = today
        # Set by load() when identities had to be assigned or repaired
        self.needs_rewrite = False

    def load(self) -> List[Task]:
        """Parse every task line in the file.

        Lines repeating an identity already seen receive a fresh one.
        ``needs_rewrite`` is set whenever a line is not in canonical form
        (new identity, date phrase) so the caller can persist it before
        relying on those identities.
        """
        self.needs_rewrite = False
        try:
            content = read_text(self.path)
        except (OSError, TimeoutError) as exc:
            raise StoreError(f"Cannot read task file {self.path}: {exc}") from exc

        if content is None:
            return []

        tasks: List[Task] = []
        seen_ids = set()
        for line_num, line in enumerate(content.splitlines(), 1):
            task = parse_task_line(line, today=self.today)
            if task is None:
                continue

            if task.id in seen_ids:
                old_id = task.id
                task.id = generate_task_id()
                self.logger.warning(
                    f"Duplicate task id {old_id} on line {line_num}; assigned {task.id}"
                )
                self.needs_rewrite = True
            elif format_task_line(task) != line.strip():
                # Missing identity or a date phrase still to be pinned
                self.needs_rewrite = True

            seen_ids.add(task.id)
            tasks.append(task)

        self.logger.debug(f"Loaded {len(tasks)} tasks from {self.path}")
        return tasks

    def save(self, tasks: Iterable[Task]) -> None:
        """Rewrite the whole file from the given tasks."""
        lines = [format_task_line(task) for task in tasks]
        content = HEADER + "".join(f"{line}\n" for line in lines)
        try:
            atomic_write(self.path, content)
        except (OSError, TimeoutError) as exc:
            raise StoreError(f"Cannot write task file {self.path}: {exc}") from exc
        self.needs_rewrite = False

    def add_task(self, text: str) -> Task:
        """Parse ``text`` and append it as a new open task."""
        task = parse_task(text, today=self.today)
        tasks = self.load()
        tasks.append(task)
        self.save(tasks)
        self.logger.info(f"Added task {task.id}: {task.description}")
        return task
