"""Local plain-text task store."""

from .parser import (
    format_task,
    format_task_line,
    generate_task_id,
    parse_task,
    parse_task_line,
)
from .store import TaskStore

__all__ = [
    'TaskStore',
    'parse_task',
    'format_task',
    'parse_task_line',
    'format_task_line',
    'generate_task_id',
]
