"""
Task line parsing and formatting.

A task is encoded as free text followed by markers::

    Finish report [id:1a2b3c4d] !2026-01-30 #work #urgent @2026-01-28 $1 //bring slides

Markers are only recognised at the start of a whitespace-delimited token,
so ``http://x`` or ``me@host`` stay part of the description.
"""

import re
import uuid
from datetime import date
from typing import List, Optional, Tuple

from ..core.models import MAX_IMPORTANCE, MIN_IMPORTANCE, Task
from ..utils.date import format_date, parse_date, parse_natural_date


# Regular expressions for parsing tasks
TASK_LINE_RE = re.compile(r'^\s*[-*]\s+\[([xX ])\]\s?(.*)$')
ID_RE = re.compile(r'(?<!\S)\[id:([A-Za-z0-9_-]+)\]')
DEADLINE_RE = re.compile(r'(?<!\S)!(\d{4}-\d{2}-\d{2})(?!\S)')
REMINDER_RE = re.compile(r'(?<!\S)@(\d{4}-\d{2}-\d{2})(?!\S)')
TAG_RE = re.compile(r'(?<!\S)#([\w\-/]+)')
IMPORTANCE_RE = re.compile(r'(?<!\S)\$([1-5])(?!\S)')
NOTES_RE = re.compile(r'(?<!\S)//(.*)$')
# Where a natural-language phrase ends: notes, or the next marker token
PHRASE_STOP_RE = re.compile(r'(?<!\S)//|(?<!\S)[!@#$\[]')

ID_LENGTH = 8
ID_TOKEN_RE = re.compile(r'[A-Za-z0-9_-]+')


def generate_task_id() -> str:
    """Return a fresh opaque task identity."""
    return uuid.uuid4().hex[:ID_LENGTH]


def is_valid_task_id(value: Optional[str]) -> bool:
    """Whether ``value`` survives being written as an identity marker."""
    return bool(value) and ID_TOKEN_RE.fullmatch(value) is not None


def _normalize_space(text: str) -> str:
    return " ".join(text.split())


def _extract_explicit_date(text: str, pattern: re.Pattern) -> Tuple[Optional[date], str]:
    """Take the first valid explicit date and strip every valid one."""
    value: Optional[date] = None

    def _strip(match: re.Match) -> str:
        nonlocal value
        parsed = parse_date(match.group(1))
        if parsed is None:
            # Malformed: leave it for the natural-language pass
            return match.group(0)
        if value is None:
            value = parsed
        return " "

    stripped = pattern.sub(_strip, text)
    return value, stripped


def _extract_natural_date(text: str, marker: str, today: Optional[date]) -> Tuple[Optional[date], str]:
    """Resolve the first ``<marker><phrase>`` that reads as a date."""
    for match in re.finditer(r'(?<!\S)' + re.escape(marker), text):
        start = match.end()
        stop = PHRASE_STOP_RE.search(text, start)
        end = stop.start() if stop else len(text)
        phrase = text[start:end].strip()
        if not phrase:
            continue
        value = parse_natural_date(phrase, today)
        if value is not None:
            return value, text[:match.start()] + " " + text[end:]
    return None, text


def parse_task(text: str, today: Optional[date] = None) -> Task:
    """
    Parse the encoded text of a task (without checkbox).

    Fields are taken in a fixed order: identity, deadline, tags, reminder,
    importance, notes. Whatever is left is the description. Unrecognised
    markers stay in the description; parsing never fails.

    Args:
        text: Encoded task text
        today: Reference date for natural-language phrases

    Returns:
        Parsed Task (completion flag unset)
    """
    remaining = text

    # Identity
    id_match = ID_RE.search(remaining)
    task_id = id_match.group(1) if id_match else generate_task_id()
    remaining = ID_RE.sub(" ", remaining)

    # Deadline: explicit date first, then a phrase
    deadline, remaining = _extract_explicit_date(remaining, DEADLINE_RE)
    if deadline is None:
        deadline, remaining = _extract_natural_date(remaining, "!", today)

    # Tags
    tags: List[str] = [m.group(1) for m in TAG_RE.finditer(remaining)]
    remaining = TAG_RE.sub(" ", remaining)

    # Reminder
    reminder, remaining = _extract_explicit_date(remaining, REMINDER_RE)
    if reminder is None:
        reminder, remaining = _extract_natural_date(remaining, "@", today)

    # Importance
    importance: Optional[int] = None
    importance_match = IMPORTANCE_RE.search(remaining)
    if importance_match:
        importance = int(importance_match.group(1))
        remaining = IMPORTANCE_RE.sub(" ", remaining)

    # Notes run to the end of what is left
    notes: Optional[str] = None
    notes_match = NOTES_RE.search(remaining)
    if notes_match:
        notes = _normalize_space(notes_match.group(1)) or None
        remaining = remaining[:notes_match.start()]

    return Task(
        id=task_id,
        description=_normalize_space(remaining),
        deadline=deadline,
        tags=tags,
        reminder=reminder,
        importance=importance,
        notes=notes,
    )


def format_task(task: Task) -> str:
    """
    Encode a task in the fixed field order.

    Args:
        task: Task to encode

    Returns:
        Encoded text (without checkbox)
    """
    parts = []
    if task.description:
        parts.append(task.description)

    parts.append(f"[id:{task.id}]")

    if task.deadline:
        parts.append(f"!{format_date(task.deadline)}")

    for tag in task.tags:
        parts.append(f"#{tag}")

    if task.reminder:
        parts.append(f"@{format_date(task.reminder)}")

    if task.importance is not None and MIN_IMPORTANCE <= task.importance <= MAX_IMPORTANCE:
        parts.append(f"${task.importance}")

    if task.notes:
        parts.append(f"//{task.notes}")

    return " ".join(parts)


def parse_task_line(line: str, today: Optional[date] = None) -> Optional[Task]:
    """
    Parse a ``- [ ] ...`` / ``- [x] ...`` line.

    Returns:
        Task with its completion flag, or None if the line is not a task
    """
    match = TASK_LINE_RE.match(line.rstrip("\n"))
    if not match:
        return None

    task = parse_task(match.group(2), today=today)
    task.completed = match.group(1).lower() == "x"
    return task


def format_task_line(task: Task) -> str:
    """Format a task as a checkbox line."""
    checkbox = "[x]" if task.completed else "[ ]"
    return f"- {checkbox} {format_task(task)}"
