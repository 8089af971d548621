"""
Utilities for carrying local-only task fields in a remote description.

The fields are written as a delimited key/value block appended after any
text the user typed into the remote description::

    Agenda is in the shared folder

    ---mdtask---
    id: 1a2b3c4d
    deadline: 2026-01-30
    importance: 2
    ---end---
"""

import re
from typing import Optional, Tuple

from ..core.models import MAX_IMPORTANCE, MIN_IMPORTANCE, SidebandMetadata
from .date import format_date, parse_date

BLOCK_START = "---mdtask---"
BLOCK_END = "---end---"
BLOCK_RE = re.compile(
    r'\n*^' + re.escape(BLOCK_START) + r'[ \t]*\n(.*?)^' + re.escape(BLOCK_END) + r'[ \t]*$\n?',
    re.MULTILINE | re.DOTALL,
)


def _split(description: Optional[str]) -> Tuple[str, Optional[str]]:
    """Return (user text, raw block body or None)."""
    if not description:
        return "", None

    match = BLOCK_RE.search(description)
    if not match:
        return description.strip(), None

    before = description[:match.start()].strip()
    after = description[match.end():].strip()
    user_text = "\n\n".join(part for part in (before, after) if part)
    return user_text, match.group(1)


def encode_sideband(description: Optional[str], meta: SidebandMetadata) -> str:
    """
    Write ``meta`` into a description, replacing any existing block.

    Args:
        description: Current remote description (may already hold a block)
        meta: Fields to encode

    Returns:
        Description with user text preserved and a fresh block appended
    """
    user_text, _ = _split(description)

    lines = [BLOCK_START, f"id: {meta.id}"]
    if meta.deadline:
        lines.append(f"deadline: {format_date(meta.deadline)}")
    if meta.reminder:
        lines.append(f"reminder: {format_date(meta.reminder)}")
    if meta.importance is not None:
        lines.append(f"importance: {meta.importance}")
    if meta.notes:
        # One line per value; notes never span lines locally
        lines.append(f"notes: {' '.join(meta.notes.split())}")
    lines.append(BLOCK_END)

    block = "\n".join(lines)
    if user_text:
        return f"{user_text}\n\n{block}"
    return block


def decode_sideband(description: Optional[str]) -> Tuple[Optional[str], Optional[SidebandMetadata]]:
    """
    Extract the user text and the encoded fields from a description.

    Unknown keys and unparseable values are ignored. A block without an
    ``id`` is treated as absent.

    Returns:
        Tuple of (user_text or None, SidebandMetadata or None)
    """
    user_text, body = _split(description)
    user_text = user_text or None
    if body is None:
        return user_text, None

    values = {}
    for line in body.splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        values[key.strip().lower()] = value.strip()

    task_id = values.get("id")
    if not task_id:
        return user_text, None

    importance = None
    raw_importance = values.get("importance", "")
    if raw_importance.isdigit() and MIN_IMPORTANCE <= int(raw_importance) <= MAX_IMPORTANCE:
        importance = int(raw_importance)

    meta = SidebandMetadata(
        id=task_id,
        deadline=parse_date(values.get("deadline")),
        reminder=parse_date(values.get("reminder")),
        importance=importance,
        notes=values.get("notes") or None,
    )
    return user_text, meta


def strip_sideband(description: Optional[str]) -> Optional[str]:
    """Return only the human-visible part of a description."""
    user_text, _ = _split(description)
    return user_text or None
