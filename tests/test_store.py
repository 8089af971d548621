"""
Tests for the task file store (mdtask_sync/local/store.py).
"""

import os
from datetime import date
from unittest.mock import patch

import pytest

from mdtask_sync.core.exceptions import StoreError
from mdtask_sync.local.store import HEADER, TaskStore


@pytest.fixture
def tasks_path(temp_dir):
    return os.path.join(temp_dir, "tasks.md")


def _write(path, content):
    with open(path, "w", encoding="utf-8") as handle:
        handle.write(content)


def _read(path):
    with open(path, "r", encoding="utf-8") as handle:
        return handle.read()


class TestTaskStore:

    def test_missing_file_is_empty(self, tasks_path):
        store = TaskStore(tasks_path)

        assert store.load() == []
        assert store.needs_rewrite is False

    def test_load_skips_header_and_prose(self, tasks_path):
        _write(tasks_path, HEADER + "Some prose\n- [ ] One [id:aaaa1111]\n- [x] Two [id:bbbb2222]\n")

        tasks = TaskStore(tasks_path).load()

        assert [t.id for t in tasks] == ["aaaa1111", "bbbb2222"]
        assert [t.completed for t in tasks] == [False, True]

    def test_canonical_file_needs_no_rewrite(self, tasks_path):
        _write(tasks_path, HEADER + "- [ ] One [id:aaaa1111] #home\n")

        store = TaskStore(tasks_path)
        store.load()

        assert store.needs_rewrite is False

    def test_explicit_dates_are_kept(self, tasks_path):
        _write(tasks_path, HEADER + "- [ ] Report [id:aaaa1111] !2026-03-20 @2026-03-18\n")

        store = TaskStore(tasks_path)
        tasks = store.load()

        assert tasks[0].deadline == date(2026, 3, 20)
        assert tasks[0].reminder == date(2026, 3, 18)
        assert store.needs_rewrite is False

    def test_line_without_id_flags_rewrite(self, tasks_path):
        _write(tasks_path, HEADER + "- [ ] Typed by hand\n")

        store = TaskStore(tasks_path)
        tasks = store.load()
        store.save(tasks)

        assert store.needs_rewrite is False
        assert f"[id:{tasks[0].id}]" in _read(tasks_path)
        assert TaskStore(tasks_path).load()[0].id == tasks[0].id

    def test_date_phrase_is_pinned_on_save(self, tasks_path):
        _write(tasks_path, HEADER + "- [ ] Call [id:aaaa1111] !tomorrow\n")

        store = TaskStore(tasks_path, today=date(2026, 3, 10))
        tasks = store.load()
        assert store.needs_rewrite is True
        store.save(tasks)

        assert "- [ ] Call [id:aaaa1111] !2026-03-11\n" in _read(tasks_path)

    def test_duplicate_ids_are_reassigned(self, tasks_path):
        _write(tasks_path, HEADER + "- [ ] One [id:aaaa1111]\n- [ ] Copy [id:aaaa1111]\n")

        store = TaskStore(tasks_path)
        tasks = store.load()

        assert tasks[0].id == "aaaa1111"
        assert tasks[1].id != "aaaa1111"
        assert store.needs_rewrite is True

    def test_save_writes_header_and_lines(self, tasks_path):
        _write(tasks_path, HEADER + "- [ ] One [id:aaaa1111]\n")
        store = TaskStore(tasks_path)
        tasks = store.load()
        tasks[0].completed = True

        store.save(tasks)

        assert _read(tasks_path) == "# tasks\n\n- [x] One [id:aaaa1111]\n"

    def test_add_task_creates_file(self, tasks_path):
        store = TaskStore(tasks_path)

        task = store.add_task("New thing #work $2")

        content = _read(tasks_path)
        assert content.startswith(HEADER)
        assert f"- [ ] New thing [id:{task.id}] #work $2\n" in content

    def test_add_task_appends(self, tasks_path):
        _write(tasks_path, HEADER + "- [ ] One [id:aaaa1111]\n")

        TaskStore(tasks_path).add_task("Two")

        tasks = TaskStore(tasks_path).load()
        assert [t.description for t in tasks] == ["One", "Two"]

    def test_write_failure_raises_store_error(self, tasks_path):
        store = TaskStore(tasks_path)
        with patch("mdtask_sync.local.store.atomic_write", side_effect=OSError("disk full")):
            with pytest.raises(StoreError):
                store.save([])

    def test_read_failure_raises_store_error(self, tasks_path):
        store = TaskStore(tasks_path)
        with patch("mdtask_sync.local.store.read_text", side_effect=OSError("denied")):
            with pytest.raises(StoreError):
                store.load()
